"""Transbank Webpay Plus payment processor plugin."""
