"""
Integration modules for the Webpay payment processor

Contains adapters for external systems:
- Payment processors (Transbank Webpay Plus)
"""
