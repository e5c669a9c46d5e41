"""
Payment processor integration modules

Provides processor plugins for the host e-commerce backend with a
consistent lifecycle interface and error structure.
"""

from .base import (
    AbstractPaymentProcessor,
    AuthorizationResult,
    ErrorKind,
    PaymentProcessorContext,
    PaymentProcessorError,
    PaymentProcessorFactory,
    PaymentProcessorSessionResponse,
    PaymentSessionStatus,
)
from .webpay_processor import WebpayConfig, WebpayPaymentProcessor

PaymentProcessorFactory.register_processor(WebpayPaymentProcessor.identifier, WebpayPaymentProcessor)

__all__ = [
    "AbstractPaymentProcessor",
    "AuthorizationResult",
    "ErrorKind",
    "PaymentProcessorContext",
    "PaymentProcessorError",
    "PaymentProcessorFactory",
    "PaymentProcessorSessionResponse",
    "PaymentSessionStatus",
    "WebpayConfig",
    "WebpayPaymentProcessor",
]
