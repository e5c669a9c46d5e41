"""
Payment Processor Base Classes and Interfaces

Defines the contract the host e-commerce backend expects from a payment
processor plugin: the session status vocabulary, the per-call context and
response shapes, and the error structure handed back on failure.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union


class PaymentSessionStatus(str, Enum):
    """Payment session status as understood by the host framework."""
    AUTHORIZED = "authorized"
    PENDING = "pending"
    REQUIRES_MORE = "requires_more"
    ERROR = "error"
    CANCELED = "canceled"


class ErrorKind(str, Enum):
    """Where a processor error originated."""
    VALIDATION = "validation"  # required session field missing, gateway not contacted
    GATEWAY = "gateway"  # gateway SDK reported a failure
    REFUSED = "refused"  # gateway answered but did not authorize
    UNEXPECTED = "unexpected"


@dataclass
class PaymentProcessorContext:
    """Per-call context passed by the host's payment-session orchestrator."""
    amount: Union[int, Decimal]
    resource_id: str
    currency_code: Optional[str] = None
    email: Optional[str] = None
    payment_session_data: Dict[str, Any] = field(default_factory=dict)
    context: Dict[str, Any] = field(default_factory=dict)


@dataclass
class PaymentProcessorSessionResponse:
    """Session data for the host to persist, plus customer update requests."""
    session_data: Dict[str, Any]
    update_requests: Dict[str, Any] = field(default_factory=dict)


@dataclass
class AuthorizationResult:
    """Outcome of a successful authorization."""
    status: PaymentSessionStatus
    data: Dict[str, Any]


class PaymentProcessorError(Exception):
    """
    Error structure returned (or raised) to the host.

    Always carries a human readable message, an optional gateway code and a
    detail payload. ``kind`` is fixed where the failure happens.
    """

    def __init__(
        self,
        error: str,
        code: Optional[str] = None,
        detail: Any = None,
        kind: ErrorKind = ErrorKind.UNEXPECTED,
    ):
        super().__init__(error)
        self.error = error
        self.code = code or ""
        self.detail = detail
        self.kind = kind

    def to_dict(self) -> Dict[str, Any]:
        """Host-facing shape: ``{error, code, detail}``."""
        return {"error": self.error, "code": self.code, "detail": self.detail}

    def __repr__(self) -> str:
        return f"PaymentProcessorError(error={self.error!r}, code={self.code!r}, kind={self.kind.value})"


class AbstractPaymentProcessor(ABC):
    """Abstract base class for payment processor plugins."""

    identifier: str = ""

    @abstractmethod
    async def initiate_payment(
        self, context: PaymentProcessorContext
    ) -> PaymentProcessorSessionResponse:
        """
        Open a payment session with the gateway.

        Raises:
            PaymentProcessorError: If the gateway call fails
        """

    @abstractmethod
    async def retrieve_payment(self, payment_session_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Fetch the gateway's view of the payment, merged into the session data.

        Raises:
            PaymentProcessorError: If the gateway call fails
        """

    @abstractmethod
    async def get_payment_status(self, payment_session_data: Dict[str, Any]) -> PaymentSessionStatus:
        """
        Map the session to a host status.

        Raises:
            PaymentProcessorError: If a gateway lookup is needed and fails
        """

    @abstractmethod
    async def update_payment(
        self, context: PaymentProcessorContext
    ) -> Union[PaymentProcessorSessionResponse, PaymentProcessorError]:
        """Reconcile the session with a possibly changed cart amount."""

    @abstractmethod
    async def authorize_payment(
        self, payment_session_data: Dict[str, Any], context: Dict[str, Any]
    ) -> Union[AuthorizationResult, PaymentProcessorError]:
        """Authorize the payment after the buyer returns from the gateway."""

    @abstractmethod
    async def capture_payment(
        self, payment_session_data: Dict[str, Any]
    ) -> Union[Dict[str, Any], PaymentProcessorError]:
        """Capture a previously authorized payment."""

    @abstractmethod
    async def refund_payment(
        self, payment_session_data: Dict[str, Any], refund_amount: Union[int, Decimal]
    ) -> Union[Dict[str, Any], PaymentProcessorError]:
        """Refund all or part of a payment."""

    @abstractmethod
    async def cancel_payment(
        self, payment_session_data: Dict[str, Any]
    ) -> Union[Dict[str, Any], PaymentProcessorError]:
        """Cancel (reverse or nullify) a payment."""

    async def delete_payment(self, payment_session_data: Dict[str, Any]) -> Dict[str, Any]:
        return payment_session_data

    async def update_payment_data(self, session_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        return data


class PaymentProcessorFactory:
    """Factory for creating payment processor instances by identifier."""

    _processors: Dict[str, Callable[..., AbstractPaymentProcessor]] = {}

    @classmethod
    def register_processor(
        cls,
        identifier: str,
        processor_class: Callable[..., AbstractPaymentProcessor],
    ):
        """Register a payment processor implementation."""
        cls._processors[identifier] = processor_class

    @classmethod
    def create_processor(cls, identifier: str, **config) -> AbstractPaymentProcessor:
        """Create a payment processor instance."""
        if identifier not in cls._processors:
            raise ValueError(f"Unsupported payment processor: {identifier}")

        return cls._processors[identifier](**config)

    @classmethod
    def get_supported_processors(cls) -> List[str]:
        """Get list of registered processor identifiers."""
        return list(cls._processors.keys())
