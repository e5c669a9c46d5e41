"""
Transbank Webpay Plus Payment Processor

Bridges the host's payment-session lifecycle to the Webpay Plus transaction
API through the Transbank SDK. The processor is stateless: everything it
knows about a payment travels in the session data the host hands it.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Callable, Dict, List, Optional, Union
from urllib.parse import quote
from uuid import uuid4

from starlette.concurrency import run_in_threadpool
from transbank.common.integration_type import IntegrationType
from transbank.common.options import WebpayOptions
from transbank.error.transbank_error import TransbankError
from transbank.webpay.webpay_plus.transaction import Transaction

from webpay_processor.core.config import Settings, get_settings
from webpay_processor.core.logging import get_logger

from .base import (
    AbstractPaymentProcessor,
    AuthorizationResult,
    ErrorKind,
    PaymentProcessorContext,
    PaymentProcessorError,
    PaymentProcessorSessionResponse,
    PaymentSessionStatus,
)

logger = get_logger(__name__)

BUY_ORDER_MAX_LENGTH = 26
SESSION_ID_MAX_LENGTH = 61

WEBPAY_STATUS_MAP = {
    "AUTHORIZED": PaymentSessionStatus.AUTHORIZED,
    "FAILED": PaymentSessionStatus.ERROR,
    "CANCELED": PaymentSessionStatus.CANCELED,
}

CAPTURE_RECEIPT_FIELDS = ("authorization_code", "authorization_date", "captured_amount", "response_code")
REFUND_RECEIPT_FIELDS = ("authorization_code", "authorization_date", "nullified_amount", "response_code")
CANCEL_RECEIPT_FIELDS = REFUND_RECEIPT_FIELDS + ("type",)


def generate_buy_order() -> str:
    """Random buy order code within the gateway's 26 character limit."""
    return uuid4().hex[:BUY_ORDER_MAX_LENGTH]


def format_capture_amount(amount: Union[int, str, Decimal]) -> str:
    """Render an amount with exactly two decimal places."""
    return str(Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def map_webpay_status(webpay_status: Optional[str]) -> PaymentSessionStatus:
    """Map a Webpay transaction status to the host's session status."""
    return WEBPAY_STATUS_MAP.get(webpay_status, PaymentSessionStatus.PENDING)


@dataclass(frozen=True)
class WebpayConfig:
    """Static merchant configuration for the Webpay gateway."""
    commerce_code: str
    api_key: str
    production: bool = False
    return_url: str = "http://localhost:8000/webpay/confirm-transaction/{resource_id}"

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "WebpayConfig":
        settings = settings or get_settings()
        return cls(
            commerce_code=settings.webpay_commerce_code,
            api_key=settings.webpay_api_key,
            production=settings.is_production,
            return_url=settings.webpay_return_url,
        )

    def to_options(self) -> WebpayOptions:
        integration_type = IntegrationType.LIVE if self.production else IntegrationType.TEST
        return WebpayOptions(self.commerce_code, self.api_key, integration_type)


class WebpayPaymentProcessor(AbstractPaymentProcessor):
    """Webpay Plus payment processor."""

    identifier = "webpay"

    def __init__(
        self,
        config: Optional[WebpayConfig] = None,
        transaction_factory: Optional[Callable[[WebpayOptions], Any]] = None,
    ):
        """
        Initialize the Webpay processor.

        Args:
            config: Merchant configuration; read from settings when omitted
            transaction_factory: Builds a gateway transaction client from
                options. Defaults to the SDK's ``Transaction``.
        """
        self.config = config or WebpayConfig.from_settings()
        self.transaction_factory = transaction_factory or Transaction
        logger.info(
            "webpay.processor.initialized",
            commerce_code=self.config.commerce_code,
            production=self.config.production,
        )

    async def initiate_payment(
        self, context: PaymentProcessorContext
    ) -> PaymentProcessorSessionResponse:
        """
        Open a Webpay transaction for the cart.

        Args:
            context: Host context carrying the amount and resource id

        Returns:
            PaymentProcessorSessionResponse with token, redirect url,
            buy order and amount

        Raises:
            PaymentProcessorError: If the gateway call fails
        """
        session_data = await self._create_transaction(context, generate_buy_order())
        return PaymentProcessorSessionResponse(session_data=session_data)

    async def retrieve_payment(self, payment_session_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Query the gateway for the transaction and merge the result.

        Raises:
            PaymentProcessorError: If the token is missing or the gateway call fails
        """
        token = payment_session_data.get("transbank_token")
        if not token:
            raise self._validation_error(
                "retrieve", "No Webpay token provided in payment session data", ["transbank_token"]
            )

        response = await self._call_gateway(
            "status", token, error_message="Error retrieving payment with Webpay"
        )
        return {**payment_session_data, **response}

    async def get_payment_status(self, payment_session_data: Dict[str, Any]) -> PaymentSessionStatus:
        """
        Map the session's gateway status to the host status.

        Sessions that have not recorded a status yet but hold a token are
        looked up on the gateway. Unknown statuses map to pending.

        Raises:
            PaymentProcessorError: If the gateway lookup fails
        """
        webpay_status = payment_session_data.get("status")
        token = payment_session_data.get("transbank_token")
        if webpay_status is None and token:
            response = await self._call_gateway(
                "status", token, error_message="Error retrieving payment status"
            )
            webpay_status = response.get("status")
        return map_webpay_status(webpay_status)

    async def update_payment(
        self, context: PaymentProcessorContext
    ) -> Union[PaymentProcessorSessionResponse, PaymentProcessorError]:
        """
        Reconcile the session with the cart amount.

        An unchanged amount keeps the session as it is. A new amount needs a
        new gateway transaction under a new buy order, because Webpay
        transactions are immutable once created.
        """
        session_data = context.payment_session_data
        if context.amount == session_data.get("amount"):
            return PaymentProcessorSessionResponse(session_data=session_data)

        previous_buy_order = session_data.get("buy_order")
        buy_order = generate_buy_order()
        while buy_order == previous_buy_order:
            buy_order = generate_buy_order()

        try:
            new_session_data = await self._create_transaction(context, buy_order)
        except PaymentProcessorError as e:
            return e

        logger.info(
            "webpay.transaction.replaced",
            resource_id=context.resource_id,
            previous_buy_order=previous_buy_order,
            buy_order=buy_order,
            amount=str(context.amount),
        )
        return PaymentProcessorSessionResponse(session_data=new_session_data)

    async def authorize_payment(
        self, payment_session_data: Dict[str, Any], context: Optional[Dict[str, Any]] = None
    ) -> Union[AuthorizationResult, PaymentProcessorError]:
        """
        Commit the transaction once the buyer is back from Webpay.

        The commit token is read from the session data, falling back to the
        host context. Only ``status == AUTHORIZED`` with ``response_code == 0``
        counts as authorized.
        """
        context = context or {}
        token = payment_session_data.get("token_ws") or context.get("token_ws")
        if not token:
            return self._validation_error(
                "authorize", "No commit token provided to authorize the payment", ["token_ws"]
            )

        try:
            response = await self._call_gateway(
                "commit", token, error_message="Error authorizing payment with Webpay"
            )
        except PaymentProcessorError as e:
            return e

        data = {**payment_session_data, **response}
        response_code = response.get("response_code")
        if response.get("status") == "AUTHORIZED" and response_code == 0:
            logger.info(
                "webpay.authorize.succeeded",
                buy_order=data.get("buy_order"),
                authorization_code=response.get("authorization_code"),
            )
            return AuthorizationResult(status=PaymentSessionStatus.AUTHORIZED, data=data)

        logger.warning(
            "webpay.authorize.refused",
            buy_order=data.get("buy_order"),
            status=response.get("status"),
            response_code=response_code,
        )
        return PaymentProcessorError(
            "Payment authorization refused by Webpay",
            code=str(response_code),
            detail=response,
            kind=ErrorKind.REFUSED,
        )

    async def capture_payment(
        self, payment_session_data: Dict[str, Any]
    ) -> Union[Dict[str, Any], PaymentProcessorError]:
        """Capture a deferred-capture transaction for the session amount."""
        missing = _missing_fields(
            payment_session_data, "transbank_token", "authorization_code", "buy_order", "amount"
        )
        if missing:
            return self._validation_error(
                "capture", "Missing data required to capture the payment", missing
            )

        try:
            capture_amount = format_capture_amount(payment_session_data["amount"])
        except InvalidOperation:
            return self._validation_error(
                "capture", "Payment amount is not a valid number", ["amount"]
            )

        try:
            response = await self._call_gateway(
                "capture",
                payment_session_data["transbank_token"],
                payment_session_data["buy_order"],
                payment_session_data["authorization_code"],
                capture_amount,
                error_message="Error capturing payment with Webpay",
            )
        except PaymentProcessorError as e:
            return e

        logger.info(
            "webpay.capture.succeeded",
            buy_order=payment_session_data["buy_order"],
            captured_amount=response.get("captured_amount"),
        )
        return {field: response.get(field) for field in CAPTURE_RECEIPT_FIELDS}

    async def refund_payment(
        self, payment_session_data: Dict[str, Any], refund_amount: Union[int, Decimal]
    ) -> Union[Dict[str, Any], PaymentProcessorError]:
        """Refund ``refund_amount`` of the transaction."""
        missing = _missing_fields(payment_session_data, "transbank_token")
        if refund_amount is None:
            missing.append("refund_amount")
        if missing:
            return self._validation_error("refund", "Missing data required to refund the payment", missing)

        try:
            response = await self._call_gateway(
                "refund",
                payment_session_data["transbank_token"],
                refund_amount,
                error_message="Error refunding payment with Webpay",
            )
        except PaymentProcessorError as e:
            return e

        logger.info(
            "webpay.refund.succeeded",
            buy_order=payment_session_data.get("buy_order"),
            nullified_amount=response.get("nullified_amount"),
        )
        return {field: response.get(field) for field in REFUND_RECEIPT_FIELDS}

    async def cancel_payment(
        self, payment_session_data: Dict[str, Any]
    ) -> Union[Dict[str, Any], PaymentProcessorError]:
        # Webpay decides between a reversal and a nullification from the
        # transaction's age and reports which one it did in ``type``.
        missing = _missing_fields(payment_session_data, "transbank_token", "amount")
        if missing:
            return self._validation_error("cancel", "Missing data required to cancel the payment", missing)

        try:
            response = await self._call_gateway(
                "refund",
                payment_session_data["transbank_token"],
                payment_session_data["amount"],
                error_message="Error cancelling payment with Webpay",
            )
        except PaymentProcessorError as e:
            return e

        logger.info(
            "webpay.cancel.succeeded",
            buy_order=payment_session_data.get("buy_order"),
            type=response.get("type"),
        )
        return {field: response.get(field) for field in CANCEL_RECEIPT_FIELDS}

    async def _create_transaction(
        self, context: PaymentProcessorContext, buy_order: str
    ) -> Dict[str, Any]:
        """Create a gateway transaction and build the session data for it."""
        session_id = context.resource_id[-SESSION_ID_MAX_LENGTH:]
        return_url = self.config.return_url.format(resource_id=quote(context.resource_id, safe=""))

        response = await self._call_gateway(
            "create",
            buy_order,
            session_id,
            context.amount,
            return_url,
            error_message="Error initiating payment with Webpay",
        )

        logger.info(
            "webpay.transaction.created",
            resource_id=context.resource_id,
            buy_order=buy_order,
            amount=str(context.amount),
        )
        return {
            "transbank_token": response["token"],
            "redirect_url": response["url"],
            "buy_order": buy_order,
            "amount": context.amount,
        }

    async def _call_gateway(self, operation: str, *args: Any, error_message: str) -> Dict[str, Any]:
        """
        Run one SDK call on a fresh transaction client.

        The SDK is blocking, so the call runs in the threadpool. Failures are
        converted to PaymentProcessorError here, tagged with their origin.
        """
        try:
            transaction = self.transaction_factory(self.config.to_options())
            return await run_in_threadpool(getattr(transaction, operation), *args)
        except TransbankError as e:
            logger.error(
                "webpay.gateway_call.failed",
                operation=operation,
                code=e.code,
                error=e.message,
            )
            raise PaymentProcessorError(
                error_message,
                code=str(e.code),
                detail=e.message,
                kind=ErrorKind.GATEWAY,
            ) from e
        except Exception as e:
            logger.error(
                "webpay.gateway_call.failed",
                operation=operation,
                error=str(e),
                exc_info=True,
            )
            raise PaymentProcessorError(
                error_message,
                detail=str(e),
                kind=ErrorKind.UNEXPECTED,
            ) from e

    def _validation_error(
        self, operation: str, message: str, missing_fields: List[str]
    ) -> PaymentProcessorError:
        logger.warning(f"webpay.{operation}.rejected", missing_fields=missing_fields)
        return PaymentProcessorError(
            message,
            detail={"missing_fields": missing_fields},
            kind=ErrorKind.VALIDATION,
        )


def _missing_fields(data: Dict[str, Any], *names: str) -> List[str]:
    return [name for name in names if data.get(name) in (None, "")]
