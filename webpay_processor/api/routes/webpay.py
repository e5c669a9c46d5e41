from urllib.parse import quote

from fastapi import APIRouter, Depends, status
from fastapi.responses import RedirectResponse

from webpay_processor.core.config import Settings, get_settings
from webpay_processor.core.logging import get_logger


router = APIRouter(prefix="/webpay", tags=["webpay"])
logger = get_logger(__name__)


def build_storefront_url(settings: Settings, path_template: str, resource_id: str) -> str:
    path = path_template.format(resource_id=quote(resource_id, safe=""))
    return f"{settings.storefront_url.rstrip('/')}{path}"


@router.get("/confirm-transaction/{resource_id}")
async def confirm_transaction_endpoint(
    resource_id: str,
    token_ws: str | None = None,
    settings: Settings = Depends(get_settings),
) -> RedirectResponse:
    # Authorization happens in the payment processor; this only picks where
    # the buyer lands after leaving Webpay.
    try:
        if token_ws:
            target = "checkout"
            url = build_storefront_url(settings, settings.checkout_path, resource_id)
        else:
            target = "order_confirmed"
            url = build_storefront_url(settings, settings.order_confirmed_path, resource_id)
    except (KeyError, IndexError, ValueError) as e:
        logger.error("webpay.redirect.failed", resource_id=resource_id, error=str(e))
        target = "cart"
        try:
            url = build_storefront_url(settings, settings.cart_path, resource_id)
        except (KeyError, IndexError, ValueError):
            url = f"{settings.storefront_url.rstrip('/')}/cart/{quote(resource_id, safe='')}"

    logger.info("webpay.redirect", resource_id=resource_id, target=target)
    return RedirectResponse(url=url, status_code=status.HTTP_302_FOUND)
