"""
Shared test configuration and fixtures for the Webpay processor test suite.
"""

from typing import Generator
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from webpay_processor.core.config import Settings, clear_settings_cache, get_settings
from webpay_processor.integrations.payment_processors import (
    PaymentProcessorContext,
    WebpayConfig,
    WebpayPaymentProcessor,
)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch) -> Generator[None, None, None]:
    """Keep the process environment from leaking into settings."""
    for name in (
        "WEBPAY_COMMERCE_CODE",
        "WEBPAY_API_KEY",
        "WEBPAY_ENVIRONMENT",
        "WEBPAY_RETURN_URL",
        "STOREFRONT_URL",
    ):
        monkeypatch.delenv(name, raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def webpay_config() -> WebpayConfig:
    return WebpayConfig(
        commerce_code="597000000001",
        api_key="fake_api_key_for_tests",
        production=False,
        return_url="https://shop.example.com/webpay/confirm-transaction/{resource_id}",
    )


@pytest.fixture
def mock_transaction() -> Mock:
    """Stand-in for the SDK's Webpay Plus transaction client."""
    transaction = Mock()
    transaction.create.return_value = {
        "token": "01ab5c2b3a9e4e8f0c6d1f2a3b4c5d6e7f8a9b0c1d2e3f4a5b6c7d8e9f0a1b2c",
        "url": "https://webpay3gint.transbank.cl/webpayserver/initTransaction",
    }
    return transaction


@pytest.fixture
def transaction_factory(mock_transaction) -> Mock:
    return Mock(return_value=mock_transaction)


@pytest.fixture
def processor(webpay_config, transaction_factory) -> WebpayPaymentProcessor:
    return WebpayPaymentProcessor(config=webpay_config, transaction_factory=transaction_factory)


@pytest.fixture
def payment_context() -> PaymentProcessorContext:
    return PaymentProcessorContext(
        amount=15990,
        resource_id="cart_01HQ8Z3K7Y2M4N6P8R0T2V4X6Z",
        currency_code="clp",
        email="buyer@example.com",
    )


@pytest.fixture
def authorized_session_data() -> dict:
    """Session data as it looks after a successful authorization."""
    return {
        "transbank_token": "01ab5c2b3a9e4e8f0c6d1f2a3b4c5d6e7f8a9b0c1d2e3f4a5b6c7d8e9f0a1b2c",
        "redirect_url": "https://webpay3gint.transbank.cl/webpayserver/initTransaction",
        "buy_order": "9f1c2d3e4b5a69788796a5b4c3",
        "amount": 15990,
        "status": "AUTHORIZED",
        "authorization_code": "1213",
        "response_code": 0,
    }


@pytest.fixture
def storefront_settings() -> Settings:
    return Settings(storefront_url="https://shop.example.com")


@pytest.fixture
def test_client(storefront_settings) -> Generator[TestClient, None, None]:
    """Create test client with the settings dependency overridden."""
    from webpay_processor.main import app

    app.dependency_overrides[get_settings] = lambda: storefront_settings

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
