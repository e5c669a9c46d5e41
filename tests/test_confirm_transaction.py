"""
Redirect endpoint tests for the buyer's return from Webpay.
"""

from webpay_processor.core.config import Settings, get_settings


class TestConfirmTransactionRedirect:
    """GET /webpay/confirm-transaction/{resource_id}"""

    def test_redirects_to_checkout_with_token(self, test_client):
        response = test_client.get(
            "/webpay/confirm-transaction/cart_123",
            params={"token_ws": "01ab5c2b3a9e4e8f0c6d1f2a3b4c5d6e"},
            follow_redirects=False,
        )

        assert response.status_code == 302
        assert response.headers["location"] == "https://shop.example.com/checkout/cart_123"

    def test_redirects_to_order_confirmation_without_token(self, test_client):
        response = test_client.get("/webpay/confirm-transaction/cart_123", follow_redirects=False)

        assert response.status_code == 302
        assert response.headers["location"] == "https://shop.example.com/order/confirmed/cart_123"

    def test_empty_token_counts_as_missing(self, test_client):
        response = test_client.get(
            "/webpay/confirm-transaction/cart_123",
            params={"token_ws": ""},
            follow_redirects=False,
        )

        assert response.headers["location"] == "https://shop.example.com/order/confirmed/cart_123"

    def test_aborted_payment_without_token_ws(self, test_client):
        # Webpay sends TBK_TOKEN instead of token_ws when the buyer aborts.
        response = test_client.get(
            "/webpay/confirm-transaction/cart_123",
            params={"TBK_TOKEN": "abc", "TBK_ORDEN_COMPRA": "9f1c2d3e"},
            follow_redirects=False,
        )

        assert response.headers["location"] == "https://shop.example.com/order/confirmed/cart_123"

    def test_resource_id_is_escaped(self, test_client):
        response = test_client.get(
            "/webpay/confirm-transaction/cart%20with%20space",
            params={"token_ws": "tok"},
            follow_redirects=False,
        )

        assert response.headers["location"] == "https://shop.example.com/checkout/cart%20with%20space"

    def test_falls_back_to_cart_on_malformed_template(self, test_client):
        from webpay_processor.main import app

        app.dependency_overrides[get_settings] = lambda: Settings(
            storefront_url="https://shop.example.com/",
            checkout_path="/checkout/{cart}",
        )

        response = test_client.get(
            "/webpay/confirm-transaction/cart_123",
            params={"token_ws": "tok"},
            follow_redirects=False,
        )

        assert response.status_code == 302
        assert response.headers["location"] == "https://shop.example.com/cart/cart_123"

    def test_cart_fallback_uses_configured_cart_path(self, test_client):
        from webpay_processor.main import app

        app.dependency_overrides[get_settings] = lambda: Settings(
            storefront_url="https://shop.example.com",
            checkout_path="/checkout/{cart}",
            cart_path="/tienda/carro/{resource_id}",
        )

        response = test_client.get(
            "/webpay/confirm-transaction/cart_123",
            params={"token_ws": "tok"},
            follow_redirects=False,
        )

        assert response.headers["location"] == "https://shop.example.com/tienda/carro/cart_123"

    def test_cart_fallback_when_cart_path_malformed(self, test_client):
        from webpay_processor.main import app

        app.dependency_overrides[get_settings] = lambda: Settings(
            storefront_url="https://shop.example.com",
            order_confirmed_path="/order/{0}",
            cart_path="/cart/{cart}",
        )

        response = test_client.get("/webpay/confirm-transaction/cart_123", follow_redirects=False)

        assert response.status_code == 302
        assert response.headers["location"] == "https://shop.example.com/cart/cart_123"
