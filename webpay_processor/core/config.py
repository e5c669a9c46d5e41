from functools import lru_cache

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

INTEGRATION_COMMERCE_CODE = "597055555532"
INTEGRATION_API_KEY = "579B532A7440BB0C9079DED94D31EA1615BACEB56610332264630D42D0A36B1C"

PRODUCTION_ENVIRONMENT = "Production"
INTEGRATION_ENVIRONMENT = "Integration"

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = Field(default="Webpay Payment Processor")
    log_level: str = Field(default="INFO")

    webpay_commerce_code: str = Field(default=INTEGRATION_COMMERCE_CODE)
    webpay_api_key: str = Field(default=INTEGRATION_API_KEY)
    webpay_environment: str = Field(
        default=INTEGRATION_ENVIRONMENT,
        description="'Production' targets the live gateway, 'Integration' the sandbox",
    )
    webpay_return_url: str = Field(
        default="http://localhost:8000/webpay/confirm-transaction/{resource_id}",
        description="URL the gateway sends the buyer back to; formatted with the resource id",
    )

    storefront_url: str = Field(default="http://localhost:8000")
    checkout_path: str = Field(default="/checkout/{resource_id}")
    cart_path: str = Field(default="/cart/{resource_id}")
    order_confirmed_path: str = Field(default="/order/confirmed/{resource_id}")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {list(LOG_LEVELS)}, got '{value}'")
        return level

    @model_validator(mode="after")
    def validate_webpay_configuration(self) -> "Settings":
        """
        Validate the gateway environment selector and production credentials.

        Integration runs against the public sandbox and may keep the published
        test credentials. Production must carry the merchant's own commerce
        code and API key.
        """
        allowed_environments = {PRODUCTION_ENVIRONMENT, INTEGRATION_ENVIRONMENT}
        if self.webpay_environment not in allowed_environments:
            raise ValueError(
                f"webpay_environment must be one of {sorted(allowed_environments)}, "
                f"got '{self.webpay_environment}'"
            )

        if self.is_production:
            missing_settings = []
            if not self.webpay_commerce_code.strip() or self.webpay_commerce_code == INTEGRATION_COMMERCE_CODE:
                missing_settings.append("webpay_commerce_code")
            if not self.webpay_api_key.strip() or self.webpay_api_key == INTEGRATION_API_KEY:
                missing_settings.append("webpay_api_key")
            if missing_settings:
                raise ValueError(
                    "When webpay_environment='Production', the following settings are required: "
                    f"{', '.join(missing_settings)}"
                )

        return self

    @property
    def is_production(self) -> bool:
        return self.webpay_environment == PRODUCTION_ENVIRONMENT


@lru_cache(maxsize=None)
def get_settings() -> Settings:
    """
    Get cached settings instance.

    The environment is parsed and validated once; every caller shares the
    same instance for the lifetime of the process.

    Returns:
        Settings: The cached settings instance
    """
    return Settings()


def clear_settings_cache() -> None:
    """
    Clear the cached settings instance.

    Useful for testing or when configuration needs to be reloaded.
    """
    get_settings.cache_clear()
