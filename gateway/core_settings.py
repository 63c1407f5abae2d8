from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import List

DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://localhost:3001,http://localhost:3002,http://localhost:3003"

class Settings(BaseSettings):
    AUTH_SERVICE_URL: str = "http://localhost:3010"
    PRODUCT_SERVICE_URL: str = "http://localhost:3011"
    ORDER_SERVICE_URL: str = "http://localhost:3012"
    CATEGORY_SERVICE_URL: str = "http://localhost:3013"
    COUPON_SERVICE_URL: str = "http://localhost:3014"
    PORT: int = 4000
    ALLOWED_ORIGINS: str = DEFAULT_CORS_ORIGINS
    # Upper bound for every downstream call, connect + read
    SERVICE_TIMEOUT_SECONDS: float = 10.0
    DASHBOARD_ORDER_LIMIT: int = 1000
    LOG_LEVEL: str = "INFO"
    GRAPHIQL: bool = True

    class Config:
        env_file = ".env"

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

    @property
    def service_urls(self) -> dict:
        return {
            "auth": self.AUTH_SERVICE_URL,
            "product": self.PRODUCT_SERVICE_URL,
            "order": self.ORDER_SERVICE_URL,
            "category": self.CATEGORY_SERVICE_URL,
            "coupon": self.COUPON_SERVICE_URL,
        }

@lru_cache
def get_settings() -> Settings:
    return Settings()
