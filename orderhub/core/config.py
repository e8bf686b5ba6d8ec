from uuid import uuid4

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: str
    rabbitmq_url: str
    users_service_url: str = "http://localhost:5001"
    products_service_url: str = "http://localhost:5002"
    service_name: str = "order-service"
    instance_id: str = Field(default_factory=lambda: uuid4().hex)
    log_level: str = "INFO"
    cors_origins: str = "*"
    rabbitmq_prefetch_count: int = 10
    db_pool_size: int = 20
    db_max_overflow: int = 10
    catalog_timeout_seconds: float = 30.0
    order_generator_enabled: bool = True
    order_generator_interval_seconds: float = 30.0
    stream_keepalive_seconds: float = 15.0


settings = Settings()
