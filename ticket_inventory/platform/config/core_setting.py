import os
from pathlib import Path
from typing import List, Optional

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_PROJECT_ROOT = Path(__file__).resolve().parents[3]
_ENV_PATH = _PROJECT_ROOT / '.env'
_ENV_FILE = _ENV_PATH if _ENV_PATH.exists() else (_PROJECT_ROOT / '.env.example')


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_ignore_empty=True,
        extra='ignore',
    )

    PROJECT_NAME: str = 'Ticket Inventory Service'
    VERSION: str = '0.1.0'
    DEBUG: bool = True  # Set to False in production

    # Logging
    LOG_LEVEL: Optional[str] = None  # DEBUG when DEBUG is on, INFO otherwise
    LOG_JSON: bool = False  # one JSON object per line on stdout, for the log collector
    LOG_TO_FILE: Optional[bool] = None  # follows DEBUG when unset

    @property
    def EFFECTIVE_LOG_LEVEL(self) -> str:
        return (self.LOG_LEVEL or ('DEBUG' if self.DEBUG else 'INFO')).upper()

    @property
    def EFFECTIVE_LOG_TO_FILE(self) -> bool:
        return self.DEBUG if self.LOG_TO_FILE is None else self.LOG_TO_FILE

    # Tracing
    DEPLOY_ENV: str = 'local_dev'
    OTEL_EXPORTER_OTLP_ENDPOINT: Optional[str] = None
    OTEL_SAMPLE_RATIO: float = 1.0
    OTEL_CONSOLE_EXPORT: bool = False

    # Security (tokens are issued by the identity service, verified here)
    SECRET_KEY: SecretStr = SecretStr('test_secret_key_change_in_production')
    ALGORITHM: str = 'HS256'

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = []

    @field_validator('BACKEND_CORS_ORIGINS', mode='before')
    @classmethod
    def assemble_cors_origins(cls, v: str | List[str]) -> List[str]:
        if isinstance(v, str) and not v.startswith('['):
            return [i.strip() for i in v.split(',') if i.strip()]
        elif isinstance(v, list):
            return v
        return []

    # PostgreSQL
    POSTGRES_SERVER: str = 'localhost'
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = 'postgres'
    POSTGRES_PASSWORD: SecretStr = SecretStr('postgres')
    POSTGRES_DB: str = 'ticket_inventory'

    # Connection pool
    DB_POOL_SIZE: int = 10
    DB_POOL_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30  # seconds to wait for a pooled connection
    DB_POOL_RECYCLE: int = 1800
    DB_POOL_PRE_PING: bool = True

    @property
    def DATABASE_URL_ASYNC(self) -> str:
        password = self.POSTGRES_PASSWORD.get_secret_value()
        return (
            f'postgresql+asyncpg://{self.POSTGRES_USER}:{password}'
            f'@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}'
        )

    # Kafka
    ENABLE_KAFKA: bool = True
    KAFKA_BOOTSTRAP_SERVERS: str = 'localhost:9092'
    KAFKA_GROUP_ID: str = 'ticket-inventory-service'
    KAFKA_AUTO_OFFSET_RESET: str = 'earliest'
    KAFKA_REPLICATION_FACTOR: int = 1  # Set to 1 for development, 3 for production
    KAFKA_TOPIC_PARTITIONS: int = 6
    KAFKA_TOPIC_RETENTION_MS: int = 7 * 24 * 3600 * 1000
    KAFKA_DLQ_RETENTION_MS: int = 30 * 24 * 3600 * 1000
    KAFKA_CONSUMER_INSTANCE_ID: str = os.getenv(
        'KAFKA_CONSUMER_INSTANCE_ID', f'consumer-{os.getpid()}'
    )

    # Outbound publishing
    MQ_PUBLISH_TIMEOUT_SECONDS: float = 5.0
    MQ_PUBLISH_MAX_ATTEMPTS: int = 3
    MQ_PUBLISH_BACKOFF_SECONDS: float = 0.2  # doubled after each failed attempt
    MQ_REDELIVERY_BATCH_SIZE: int = 100
    MQ_OUTBOX_GRACE_SECONDS: float = 60.0  # younger rows may still be in flight from their request

    # Event catalog (external service)
    EVENT_CATALOG_URL: str = 'http://event-service:3001'
    EVENT_CATALOG_TIMEOUT_SECONDS: float = 3.0

    # Reservations
    RESERVATION_TTL_MINUTES: int = 15
    RESERVATION_SWEEP_INTERVAL_SECONDS: float = 30.0
    RESERVATION_SWEEP_BATCH_SIZE: int = 100

    DEFAULT_CURRENCY: str = 'EUR'

    @property
    def KAFKA_PRODUCER_CONFIG(self) -> dict:
        return {
            'bootstrap.servers': self.KAFKA_BOOTSTRAP_SERVERS,
            'enable.idempotence': True,
            'acks': 'all',
            'retries': 3,
            'linger.ms': 10,
            'compression.type': 'gzip',
            # Undelivered messages fail within the publish timeout instead of librdkafka's 300 s
            'message.timeout.ms': int(self.MQ_PUBLISH_TIMEOUT_SECONDS * 1000),
        }

    @property
    def KAFKA_CONSUMER_CONFIG(self) -> dict:
        return {
            'bootstrap.servers': self.KAFKA_BOOTSTRAP_SERVERS,
            'group.id': self.KAFKA_GROUP_ID,
            'auto.offset.reset': self.KAFKA_AUTO_OFFSET_RESET,
            'enable.auto.commit': False,
        }


settings = Settings()  # type: ignore
