"""
Core configuration and settings for the Rating Service
Following FastAPI best practices for configuration management
"""

from typing import Optional
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Config(BaseSettings):
    """Application configuration with environment variable support"""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",  # Allow extra fields to be ignored
    )

    # Service information
    service_name: str = Field(default="rating-service")
    service_version: str = Field(default="1.0.0")
    api_version: str = Field(default="1.0.0")
    environment: str = Field(default="development")

    # Server configuration
    port: int = Field(default=8080)
    host: str = Field(default="0.0.0.0")

    # Storage configuration: "mongodb" or "memory"
    storage_backend: str = Field(default="mongodb", pattern="^(mongodb|memory)$")

    # Database configuration
    mongodb_host: str = Field(default="localhost")
    mongodb_port: int = Field(default=27017)
    mongodb_username: Optional[str] = Field(default=None)
    mongodb_password: Optional[str] = Field(default=None)
    mongodb_database: str = Field(default="ratingdb")
    mongodb_auth_source: str = Field(default="admin")
    # Multi-document transactions need a replica set
    mongodb_replica_set: Optional[str] = Field(default="rs0")
    mongodb_timeout_ms: int = Field(default=5000, ge=1)

    @property
    def mongodb_url(self) -> str:
        """Construct MongoDB connection URL"""
        params = [f"serverSelectionTimeoutMS={self.mongodb_timeout_ms}"]
        if self.mongodb_replica_set:
            params.append(f"replicaSet={self.mongodb_replica_set}")
        if self.mongodb_username and self.mongodb_password:
            params.append(f"authSource={self.mongodb_auth_source}")
            credentials = f"{self.mongodb_username}:{self.mongodb_password}@"
        else:
            credentials = ""
        return (
            f"mongodb://{credentials}{self.mongodb_host}:{self.mongodb_port}"
            f"/{self.mongodb_database}?{'&'.join(params)}"
        )

    # Rating policy
    rating_min_value: int = Field(default=1)
    rating_max_value: int = Field(default=5)

    # Concurrency configuration
    max_conflict_retries: int = Field(default=3, ge=0)
    conflict_retry_backoff_ms: int = Field(default=10, ge=0)
    lock_timeout_seconds: float = Field(default=5.0, gt=0)

    # Entities registered with empty aggregates on startup ("1".."N")
    bootstrap_entity_count: int = Field(default=0, ge=0)

    # Logging configuration
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console")
    log_to_file: bool = Field(default=False)
    log_to_console: bool = Field(default=True)
    log_file_path: str = Field(default="logs/rating-service.log")

    # Request tracing
    correlation_id_header: str = Field(default="X-Correlation-ID")
    tracing_enabled: bool = Field(default=True)

    @model_validator(mode="after")
    def check_rating_range(self):
        if self.rating_min_value > self.rating_max_value:
            raise ValueError(
                f"RATING_MIN_VALUE ({self.rating_min_value}) must not exceed "
                f"RATING_MAX_VALUE ({self.rating_max_value})"
            )
        return self


# Global config instance
config = Config()
