import os
from typing import Callable, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

# Pick up a local .env before any default is read
load_dotenv()

ENVIRONMENTS = ('dev', 'test', 'staging', 'prod')
DEFAULT_TABLE_NAME = "letsdoprenup-data"


def _env(name: str, default: Optional[str] = None) -> Callable[[], Optional[str]]:
    return lambda: os.getenv(name, default)


def _env_flag(name: str) -> Callable[[], bool]:
    return lambda: os.getenv(name, "false").lower() == "true"


class DynamoDBConfig(BaseModel):
    """Connection and naming settings for the wide entity table.

    Every entity kind lives in one table; its physical name is
    ``<prefix>_<environment>_<table_name>``, with the environment segment
    dropped in prod and the prefix dropped when empty.
    """

    model_config = ConfigDict(validate_assignment=True)

    aws_access_key_id: Optional[str] = Field(default_factory=_env("AWS_ACCESS_KEY_ID"))
    aws_secret_access_key: Optional[str] = Field(default_factory=_env("AWS_SECRET_ACCESS_KEY"))
    region_name: str = Field(default_factory=_env("AWS_REGION", "us-east-1"))
    endpoint_url: Optional[str] = Field(
        default_factory=_env("DYNAMODB_ENDPOINT_URL"),
        description="Override for DynamoDB Local / LocalStack"
    )

    table_name: str = Field(default_factory=_env("DYNAMODB_TABLE_NAME", DEFAULT_TABLE_NAME))
    table_prefix: str = Field(default_factory=_env("DYNAMODB_TABLE_PREFIX", ""))
    environment: str = Field(default_factory=_env("ENVIRONMENT", "dev"))

    # botocore client tuning
    max_pool_connections: int = 50
    retries: int = Field(default=3, description="botocore max_attempts")
    timeout_seconds: float = 30.0

    enable_debug_logging: bool = Field(
        default_factory=_env_flag("DYNAMODB_DEBUG_LOGGING"),
        description="Lower the prenup_store logger to DEBUG when a store is built"
    )

    @field_validator('region_name')
    @classmethod
    def validate_region(cls, v):
        if not v:
            raise ValueError("AWS region name is required")
        return v

    @field_validator('environment')
    @classmethod
    def validate_environment(cls, v):
        if v not in ENVIRONMENTS:
            raise ValueError(f"Environment must be one of: {list(ENVIRONMENTS)}")
        return v

    @field_validator('table_name')
    @classmethod
    def validate_table_name(cls, v):
        if not v:
            raise ValueError("Table name is required")
        return v

    def get_table_name(self) -> str:
        """Physical table name, matching the tables created by ``scripts/setup_table.py``."""
        environment = None if self.environment == "prod" else self.environment
        return "_".join(part for part in (self.table_prefix, environment, self.table_name) if part)

    @classmethod
    def from_env(cls) -> 'DynamoDBConfig':
        """Build a configuration purely from environment variables (and ``.env``)."""
        return cls()

    @classmethod
    def for_local_development(cls) -> 'DynamoDBConfig':
        """Configuration for DynamoDB Local on port 8000 with debug logging on."""
        return cls(
            aws_access_key_id="local",
            aws_secret_access_key="local",
            region_name="us-east-1",
            endpoint_url="http://localhost:8000",
            environment="dev",
            enable_debug_logging=True
        )


class AuthConfig(BaseModel):
    """Password hashing and token settings used by the user service."""

    model_config = ConfigDict(validate_assignment=True)

    jwt_secret: Optional[str] = Field(
        default_factory=_env("JWT_SECRET"),
        description="Secret used to sign access tokens"
    )
    jwt_algorithm: str = "HS256"
    jwt_expires_in_days: int = Field(
        default_factory=lambda: int(os.getenv("JWT_EXPIRES_IN_DAYS", "7")),
        ge=1,
        description="Access token lifetime in days"
    )
    bcrypt_rounds: int = Field(default=12, ge=4, le=31, description="bcrypt cost factor")
