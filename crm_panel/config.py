import logging
import os
from typing import Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

# Environment variable -> Settings field
REQUIRED_ENV = {
    "COSMOSDB_ENDPOINT": "cosmosdb_endpoint",
    "COSMOSDB_DATABASE": "cosmosdb_database",
    "AZURE_STORAGE_ACCOUNT_URL": "storage_account_url",
    "SESSION_SECRET": "session_secret",
}

OPTIONAL_ENV = {
    "COSMOSDB_CONTAINER_PRODUCTS": "products_container",
    "COSMOSDB_CONTAINER_INVENTORY": "inventory_container",
    "COSMOSDB_CONTAINER_USERS": "users_container",
    "AZURE_STORAGE_IMAGE_CONTAINER": "image_container",
    "SESSION_HTTPS_ONLY": "session_https_only",
    "LOG_LEVEL": "log_level",
}


class Settings(BaseModel):
    """
    Process-wide configuration for the panel.

    Built once at startup with `Settings.from_env()`; creation fails fast
    when a required variable is absent.
    """

    cosmosdb_endpoint: str
    cosmosdb_database: str
    storage_account_url: str
    session_secret: str
    products_container: str = "products"
    inventory_container: str = "inventario"
    users_container: str = "users"
    image_container: str = "product-images"
    session_https_only: bool = False
    session_cookie: str = "crm_session"
    login_path: str = "/login"
    log_level: str = "INFO"

    model_config = ConfigDict(extra="forbid", frozen=True)

    @field_validator("log_level")
    @classmethod
    def check_log_level(cls, value: str) -> str:
        value = value.strip().upper()
        if not isinstance(logging.getLevelName(value), int):
            raise ValueError(f"Unknown log level '{value}'")
        return value

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Read settings from the environment (and a local .env file, if any).

        Raises:
            ValueError: If one or more required variables are missing
        """
        if environ is None:
            load_dotenv()
            environ = os.environ

        missing = [name for name in REQUIRED_ENV if not environ.get(name)]
        if missing:
            raise ValueError(
                f"Missing required environment variables: {', '.join(missing)}"
            )

        values = {field: environ[name] for name, field in REQUIRED_ENV.items()}
        for name, field in OPTIONAL_ENV.items():
            if environ.get(name):
                values[field] = environ[name]
        return cls(**values)
