"""
# Configuration Module

Settings for the MongoDB guide, built on **Pydantic Settings**.

## Loading Hierarchy

Higher layers override lower layers:

1. **Environment variables** (e.g. `export MONGODB_HOST=db.internal`)
2. **`MONGO_SESSION_CONFIG_PATH`**: explicit path to a dotenv-style file
3. **`.env` file** in the project root (compatible with `docker-compose.yml`)
4. **Defaults** declared on `Settings`

## Connection Settings

```
MONGODB_URL: Optional[str]              # Full connection string, wins over discrete fields
MONGODB_HOST: str = "localhost"
MONGODB_PORT: int = 27017
MONGODB_USERNAME: Optional[str] = None
MONGODB_PASSWORD: Optional[SecretStr] = None
MONGODB_AUTH_SOURCE: str = "admin"
MONGODB_DATABASE: str = "biblioteca"
MONGODB_CONNECTION_TIMEOUT: int = 10000         # ms
MONGODB_SERVER_SELECTION_TIMEOUT: int = 5000    # ms
```

Example `.env` matching the bundled `docker-compose.yml`:

```
MONGODB_HOST=localhost
MONGODB_PORT=27017
MONGODB_USERNAME=usuario
MONGODB_PASSWORD=micontraseña
MONGODB_DATABASE=biblioteca
```

## Usage

```python
from mongo_session.config import settings

print(settings.MONGODB_DATABASE)
password = settings.MONGODB_PASSWORD.get_secret_value() if settings.MONGODB_PASSWORD else None
```

Note:
    This module must not import the logging manager at module level. The logging
    manager reads `LOG_LEVEL` from here, so config has to load first.
"""

import os
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Constants ---
DEFAULT_ENV_FILENAME: str = ".env"
CONFIG_ENV_VAR: str = "MONGO_SESSION_CONFIG_PATH"
PROJECT_ROOT: Path = Path(__file__).resolve().parents[2]
VALID_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


# --- Config file discovery (no logging) ---
def get_config_path() -> Optional[str]:
    """
    Determine the configuration file path.

    Checks, in order:
    1.  **Environment Variable**: `MONGO_SESSION_CONFIG_PATH` (if set and the file exists).
    2.  **Dotenv Config**: `.env` in the project root directory.
    3.  **Fallback**: `None`, meaning environment variables only.

    Returns:
        Optional[str]: The path to the configuration file, or `None` if not found.
    """
    env_path: Optional[str] = os.environ.get(CONFIG_ENV_VAR)
    if env_path and os.path.exists(env_path):
        return env_path
    env_path_file: Path = PROJECT_ROOT / DEFAULT_ENV_FILENAME
    if env_path_file.exists():
        return str(env_path_file)
    return None


CONFIG_PATH: Optional[str] = get_config_path()
if CONFIG_PATH:
    load_dotenv(dotenv_path=CONFIG_PATH, override=False)


class Settings(BaseSettings):
    """
    Application configuration settings model.

    **Configuration Groups:**
    *   **Connection**: URL or discrete host/port/credentials/auth source.
    *   **Timeouts**: driver-level connect and server selection timeouts.
    *   **Logging**: root level for the `mongo_session` loggers.

    The session helper makes a single connection attempt, so the timeouts here are
    the only bound on how long a connect can block.
    """

    model_config = SettingsConfigDict(
        env_file=CONFIG_PATH if CONFIG_PATH else None,
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="allow",
    )

    # MongoDB connection
    MONGODB_URL: Optional[str] = None
    MONGODB_HOST: str = "localhost"
    MONGODB_PORT: int = 27017
    MONGODB_DATABASE: str = "biblioteca"
    MONGODB_CONNECTION_TIMEOUT: int = 10000
    MONGODB_SERVER_SELECTION_TIMEOUT: int = 5000

    # Authentication (optional)
    MONGODB_USERNAME: Optional[str] = None
    MONGODB_PASSWORD: Optional[SecretStr] = None
    MONGODB_AUTH_SOURCE: str = "admin"

    # Logging
    LOG_LEVEL: str = "INFO"

    @field_validator("MONGODB_URL", mode="before")
    @classmethod
    def blank_url_is_none(cls, v: Any) -> Any:
        """Treat an empty or whitespace-only URL as unset."""
        if v is None or not str(v).strip():
            return None
        return str(v).strip()

    @field_validator("MONGODB_PORT", mode="before")
    @classmethod
    def validate_port(cls, v: Any, info: Any) -> int:
        """
        Validate that the port is a valid TCP port.

        Raises:
            ValueError: If the port is outside 1-65535.
        """
        port = int(v)
        if port < 1 or port > 65535:
            raise ValueError(f"{info.field_name} must be between 1 and 65535")
        return port

    @field_validator("MONGODB_CONNECTION_TIMEOUT", "MONGODB_SERVER_SELECTION_TIMEOUT", mode="before")
    @classmethod
    def validate_timeout_values(cls, v: Any, info: Any) -> int:
        """
        Validate that driver timeouts (milliseconds) are positive.

        Raises:
            ValueError: If the timeout is zero or negative.
        """
        timeout = int(v)
        if timeout <= 0:
            raise ValueError(f"{info.field_name} must be a positive number of milliseconds")
        return timeout

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def validate_log_level(cls, v: Any) -> str:
        level = str(v).upper()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {sorted(VALID_LOG_LEVELS)}")
        return level

    @property
    def has_credentials(self) -> bool:
        """Whether both a username and a password are configured."""
        return bool(self.MONGODB_USERNAME and self.MONGODB_PASSWORD)


# Global settings instance
settings: Settings = Settings()
