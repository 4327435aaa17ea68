"""
Runtime configuration.

Settings are read from a YAML file and then overridden by DB_* / LOG_*
environment variables, so a container only needs to set DB_PASSWORD.

Expected YAML format:
```yaml
database:
  host: localhost
  port: 5432
  name: inventory
  user: stockflow
  min_pool_size: 2
  max_pool_size: 10
ingestion:
  source: csv
  list_jobs_limit: 50
logging:
  level: INFO
  format: json
```
"""

import os
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field

DEFAULT_CONFIG_PATH = Path("config/stockflow.yaml")


class DatabaseSettings(BaseModel):
    host: str = "localhost"
    port: int = Field(5432, gt=0)
    name: str = "inventory"
    user: str = "stockflow"
    password: str | None = None
    min_pool_size: int = Field(2, ge=1)
    max_pool_size: int = Field(10, ge=1)
    timeout: float = Field(30.0, gt=0)

    def pool_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for DatabaseConnectionPool"""
        return {
            "host": self.host,
            "port": self.port,
            "database": self.name,
            "user": self.user,
            "password": self.password,
            "min_size": self.min_pool_size,
            "max_size": self.max_pool_size,
            "timeout": self.timeout,
        }


class IngestionSettings(BaseModel):
    source: str = Field("csv", min_length=1)
    list_jobs_limit: int = Field(50, gt=0)


class LoggingSettings(BaseModel):
    level: str = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseModel):
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    ingestion: IngestionSettings = Field(default_factory=IngestionSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


ENV_OVERRIDES = {
    "DB_HOST": ("database", "host"),
    "DB_PORT": ("database", "port"),
    "DB_NAME": ("database", "name"),
    "DB_USER": ("database", "user"),
    "DB_PASSWORD": ("database", "password"),
    "LOG_LEVEL": ("logging", "level"),
    "LOG_FORMAT": ("logging", "format"),
}


def load_settings(config_path: str | Path | None = None) -> Settings:
    """
    Load settings from YAML and the environment.

    Args:
        config_path: YAML file to read. Defaults to $STOCKFLOW_CONFIG, then
            config/stockflow.yaml. A missing default file is not an error.

    Returns:
        Validated Settings instance

    Raises:
        FileNotFoundError: If an explicitly requested file does not exist
        ValueError: If the YAML top level is not a mapping
    """
    explicit = config_path or os.getenv("STOCKFLOW_CONFIG")
    path = Path(explicit) if explicit else DEFAULT_CONFIG_PATH

    raw: dict[str, Any] = {}
    if path.exists():
        with open(path) as f:
            loaded = yaml.safe_load(f)
        if loaded is not None and not isinstance(loaded, dict):
            raise ValueError(f"Configuration file {path} must contain a mapping")
        raw = loaded or {}
    elif explicit:
        raise FileNotFoundError(f"Configuration file not found: {path}")

    for env_var, (section, key) in ENV_OVERRIDES.items():
        value = os.getenv(env_var)
        if value:
            raw.setdefault(section, {})[key] = value

    return Settings.model_validate(raw)
