"""vibechecc Engine — Configuration, error hierarchy, logging."""

from vibechecc.engine.config import PlatformConfig, TableConfig, get_table_config  # noqa: F401
from vibechecc.engine.errors import (  # noqa: F401
    ConfigError,
    DataSourceError,
    TableConfigError,
    TableModeError,
    VibecheccError,
)

__all__ = [
    "PlatformConfig",
    "TableConfig",
    "get_table_config",
    "ConfigError",
    "DataSourceError",
    "TableConfigError",
    "TableModeError",
    "VibecheccError",
]
