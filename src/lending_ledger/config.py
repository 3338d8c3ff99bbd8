"""Configuration management for the Lending Ledger.

Settings are loaded with pydantic-settings:
1. Server Metadata - Name and version announced by the MCP server
2. Storage - SQLAlchemy database URL (in-memory SQLite by default)
3. Notifications - Which notifier delivers ledger events
4. Logging - Level and debug switches
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerConfig(BaseSettings):
    """Lending Ledger configuration.

    Every field can be overridden with a ``LENDING_LEDGER_`` prefixed
    environment variable or from a local ``.env`` file.
    """

    model_config = SettingsConfigDict(
        # Use LENDING_LEDGER_ prefix for all env vars
        env_prefix="LENDING_LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Server Metadata ===

    server_name: str = Field(
        default="lending-ledger",
        description="MCP server name used in protocol handshake",
        pattern=r"^[a-z0-9-]+$",
    )

    server_version: str = Field(
        default="0.1.0",
        description="Server version for capability negotiation",
        pattern=r"^\d+\.\d+\.\d+(-[a-zA-Z0-9.]+)?$",
    )

    transport: str = Field(
        default="stdio",
        description="Transport used by the MCP server",
        pattern=r"^stdio$",
    )

    # === Storage Configuration ===

    database_url: str = Field(
        default="sqlite://",
        description="SQLAlchemy database URL; the default keeps all state in memory",
    )

    # === Notification Configuration ===

    notifier: str = Field(
        default="log",
        description="Notifier used for overdue and reservation events (log or outbox)",
        pattern=r"^(log|outbox)$",
    )

    # === Development Configuration ===

    debug: bool = Field(
        default=False,
        description="Enable debug logging",
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
        pattern=r"^(DEBUG|INFO|WARNING|ERROR)$",
    )

    # === Validation Methods ===

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept log levels in any case."""
        return v.upper() if isinstance(v, str) else v

    @field_validator("server_name")
    @classmethod
    def validate_server_name(cls, v: str) -> str:
        """Server names must stay short enough for client menus."""
        if len(v) < 3:
            raise ValueError("Server name must be at least 3 characters")
        if len(v) > 50:
            raise ValueError("Server name must not exceed 50 characters")
        return v

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Only SQLite URLs are supported; state is not meant to outlive the process."""
        if not v.startswith("sqlite"):
            raise ValueError("Only sqlite database URLs are supported")
        return v

    # === Computed Properties ===

    @property
    def effective_log_level(self) -> str:
        """Debug mode always wins over the configured level."""
        return "DEBUG" if self.debug else self.log_level

    @property
    def server_info(self) -> dict[str, str]:
        """Server information for the MCP handshake."""
        return {
            "name": self.server_name,
            "version": self.server_version,
            "transport": self.transport,
        }


# === Global Configuration Instance ===


class _ConfigStore:
    """Internal storage for configuration singleton."""

    _instance: LedgerConfig | None = None


def get_config() -> LedgerConfig:
    """Get or create the global configuration instance."""
    if _ConfigStore._instance is None:  # type: ignore[reportPrivateUsage]
        _ConfigStore._instance = LedgerConfig()  # type: ignore[reportPrivateUsage]
    return _ConfigStore._instance  # type: ignore[reportPrivateUsage]


def reset_config() -> None:
    """Reset configuration (useful for testing)."""
    _ConfigStore._instance = None  # type: ignore[reportPrivateUsage]
