"""
=============================================================================
SERVICE CONFIGURATION
=============================================================================

Centralized configuration management for the service.

The configuration is a tree of four groups, each a plain dataclass:

    Config
    ├── server      host, port, connection limit, socket timeout, TLS paths
    ├── database    connection URL and pool settings
    ├── logging     level, format, optional log file
    └── security    JWT secret, rate limiting, CORS

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Applied in this order (later wins):                               │
    │                                                                      │
    │   1. Default values (in the dataclasses below)                      │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── SERVER_HOST, SERVER_PORT, DATABASE_URL,                    │
    │          LOG_LEVEL, JWT_SECRET                                      │
    │                                                                      │
    │   3. JSON configuration file                                        │
    │      └── CONFIG_FILE=/etc/servicekit.json                           │
    │      └── REPLACES the whole configuration, it is not merged         │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Validation runs last. An invalid configuration is fatal at startup: we
fail fast instead of discovering a bad secret hours into a deployment.

=============================================================================
"""

import json
import os
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, List, Optional

from .errors import ConfigError, IoError, SerializationError


VALID_LOG_LEVELS = ("trace", "debug", "info", "warn", "error")
"""Log levels accepted by logging.level, in increasing severity."""


@dataclass
class ServerConfig:
    """Network settings for the listening socket."""

    host: str = "127.0.0.1"
    """
    The IP address to bind to.
    - "127.0.0.1" - Localhost only (development)
    - "0.0.0.0" - All network interfaces (containers, production)
    """

    port: int = 8080
    """The TCP port to listen on (1-65535)."""

    max_connections: int = 1000
    """
    Maximum number of connections handled at the same time.
    Connections beyond this limit get 503 Service Unavailable.
    """

    timeout: int = 30
    """Socket read/write timeout in seconds for each connection."""

    tls_enabled: bool = False
    tls_cert_path: Optional[str] = None
    tls_key_path: Optional[str] = None


@dataclass
class DatabaseConfig:
    """Database settings. Declared for applications built on the template."""

    url: str = "postgresql://localhost/myapp"
    max_connections: int = 10
    timeout: int = 30
    pool_enabled: bool = True


@dataclass
class LoggingConfig:
    """Logging settings, consumed by servicekit.logs.configure_logging."""

    level: str = "info"
    """One of trace, debug, info, warn, error."""

    format: str = "pretty"
    """
    Log line format:
    - "pretty"  - timestamp, level and logger name (human reading)
    - "compact" - level and logger name only
    - "json"    - one JSON object per line (log aggregators)
    """

    file_path: Optional[str] = None
    """Also write logs to this file when set."""

    console_enabled: bool = True
    structured: bool = False
    """Force JSON output regardless of format."""


@dataclass
class SecurityConfig:
    """Security settings: token secret, rate limiting and CORS."""

    jwt_secret: str = "dev-only-insecure-secret-change-me-now"
    """
    Secret for signing tokens. Must be at least 32 characters.
    NEVER ship the default: set JWT_SECRET in the environment.
    """

    jwt_expiration: int = 24
    """Token lifetime in hours."""

    rate_limiting_enabled: bool = True
    rate_limit_rpm: int = 100
    """Requests admitted per minute when rate limiting is enabled."""

    cors_enabled: bool = True
    cors_origins: List[str] = field(default_factory=lambda: ["http://localhost:3000"])


@dataclass
class Config:
    """
    Complete application configuration.

    =========================================================================
    USAGE
    =========================================================================

        # Defaults + environment + optional CONFIG_FILE, then validate
        config = Config.load()

        # Plain defaults (tests, embedding)
        config = Config()
        config.server.port = 9000
        config.validate()

    =========================================================================
    """

    server: ServerConfig = field(default_factory=ServerConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    security: SecurityConfig = field(default_factory=SecurityConfig)

    @classmethod
    def load(cls) -> "Config":
        """
        Load configuration from environment variables and config file.

        Raises:
            ConfigError: Invalid environment value or failed validation.
            IoError: CONFIG_FILE could not be read.
            SerializationError: CONFIG_FILE is not a valid configuration.
        """
        config = cls()
        config.load_from_env()

        config_path = os.environ.get("CONFIG_FILE")
        if config_path:
            config.load_from_file(config_path)

        config.validate()
        return config

    def load_from_env(self) -> None:
        """
        Override fields from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        SERVER_HOST     Server host
        SERVER_PORT     Server port (integer 0-65535)
        DATABASE_URL    Database URL
        LOG_LEVEL       Logging level
        JWT_SECRET      JWT signing secret

        =====================================================================
        """
        host = os.environ.get("SERVER_HOST")
        if host is not None:
            self.server.host = host

        port = os.environ.get("SERVER_PORT")
        if port is not None:
            try:
                self.server.port = int(port)
            except ValueError:
                raise ConfigError("Invalid SERVER_PORT") from None
            if not 0 <= self.server.port <= 65535:
                raise ConfigError("Invalid SERVER_PORT")

        db_url = os.environ.get("DATABASE_URL")
        if db_url is not None:
            self.database.url = db_url

        log_level = os.environ.get("LOG_LEVEL")
        if log_level is not None:
            self.logging.level = log_level

        jwt_secret = os.environ.get("JWT_SECRET")
        if jwt_secret is not None:
            self.security.jwt_secret = jwt_secret

    def load_from_file(self, path: str) -> None:
        """
        Replace this configuration with the contents of a JSON file.

        The file must contain all four groups with all of their fields;
        it is not merged with the current values.
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                content = f.read()
        except OSError as e:
            raise IoError.wrap(e)

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise SerializationError.wrap(e)

        file_config = Config.from_dict(data)

        self.server = file_config.server
        self.database = file_config.database
        self.logging = file_config.logging
        self.security = file_config.security

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ConfigError: Describing the first invalid value found.
        """
        if self.server.port == 0:
            raise ConfigError("Server port cannot be 0")
        if not 1 <= self.server.port <= 65535:
            raise ConfigError(f"Server port must be 1-65535, got {self.server.port}")

        if not self.database.url:
            raise ConfigError("Database URL cannot be empty")

        if len(self.security.jwt_secret) < 32:
            raise ConfigError("JWT secret must be at least 32 characters")

        if self.logging.level not in VALID_LOG_LEVELS:
            raise ConfigError(
                f"Invalid log level: {self.logging.level}. "
                f"Valid levels: {list(VALID_LOG_LEVELS)}"
            )

    def server_address(self) -> str:
        """Get server bind address as "host:port"."""
        return f"{self.server.host}:{self.server.port}"

    def is_development(self) -> bool:
        """True unless APP_ENV says otherwise."""
        return os.environ.get("APP_ENV", "development") == "development"

    def is_production(self) -> bool:
        return os.environ.get("APP_ENV", "development") == "production"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON file layout."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Any) -> "Config":
        """
        Build a configuration from the JSON file layout.

        Every group and every field is required. Unknown keys are ignored.

        Raises:
            SerializationError: Missing field or wrong value type.
        """
        if not isinstance(data, dict):
            raise SerializationError("expected a JSON object at the top level")

        config = cls(
            server=_build_group(ServerConfig, data, "server"),
            database=_build_group(DatabaseConfig, data, "database"),
            logging=_build_group(LoggingConfig, data, "logging"),
            security=_build_group(SecurityConfig, data, "security"),
        )

        if not 0 <= config.server.port <= 65535:
            raise SerializationError(
                f"server.port out of range: {config.server.port}"
            )
        return config


# ─────────────────────────────────────────────────────────────────────────────
# FILE DECODING
# ─────────────────────────────────────────────────────────────────────────────
# Field types are checked against the dataclass annotations. bool is a
# subclass of int in Python, so integer fields reject booleans explicitly.

_SCALAR_TYPES = {
    str: (str,),
    int: (int,),
    bool: (bool,),
    Optional[str]: (str, type(None)),
}


def _build_group(group_cls, data: Dict[str, Any], section: str):
    raw = data.get(section)
    if raw is None:
        raise SerializationError(f"missing field `{section}`")
    if not isinstance(raw, dict):
        raise SerializationError(f"`{section}` must be a JSON object")

    values = {}
    for f in fields(group_cls):
        if f.name not in raw:
            raise SerializationError(f"missing field `{section}.{f.name}`")
        value = raw[f.name]
        _check_type(f.type, value, f"{section}.{f.name}")
        values[f.name] = list(value) if isinstance(value, list) else value

    return group_cls(**values)


def _check_type(annotation, value: Any, name: str) -> None:
    if annotation == List[str]:
        if isinstance(value, list) and all(isinstance(v, str) for v in value):
            return
        raise SerializationError(f"`{name}` must be a list of strings")

    allowed = _SCALAR_TYPES[annotation]
    if isinstance(value, bool) and bool not in allowed:
        raise SerializationError(f"`{name}` has the wrong type")
    if not isinstance(value, allowed):
        raise SerializationError(f"`{name}` has the wrong type")
