"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Every tunable in one dataclass. Defaults reproduce the stock service:
port 3000 on all interfaces, two allow-listed CORS origins, 100 requests
per 15 minutes per client.

    config = ServerConfig(port=8080, log_level="DEBUG")
    config.validate()            # raises ValueError on nonsense
    server = create_app(config)

The command line (``python -m userapi --port 8080``) is the only way to
override values from outside; there is no config file and no environment
variable lookup.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import List, Optional


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ServerConfig:
    """
    Configuration for the users API server.

    NETWORK SETTINGS
    - host, port, backlog, buffer_size, timeout

    HTTP SETTINGS
    - keep_alive, keep_alive_timeout, max_request_size

    THREADING SETTINGS
    - min_workers, max_workers

    APPLICATION POLICY
    - cors_origins, rate_limit_max, rate_limit_window, body_limit,
      compression_threshold
    """

    # ─────────────────────────────────────────────────────────────────────
    # Network
    # ─────────────────────────────────────────────────────────────────────
    host: str = "0.0.0.0"
    port: int = 3000  # 0 asks the OS for a free port
    backlog: int = 128
    buffer_size: int = 8192
    timeout: Optional[float] = 30.0

    # ─────────────────────────────────────────────────────────────────────
    # HTTP
    # ─────────────────────────────────────────────────────────────────────
    keep_alive: bool = True
    keep_alive_timeout: float = 5.0
    max_request_size: int = 10 * 1024 * 1024

    # ─────────────────────────────────────────────────────────────────────
    # Threading
    # ─────────────────────────────────────────────────────────────────────
    min_workers: int = 4
    max_workers: int = 16

    log_level: str = "INFO"
    server_name: str = "userapi/1.0"

    # ─────────────────────────────────────────────────────────────────────
    # Application policy
    # ─────────────────────────────────────────────────────────────────────
    cors_origins: List[str] = field(
        default_factory=lambda: ["http://example.com", "http://another-example.com"]
    )
    rate_limit_max: int = 100
    rate_limit_window: float = 15 * 60.0
    body_limit: int = 100 * 1024
    compression_threshold: int = 1024

    def validate(self) -> None:
        """Reject impossible values at startup rather than at first use."""
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.min_workers < 1:
            raise ValueError("min_workers must be >= 1")

        if self.max_workers < self.min_workers:
            raise ValueError("max_workers must be >= min_workers")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")

        if self.rate_limit_max < 1:
            raise ValueError("rate_limit_max must be >= 1")

        if self.rate_limit_window <= 0:
            raise ValueError("rate_limit_window must be > 0")

        if self.body_limit < 0:
            raise ValueError("body_limit must be >= 0")

        if self.body_limit > self.max_request_size:
            raise ValueError("body_limit cannot exceed max_request_size")
