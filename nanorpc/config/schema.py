"""Configuration schema using Pydantic.

Single data model for server options; persisted as camelCase JSON
(default ~/.nanorpc/config.json) and overridable through NANORPC_* env vars.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerConfig(BaseSettings):
    """Root configuration for a nanorpc server."""

    model_config = SettingsConfigDict(env_prefix="NANORPC_", extra="ignore")

    host: str = "127.0.0.1"
    port: int = 4000
    path: str = "socket.io"  # Socket.IO endpoint path
    # Shared secret; when set, every packet is sealed with AES-GCM.
    secret: str = ""
    # Serialize every handler invocation behind one global FIFO lock.
    queued: bool = False
    # Reverse-call timeout in milliseconds; 0 waits forever.
    timeout: int = Field(default=0, ge=0)
    cors_allowed_origins: list[str] | str = "*"
    transports: list[str] = Field(default_factory=lambda: ["websocket"])
    log_level: str = "INFO"
    log_file: str = ""  # Extra rotating log sink path (optional)
