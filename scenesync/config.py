"""
SceneSync Application Configuration
===================================

PURPOSE:
    Pydantic-Settings based configuration for the scene sync backend.
    All settings can be overridden via environment variables (SCENESYNC_ prefix).

UPDATED:
    v1.1 - Added kv_backend selection (memory / sql) and the SQL database URL.
    v1.2 - Identity provider URL + timeout moved here from the resolver.
"""

import logging
from typing import Literal

from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

_DEFAULT_IDENTITY_PROVIDER_URL = "https://api.spotify.com/v1/me"


class Settings(BaseSettings):
    app_name: str = "SceneSync"
    debug: bool = False

    # Identity provider ("who am I" endpoint). The bearer token from the
    # client is forwarded as-is; the JSON body must carry an "id" field.
    identity_provider_url: str = _DEFAULT_IDENTITY_PROVIDER_URL
    identity_timeout_s: float = 10.0

    # Key-value backend
    kv_backend: Literal["memory", "sql"] = "sql"
    database_url: str = "sqlite:///data/scenesync.db"

    # Storage layout. Changing the prefix orphans every stored record.
    storage_key_prefix: str = "scenes:"

    # Payload limits
    max_scenes: int = 50
    max_payload_bytes: int = 50 * 1024  # 50KB

    # Logging
    log_level: str = "INFO"
    log_dir: str = "logs"
    log_file: str = "scenesync.jsonl"
    log_to_file: bool = False

    class Config:
        env_file = ".env"
        env_prefix = "SCENESYNC_"


settings = Settings()

if settings.kv_backend == "memory":
    logger.warning(
        "SCENESYNC_KV_BACKEND=memory: scenes are kept in process memory "
        "and will be LOST on restart."
    )
