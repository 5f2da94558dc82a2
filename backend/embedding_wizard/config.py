from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "Embedding Wizard"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list[str] = ["*"]

    # Search settings backend
    api_base_url: str = "http://localhost:8080/api"
    request_timeout: float = 30.0

    # Baseline polling (seconds)
    poll_interval: float = 5.0

    # Post-replace redirect
    redirect_url: str = "/admin/configuration/search"
    redirect_delay: float = 2.0  # upper bound before redirecting
    redirect_settle_interval: float = 0.25  # secondary settings poll cadence

    # Low-accuracy model warning
    low_accuracy_warning: bool = True
    low_accuracy_markers: list[str] = ["e5"]

    # Abandoned wizard sessions (seconds)
    session_ttl: float = 3600.0
    session_cleanup_interval: float = 300.0

    # Request body size limit (bytes)
    max_body_size: int = 1024 * 1024  # 1MB

    model_config = {"env_prefix": "EMBEDDING_WIZARD_"}


settings = Settings()
