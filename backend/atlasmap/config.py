"""Application configuration from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    atlasmap_env: str = "development"
    atlasmap_log_level: str = "info"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    # Batch runs
    checkpoint_dir: str = "data/checkpoints"
    random_seed: int = 42
    world_scale: float = 20000.0
    min_similarity: float = 0.25

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "env_prefix": ""}


settings = Settings()
