"""
config.py — application configuration from environment variables.
All variables use the WORLDLINK_ prefix.
"""
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Logging
    log_level: str = "INFO"

    # Mention detection
    linked_boost: float = 0.1          # added to confidence of already-linked candidates
    match_floor: float = 0.7           # raw similarity below this never surfaces
    default_threshold: float = 0.7
    category_thresholds: dict[str, float] = {"event": 0.8}
    min_span_length: int = 3
    fuzzy_scorer: str = "WRatio"
    fuzzy_limit: int = 5

    # Link workflow
    text_field: str = "story"
    rewrite_text: bool = True

    # CLI
    snapshot_path: Optional[str] = None

    model_config = SettingsConfigDict(env_prefix="WORLDLINK_", env_file=".env", extra="ignore")
