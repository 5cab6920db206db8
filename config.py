# SchoolGate - configuration
from pathlib import Path
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    secret_key: str = "dev-secret-change-in-production"
    log_level: str = "INFO"
    # Empty value disables the JSONL audit file
    audit_log_file: Optional[Path] = Path("./data/audit_log.jsonl")
    audit_max_entries: int = 1000  # in-memory retention cap; 0 keeps everything
    audit_retention_days: Optional[int] = None  # age-based prune at startup

    class Config:
        env_file = ".env"
        extra = "ignore"

    @field_validator("audit_log_file", mode="before")
    @classmethod
    def _blank_disables(cls, v):
        return None if v in ("", None) else v


def get_settings() -> Settings:
    return Settings()
