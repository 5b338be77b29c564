from pydantic_settings import BaseSettings
from pathlib import Path
from typing import Optional


class Settings(BaseSettings):
    app_title: str = "Zen QA"

    # CSV tables, snapshots and generated sources all land here
    data_dir: str = "./data"
    static_dir: Optional[str] = None
    cors_origins: str = "*"
    log_level: str = "INFO"

    min_story_length: int = 10
    max_story_length: int = 5000
    max_uploaded_test_cases: int = 100
    max_test_case_name_length: int = 500
    story_ref_chars: int = 100

    def get_cors_origins(self) -> list[str]:
        """Returns the configured origins, ignoring blanks."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def get_data_path(self) -> Path:
        return Path(self.data_dir).expanduser()

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


def get_settings() -> Settings:
    """Fresh settings every call, so .env edits take effect on reload."""
    return Settings()
