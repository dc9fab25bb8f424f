from __future__ import annotations

import re

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_PROJECT_RE = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class SyncSettings(BaseSettings):
    """
    Environment-driven settings for the comment thread sync step.

    The access token is read once at process start and handed to the HTTP
    client; nothing changes it afterwards.
    """

    model_config = SettingsConfigDict(env_prefix="", env_file=".env", extra="ignore")

    # ---- Tracker ----
    github_access_token: SecretStr = Field(alias="PWEBSITE_GITHUB_ACCESS_TOKEN")
    project: str = Field(alias="COMMENTS_REPO")

    api_base_url: str = Field(default="https://api.github.com", alias="COMMENTS_API_BASE_URL")
    web_base_url: str = Field(default="https://github.com", alias="COMMENTS_WEB_BASE_URL")

    request_timeout_sec: float = Field(default=15.0, gt=0, alias="COMMENTS_REQUEST_TIMEOUT_SEC")
    per_page: int = Field(default=100, ge=1, le=100, alias="COMMENTS_PER_PAGE")
    user_agent: str = Field(default="comment-threads/0.1", alias="COMMENTS_USER_AGENT")

    # Comma separated, applied to newly created threads only
    issue_labels: str = Field(default="", alias="COMMENTS_ISSUE_LABELS")

    # ---- Posts ----
    posts_dir: str = Field(default="_posts", alias="COMMENTS_POSTS_DIR")
    post_glob: str = Field(default="*.md", alias="COMMENTS_POST_GLOB")
    write_back: bool = Field(default=True, alias="COMMENTS_WRITE_BACK")

    log_level: str = Field(default="INFO", alias="COMMENTS_LOG_LEVEL")

    @field_validator("project")
    @classmethod
    def _check_project(cls, v: str) -> str:
        v = v.strip().strip("/")
        if not _PROJECT_RE.match(v):
            raise ValueError(f"expected 'owner/repo', got {v!r}")
        return v

    @field_validator("github_access_token")
    @classmethod
    def _check_token(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value().strip():
            raise ValueError("access token is empty")
        return v

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in _LOG_LEVELS:
            raise ValueError(f"expected one of {', '.join(_LOG_LEVELS)}, got {v!r}")
        return v

    @property
    def labels(self) -> list[str]:
        return [s.strip() for s in self.issue_labels.split(",") if s.strip()]


def load_settings() -> SyncSettings:
    return SyncSettings()
