from __future__ import annotations

from dataclasses import dataclass
import logging
import os

DEFAULT_REPO_OWNER = "sergei-tigrov"
DEFAULT_REPO_NAME = "mousygame"
DEFAULT_FILE_PATH = "leaderboard.json"
DEFAULT_API_BASE_URL = "https://api.github.com"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    github_token: str | None = None
    repo_owner: str = DEFAULT_REPO_OWNER
    repo_name: str = DEFAULT_REPO_NAME
    file_path: str = DEFAULT_FILE_PATH
    api_base_url: str = DEFAULT_API_BASE_URL
    committer_name: str = "Mousygame Leaderboard Bot"
    committer_email: str = "bot@mousygame.local"
    user_agent: str = "mousygame-leaderboard"
    request_timeout_seconds: float = 30.0
    expose_internal_errors: bool = True
    log_level: str = "INFO"

    @property
    def contents_url(self) -> str:
        base = self.api_base_url.rstrip("/")
        return f"{base}/repos/{self.repo_owner}/{self.repo_name}/contents/{self.file_path.lstrip('/')}"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            github_token=os.getenv("GITHUB_TOKEN") or None,
            repo_owner=os.getenv("LEADERBOARD_REPO_OWNER", DEFAULT_REPO_OWNER),
            repo_name=os.getenv("LEADERBOARD_REPO_NAME", DEFAULT_REPO_NAME),
            file_path=os.getenv("LEADERBOARD_FILE_PATH", DEFAULT_FILE_PATH),
            api_base_url=os.getenv("GITHUB_API_BASE_URL", DEFAULT_API_BASE_URL),
            committer_name=os.getenv("LEADERBOARD_COMMITTER_NAME", "Mousygame Leaderboard Bot"),
            committer_email=os.getenv("LEADERBOARD_COMMITTER_EMAIL", "bot@mousygame.local"),
            user_agent=os.getenv("LEADERBOARD_USER_AGENT", "mousygame-leaderboard"),
            request_timeout_seconds=float(os.getenv("GITHUB_TIMEOUT_SECONDS", "30")),
            expose_internal_errors=_env_bool("EXPOSE_INTERNAL_ERRORS", True),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
        force=True,
    )
