import logging
from dataclasses import dataclass

import requests

from save_score.config import Settings
from save_score.errors import (
    LeaderboardConflictError,
    LeaderboardDecodeError,
    LeaderboardFetchError,
    LeaderboardWriteError,
    MissingCredentialError,
)
from save_score.leaderboard import LeaderboardDocument, ScoreEntry, decode_document, encode_document

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredLeaderboard:
    document: LeaderboardDocument
    sha: str


def commit_message(entry: ScoreEntry) -> str:
    return f"🏆 New score: {entry.name} - {entry.score} points (Level {entry.level})"


class GitHubContentsStore:
    """
    Reads and writes the leaderboard file through the GitHub contents API.

    Every write carries the ``sha`` returned by the read it is based on, so
    GitHub refuses it (409) when someone else committed in between. Nothing
    here retries; a refused write is reported to the caller as-is.
    """

    def __init__(self, settings: Settings, session: requests.Session | None = None):
        self.settings = settings
        self.session = session or requests.Session()

    def fetch(self) -> StoredLeaderboard:
        headers = self._headers()

        try:
            response = self.session.get(
                self.settings.contents_url,
                headers=headers,
                timeout=self.settings.request_timeout_seconds,
            )
        except requests.RequestException as error:
            raise LeaderboardFetchError(f"Failed to fetch file: {error}") from error

        if not response.ok:
            raise LeaderboardFetchError(f"Failed to fetch file: {response.status_code}")

        try:
            root = response.json()
            content, sha = root["content"], root["sha"]
        except (ValueError, KeyError, TypeError) as error:
            raise LeaderboardDecodeError(f"Unexpected contents response: {error}") from error

        return StoredLeaderboard(document=decode_document(content), sha=sha)

    def save(self, document: LeaderboardDocument, sha: str, message: str) -> None:
        headers = self._headers()
        body = {
            "message": message,
            "content": encode_document(document),
            "sha": sha,
            "committer": {
                "name": self.settings.committer_name,
                "email": self.settings.committer_email,
            },
        }

        try:
            response = self.session.put(
                self.settings.contents_url,
                headers=headers,
                json=body,
                timeout=self.settings.request_timeout_seconds,
            )
        except requests.RequestException as error:
            raise LeaderboardWriteError(f"Failed to update file: {error}") from error

        if response.status_code == 409:
            raise LeaderboardConflictError(f"Failed to update file: {response.status_code}")
        if not response.ok:
            raise LeaderboardWriteError(f"Failed to update file: {response.status_code}")

        logger.debug("committed %s (parent sha %s)", self.settings.file_path, sha)

    def _headers(self) -> dict[str, str]:
        token = self.settings.github_token
        if not token:
            raise MissingCredentialError("GITHUB_TOKEN is not set")

        return {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": self.settings.user_agent,
        }
