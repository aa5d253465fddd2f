import logging
from datetime import datetime, timezone
from typing import Any, Callable, Protocol

from save_score.config import Settings
from save_score.errors import MissingCredentialError
from save_score.github_store import GitHubContentsStore, StoredLeaderboard, commit_message
from save_score.leaderboard import LeaderboardDocument, ScoreEntry, add_score, build_entry, validate_submission

logger = logging.getLogger(__name__)


class LeaderboardStore(Protocol):
    def fetch(self) -> StoredLeaderboard: ...

    def save(self, document: LeaderboardDocument, sha: str, message: str) -> None: ...


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ScoreService:
    """One submission per call: validate, fetch, rank in, write back.

    Concurrent calls are not serialized. Two calls that fetch the same sha
    race on the write and the store refuses the second one; that failure is
    raised, not retried.
    """

    def __init__(
        self,
        settings: Settings,
        store: LeaderboardStore | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.settings = settings
        self.store = store or GitHubContentsStore(settings)
        self.clock = clock

    def submit(self, payload: Any) -> tuple[ScoreEntry, LeaderboardDocument]:
        submission = validate_submission(payload)

        if not self.settings.github_token:
            raise MissingCredentialError("GITHUB_TOKEN is not set")

        stored = self.store.fetch()

        now = self.clock()
        entry = build_entry(submission, now)
        document = add_score(stored.document, entry, now)

        self.store.save(document, stored.sha, commit_message(entry))

        logger.info(
            "score saved: %s - %d points (level %d), %d entries on the board",
            entry.name, entry.score, entry.level, len(document.scores),
        )
        return entry, document
