class ScoreSubmissionError(Exception):
    """Base for failures the handler turns into a JSON response."""

    status_code = 500
    error = "Failed to save score"


class SubmissionValidationError(ScoreSubmissionError):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.error = message


class MissingCredentialError(ScoreSubmissionError):
    error = "Server configuration error"


class LeaderboardFetchError(ScoreSubmissionError):
    """The remote store could not be read."""


class LeaderboardWriteError(ScoreSubmissionError):
    """The remote store rejected the write."""


class LeaderboardConflictError(LeaderboardWriteError):
    """The stored file changed since it was fetched (stale sha)."""


class LeaderboardDecodeError(ScoreSubmissionError):
    """The stored file is not a valid leaderboard document."""
