"""Score submission service: validates a player's score and commits it to a
leaderboard JSON file kept in a GitHub repository."""

__version__ = "1.0.0"
