from __future__ import annotations

import base64
import json
import unittest
from unittest.mock import MagicMock

import requests

from save_score.config import Settings
from save_score.errors import (
    LeaderboardConflictError,
    LeaderboardDecodeError,
    LeaderboardFetchError,
    LeaderboardWriteError,
    MissingCredentialError,
)
from save_score.github_store import GitHubContentsStore, commit_message
from save_score.leaderboard import LeaderboardDocument, ScoreEntry, decode_document, encode_document

CONTENTS_URL = "https://api.github.com/repos/sergei-tigrov/mousygame/contents/leaderboard.json"


def _response(status_code: int, payload=None) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.json.return_value = payload
    return response


def _document() -> LeaderboardDocument:
    return LeaderboardDocument(
        scores=[ScoreEntry(name="Ann", score=500, level=3, date="2024-05-01")],
        lastUpdated="2024-05-01T12:00:00.000Z",
    )


class TestFetch(unittest.TestCase):
    def setUp(self):
        self.session = MagicMock()
        self.store = GitHubContentsStore(Settings(github_token="secret"), session=self.session)

    def test_fetch_decodes_content_and_returns_sha(self):
        self.session.get.return_value = _response(200, {"content": encode_document(_document()), "sha": "abc123"})

        stored = self.store.fetch()

        self.assertEqual(stored.sha, "abc123")
        self.assertEqual(stored.document, _document())

        args, kwargs = self.session.get.call_args
        self.assertEqual(args[0], CONTENTS_URL)
        self.assertEqual(kwargs["headers"]["Authorization"], "Bearer secret")
        self.assertEqual(kwargs["headers"]["Accept"], "application/vnd.github.v3+json")
        self.assertEqual(kwargs["headers"]["User-Agent"], "mousygame-leaderboard")
        self.assertEqual(kwargs["timeout"], 30.0)

    def test_non_success_status(self):
        self.session.get.return_value = _response(404, {"message": "Not Found"})

        with self.assertRaises(LeaderboardFetchError) as ctx:
            self.store.fetch()
        self.assertEqual(str(ctx.exception), "Failed to fetch file: 404")

    def test_network_error_is_chained(self):
        self.session.get.side_effect = requests.ConnectionError("connection refused")

        with self.assertRaises(LeaderboardFetchError) as ctx:
            self.store.fetch()
        self.assertIsInstance(ctx.exception.__cause__, requests.ConnectionError)

    def test_response_without_content(self):
        self.session.get.return_value = _response(200, {"sha": "abc123"})

        with self.assertRaises(LeaderboardDecodeError):
            self.store.fetch()

    def test_missing_token_performs_no_request(self):
        store = GitHubContentsStore(Settings(github_token=None), session=self.session)

        with self.assertRaises(MissingCredentialError):
            store.fetch()
        self.session.get.assert_not_called()


class TestSave(unittest.TestCase):
    def setUp(self):
        self.session = MagicMock()
        self.store = GitHubContentsStore(Settings(github_token="secret"), session=self.session)

    def test_put_body(self):
        self.session.put.return_value = _response(200, {})

        self.store.save(_document(), "abc123", "🏆 New score: Ann - 500 points (Level 3)")

        args, kwargs = self.session.put.call_args
        self.assertEqual(args[0], CONTENTS_URL)
        body = kwargs["json"]
        self.assertEqual(body["sha"], "abc123")
        self.assertEqual(body["message"], "🏆 New score: Ann - 500 points (Level 3)")
        self.assertEqual(body["committer"], {"name": "Mousygame Leaderboard Bot", "email": "bot@mousygame.local"})
        self.assertEqual(decode_document(body["content"]), _document())
        self.assertEqual(json.loads(base64.b64decode(body["content"]))["scores"][0]["name"], "Ann")

    def test_stale_sha_is_a_conflict(self):
        self.session.put.return_value = _response(409, {"message": "sha does not match"})

        with self.assertRaises(LeaderboardConflictError) as ctx:
            self.store.save(_document(), "stale", "msg")
        self.assertEqual(str(ctx.exception), "Failed to update file: 409")

    def test_other_failures(self):
        for status in (401, 422, 500):
            with self.subTest(status=status):
                self.session.put.return_value = _response(status, {})
                with self.assertRaises(LeaderboardWriteError) as ctx:
                    self.store.save(_document(), "abc123", "msg")
                self.assertNotIsInstance(ctx.exception, LeaderboardConflictError)
                self.assertEqual(str(ctx.exception), f"Failed to update file: {status}")

    def test_network_error(self):
        self.session.put.side_effect = requests.Timeout("read timed out")

        with self.assertRaises(LeaderboardWriteError):
            self.store.save(_document(), "abc123", "msg")
        self.assertEqual(self.session.put.call_count, 1)


class TestSettingsOverrides(unittest.TestCase):
    def test_custom_repository_and_base_url(self):
        session = MagicMock()
        session.get.return_value = _response(200, {"content": encode_document(_document()), "sha": "s"})
        settings = Settings(
            github_token="t",
            repo_owner="acme",
            repo_name="arcade",
            file_path="data/board.json",
            api_base_url="https://github.example.com/api/v3/",
        )

        GitHubContentsStore(settings, session=session).fetch()

        self.assertEqual(
            session.get.call_args[0][0],
            "https://github.example.com/api/v3/repos/acme/arcade/contents/data/board.json",
        )


class TestCommitMessage(unittest.TestCase):
    def test_names_player_score_and_level(self):
        entry = ScoreEntry(name="Ann", score=500, level=3, date="2024-05-01")
        self.assertEqual(commit_message(entry), "🏆 New score: Ann - 500 points (Level 3)")


if __name__ == "__main__":
    unittest.main()
