"""Leaderboard document model and the pure operations applied to it.

The stored file looks like::

    {"scores": [{"name": ..., "score": ..., "level": ..., "date": "YYYY-MM-DD"}, ...],
     "lastUpdated": "2024-05-01T12:00:00.000Z"}

Entries are kept sorted by score (highest first) and capped at ``MAX_ENTRIES``.
Keys this service does not know about are carried through unchanged.
"""
from __future__ import annotations

import base64
import binascii
import json
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict

from save_score.errors import LeaderboardDecodeError, SubmissionValidationError

MAX_NAME_LENGTH = 50
MIN_SCORE, MAX_SCORE = 0, 999999
MIN_LEVEL, MAX_LEVEL = 1, 50
MAX_ENTRIES = 100
TOP_N = 10


class Submission(BaseModel):
    name: str
    score: int
    level: int


class ScoreEntry(BaseModel):
    # strict: entries read back from the file are rewritten exactly as stored
    model_config = ConfigDict(extra="allow", strict=True)

    name: str
    score: int | float
    level: int | None = None
    date: str | None = None


class LeaderboardDocument(BaseModel):
    model_config = ConfigDict(extra="allow")

    scores: list[ScoreEntry]
    lastUpdated: str | None = None


def _is_integer(value: Any) -> bool:
    # bool is an int subclass but never a valid score or level
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and value.is_integer()


def _is_blank(value: Any) -> bool:
    # JSON falsiness: null, false, 0 and "" are blank; empty arrays and objects are not
    if isinstance(value, (list, dict)):
        return False
    return not value


def validate_submission(payload: Any) -> Submission:
    if not isinstance(payload, dict):
        payload = {}

    name = payload.get("name")
    if _is_blank(name) or "score" not in payload or "level" not in payload:
        raise SubmissionValidationError("Missing required fields: name, score, level")

    score = payload["score"]
    level = payload["level"]

    if not isinstance(name, str) or len(name) > MAX_NAME_LENGTH:
        raise SubmissionValidationError(f"Invalid name (max {MAX_NAME_LENGTH} chars)")

    if not _is_integer(score) or not MIN_SCORE <= score <= MAX_SCORE:
        raise SubmissionValidationError(f"Invalid score ({MIN_SCORE}-{MAX_SCORE})")

    if not _is_integer(level) or not MIN_LEVEL <= level <= MAX_LEVEL:
        raise SubmissionValidationError(f"Invalid level ({MIN_LEVEL}-{MAX_LEVEL})")

    return Submission(name=name, score=int(score), level=int(level))


def utc_timestamp(now: datetime) -> str:
    now = now.astimezone(timezone.utc).replace(tzinfo=None)
    return now.isoformat(timespec="milliseconds") + "Z"


def build_entry(submission: Submission, now: datetime) -> ScoreEntry:
    return ScoreEntry(
        name=submission.name.strip(),
        score=submission.score,
        level=submission.level,
        date=now.astimezone(timezone.utc).date().isoformat(),
    )


def add_score(document: LeaderboardDocument, entry: ScoreEntry, now: datetime) -> LeaderboardDocument:
    """Return a new document with ``entry`` ranked in and the table capped.

    The sort is stable, so among equal scores earlier entries stay ahead of
    the one just appended. An entry ranked below the cap is dropped, which
    can be the new one.
    """
    scores = sorted([*document.scores, entry], key=lambda e: e.score, reverse=True)
    return LeaderboardDocument(
        scores=scores[:MAX_ENTRIES],
        lastUpdated=utc_timestamp(now),
        **(document.model_extra or {}),
    )


def top_scores(document: LeaderboardDocument, n: int = TOP_N) -> list[ScoreEntry]:
    return document.scores[:n]


def entry_to_dict(entry: ScoreEntry) -> dict:
    return entry.model_dump(mode="json", exclude_none=True)


def encode_document(document: LeaderboardDocument) -> str:
    text = json.dumps(document.model_dump(mode="json", exclude_none=True), indent=2, ensure_ascii=False)
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def decode_document(content: str) -> LeaderboardDocument:
    # b64decode drops the line breaks GitHub inserts every 60 characters
    try:
        raw = base64.b64decode(content)
        return LeaderboardDocument.model_validate_json(raw)
    except (binascii.Error, TypeError, ValueError) as error:
        raise LeaderboardDecodeError(f"Invalid leaderboard content: {error}") from error
