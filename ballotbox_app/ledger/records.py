from __future__ import annotations

import datetime
from dataclasses import dataclass


@dataclass
class Voter:
    voter_id: str
    password_hash: str
    has_voted: bool = False


@dataclass
class Candidate:
    candidate_id: str
    name: str
    position: str
    vote_count: int = 0


@dataclass(frozen=True)
class BallotRecord:
    """One accepted ballot. Never rewritten once appended to the ledger."""

    voter_id: str
    candidate_id: str
    cast_at: datetime.datetime


@dataclass
class Administrator:
    username: str
    password_hash: str
