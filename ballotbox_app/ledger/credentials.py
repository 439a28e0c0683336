from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass

from django.db import models

from ledger.record_store import RecordStore
from ledger.records import Administrator, Voter

logger = logging.getLogger(__name__)


class Role(models.TextChoices):
    admin = "admin", "Administrator"
    voter = "voter", "Voter"


def hash_credential(plaintext: str) -> str:
    """SHA-256 hex digest of a plaintext credential.

    Callers hash exactly once, when the record is created. Stored digests are
    written back verbatim and never re-hashed.
    """
    if not plaintext:
        return ""
    return hashlib.sha256(plaintext.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class AuthenticationResult:
    role: Role | None = None
    user: Administrator | Voter | None = None

    @property
    def success(self) -> bool:
        return self.role is not None


def authenticate(*, store: RecordStore, username: str, password: str) -> AuthenticationResult:
    if not username or not password:
        return AuthenticationResult()

    digest = hash_credential(password)

    for admin in store.load_administrators():
        if admin.username == username and admin.password_hash == digest:
            logger.info("authentication_succeeded role=%s username=%s", Role.admin, username)
            return AuthenticationResult(role=Role.admin, user=admin)

    for voter in store.load_voters():
        if voter.voter_id == username and voter.password_hash == digest:
            logger.info("authentication_succeeded role=%s username=%s", Role.voter, username)
            return AuthenticationResult(role=Role.voter, user=voter)

    logger.warning("authentication_failed username=%s", username)
    return AuthenticationResult()
