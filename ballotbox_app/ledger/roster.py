from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import IO

from ledger.credentials import hash_credential
from ledger.csv_import_utils import (
    cell,
    decode_csv_bytes,
    is_blank_row,
    norm_csv_header,
    normalize_str,
    read_csv_table,
)
from ledger.errors import (
    ConflictError,
    InvalidFormatError,
    LedgerError,
    NotFoundError,
    StorageUnavailableError,
    ValidationError,
)
from ledger.record_store import RecordStore
from ledger.records import Administrator, Candidate, Voter

logger = logging.getLogger(__name__)

VOTER_IMPORT_HEADERS = ("voterId", "password")
_VOTER_IMPORT_ID_HEADERS = {"voterid", "id"}


@dataclass(frozen=True)
class VoterImportSummary:
    imported: int
    duplicates: int
    malformed: int
    persisted: bool = True

    def describe(self) -> str:
        message = f"{self.imported} voter(s) imported successfully"
        if self.duplicates:
            message += f", {self.duplicates} duplicate(s) skipped"
        if self.malformed:
            message += f", {self.malformed} malformed row(s) skipped"
        if not self.persisted:
            message += "; the voter roster could not be saved"
        return message


def _read_import_source(source: str | os.PathLike[str] | IO[str] | IO[bytes]) -> str:
    if hasattr(source, "read"):
        try:
            content = source.read()
        except OSError as exc:
            raise StorageUnavailableError(f"Unable to read voter import: {exc}") from exc
        return decode_csv_bytes(content) if isinstance(content, bytes) else content

    try:
        return decode_csv_bytes(Path(source).read_bytes())
    except OSError as exc:
        raise StorageUnavailableError(f"Unable to read voter import {source}: {exc}") from exc


class RosterAdministration:
    """Candidate, voter and administrator roster edits.

    The `create_*`/`edit_*`/`delete_*` methods raise `LedgerError` subclasses.
    The `add_*`/`update_*`/`remove_*` methods wrap them and report failure as
    `False`.
    """

    def __init__(self, *, store: RecordStore) -> None:
        self.store = store

    def create_candidate(self, candidate_id: str, name: str, position: str) -> Candidate:
        candidate_id = normalize_str(candidate_id)
        if not candidate_id:
            raise ValidationError("candidate id is required")

        with self.store.lock:
            candidates = self.store.load_candidates(strict=True)
            if any(c.candidate_id == candidate_id for c in candidates):
                raise ConflictError(f"candidate {candidate_id!r} already exists")

            candidate = Candidate(candidate_id, normalize_str(name), normalize_str(position))
            candidates.append(candidate)
            self.store.save_candidates(candidates)

        logger.info("candidate_added candidate=%s", candidate_id)
        return candidate

    def edit_candidate(self, candidate_id: str, name: str, position: str) -> Candidate:
        candidate_id = normalize_str(candidate_id)
        with self.store.lock:
            candidates = self.store.load_candidates(strict=True)
            candidate = next((c for c in candidates if c.candidate_id == candidate_id), None)
            if candidate is None:
                raise NotFoundError(f"candidate {candidate_id!r} not found")

            candidate.name = normalize_str(name)
            candidate.position = normalize_str(position)
            self.store.save_candidates(candidates)

        logger.info("candidate_updated candidate=%s", candidate_id)
        return candidate

    def delete_candidate(self, candidate_id: str) -> None:
        candidate_id = normalize_str(candidate_id)
        with self.store.lock:
            candidates = self.store.load_candidates(strict=True)
            remaining = [c for c in candidates if c.candidate_id != candidate_id]
            if len(remaining) == len(candidates):
                raise NotFoundError(f"candidate {candidate_id!r} not found")
            self.store.save_candidates(remaining)

        logger.info("candidate_removed candidate=%s", candidate_id)

    def create_voter(self, voter_id: str, password: str) -> Voter:
        voter_id = normalize_str(voter_id)
        if not voter_id or not normalize_str(password):
            raise ValidationError("voter id and password are required")

        with self.store.lock:
            voters = self.store.load_voters(strict=True)
            if any(v.voter_id == voter_id for v in voters):
                raise ConflictError(f"voter {voter_id!r} already exists")

            voter = Voter(voter_id, hash_credential(password))
            voters.append(voter)
            self.store.save_voters(voters)

        logger.info("voter_added voter=%s", voter_id)
        return voter

    def delete_voter(self, voter_id: str) -> None:
        voter_id = normalize_str(voter_id)
        if not voter_id:
            raise ValidationError("voter id is required")

        with self.store.lock:
            voters = self.store.load_voters(strict=True)
            remaining = [v for v in voters if v.voter_id != voter_id]
            if len(remaining) == len(voters):
                raise NotFoundError(f"voter {voter_id!r} not found")
            self.store.save_voters(remaining)

        logger.info("voter_removed voter=%s", voter_id)

    def create_administrator(self, username: str, password: str) -> Administrator:
        username = normalize_str(username)
        if not username or not normalize_str(password):
            raise ValidationError("username and password are required")

        with self.store.lock:
            administrators = self.store.load_administrators(strict=True)
            if any(a.username == username for a in administrators):
                raise ConflictError(f"administrator {username!r} already exists")

            admin = Administrator(username, hash_credential(password))
            administrators.append(admin)
            self.store.save_administrators(administrators)

        logger.info("administrator_added username=%s", username)
        return admin

    def _report(self, operation: str, exc: LedgerError) -> bool:
        if isinstance(exc, StorageUnavailableError):
            logger.error("%s_failed reason=%s detail=%s", operation, exc.code, exc)
        else:
            logger.info("%s_refused reason=%s detail=%s", operation, exc.code, exc)
        return False

    def add_candidate(self, candidate_id: str, name: str, position: str) -> bool:
        try:
            self.create_candidate(candidate_id, name, position)
        except LedgerError as exc:
            return self._report("candidate_add", exc)
        return True

    def update_candidate(self, candidate_id: str, name: str, position: str) -> bool:
        try:
            self.edit_candidate(candidate_id, name, position)
        except LedgerError as exc:
            return self._report("candidate_update", exc)
        return True

    def remove_candidate(self, candidate_id: str) -> bool:
        try:
            self.delete_candidate(candidate_id)
        except LedgerError as exc:
            return self._report("candidate_remove", exc)
        return True

    def add_voter(self, voter_id: str, password: str) -> bool:
        try:
            self.create_voter(voter_id, password)
        except LedgerError as exc:
            return self._report("voter_add", exc)
        return True

    def remove_voter(self, voter_id: str) -> bool:
        try:
            self.delete_voter(voter_id)
        except LedgerError as exc:
            return self._report("voter_remove", exc)
        return True

    def add_administrator(self, username: str, password: str) -> bool:
        try:
            self.create_administrator(username, password)
        except LedgerError as exc:
            return self._report("administrator_add", exc)
        return True

    def bulk_import_voters(self, source: str | os.PathLike[str] | IO[str] | IO[bytes]) -> VoterImportSummary:
        """Merge voters from a `voterId,password` CSV into the roster.

        Raises `InvalidFormatError` when the header does not match, and
        `StorageUnavailableError` when the source or the current roster cannot
        be read. A failure to save the merged roster is reported through
        `persisted=False`. Only lines with no content are skipped silently; a
        line of bare separators such as `,,` is malformed.
        """
        headers, rows = read_csv_table(_read_import_source(source))
        normalized = [norm_csv_header(h) for h in headers]
        if len(normalized) < 2 or normalized[0] not in _VOTER_IMPORT_ID_HEADERS or normalized[1] != "password":
            raise InvalidFormatError(
                f"Invalid CSV format. Expected header: {','.join(VOTER_IMPORT_HEADERS)}"
            )

        imported = 0
        duplicates = 0
        malformed = 0

        with self.store.lock:
            voters = self.store.load_voters(strict=True)
            known_ids = {v.voter_id for v in voters}

            for line, row in enumerate(rows, start=2):
                if len(row) <= 1 and is_blank_row(row):
                    continue

                voter_id = cell(row, 0)
                password = cell(row, 1)
                if len(row) < 2 or not voter_id or not password:
                    malformed += 1
                    logger.warning("voter_import_row_malformed line=%d", line)
                    continue

                if voter_id in known_ids:
                    duplicates += 1
                    continue

                voters.append(Voter(voter_id, hash_credential(password)))
                known_ids.add(voter_id)
                imported += 1

            try:
                self.store.save_voters(voters)
            except StorageUnavailableError:
                logger.exception("voter_import_save_failed")
                return VoterImportSummary(imported=0, duplicates=duplicates, malformed=malformed, persisted=False)

        logger.info(
            "voter_import_summary imported=%d duplicates=%d malformed=%d",
            imported,
            duplicates,
            malformed,
        )
        return VoterImportSummary(imported=imported, duplicates=duplicates, malformed=malformed)
