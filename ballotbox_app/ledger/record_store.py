"""Whole-collection CSV snapshots for the ledger's record sets.

Every collection is read in full and written in full. Writes go to a staged
temporary file in the data directory and are moved over the live file with
`os.replace`, so a reader never observes a half-written snapshot.
"""

from __future__ import annotations

import csv
import datetime
import logging
import os
import tempfile
import threading
from collections.abc import Iterable, Sequence
from pathlib import Path

from django.conf import settings
from django.utils import timezone
from tablib import Dataset

from ledger.csv_import_utils import (
    build_header_index,
    cell,
    decode_csv_bytes,
    is_blank_row,
    parse_csv_bool,
    parse_csv_datetime,
    read_csv_table,
    resolve_column_index,
)
from ledger.election_phase import ElectionState, Phase
from ledger.errors import StorageUnavailableError
from ledger.records import Administrator, BallotRecord, Candidate, Voter

logger = logging.getLogger(__name__)

VOTERS_FILE = "voters.csv"
CANDIDATES_FILE = "candidates.csv"
BALLOTS_FILE = "votes.csv"
ADMINISTRATORS_FILE = "administrators.csv"
ELECTION_FILE = "election.csv"

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

VOTER_HEADERS = ("id", "password", "hasVoted")
CANDIDATE_HEADERS = ("candidateId", "name", "position", "voteCount")
BALLOT_HEADERS = ("voterId", "candidateId", "timestamp")
ADMINISTRATOR_HEADERS = ("username", "password")
ELECTION_HEADERS = ("status", "windowStart", "windowEnd", "startedAt", "endedAt")


def format_timestamp(value: datetime.datetime) -> str:
    if timezone.is_aware(value):
        value = value.astimezone(datetime.UTC)
    return value.strftime(TIMESTAMP_FORMAT)


def _isoformat_or_blank(value: datetime.datetime | None) -> str:
    return value.isoformat() if value is not None else ""


def _columns(headers: Sequence[str], *aliases: tuple[str, ...]) -> list[int]:
    """Resolve one column per alias group; unmatched groups fall back to position."""
    index = build_header_index(headers)
    resolved: list[int] = []
    for position, names in enumerate(aliases):
        found = resolve_column_index(index, *names)
        resolved.append(position if found is None else found)
    return resolved


def voters_dataset(voters: Iterable[Voter]) -> Dataset:
    dataset = Dataset(headers=list(VOTER_HEADERS))
    for voter in voters:
        dataset.append([voter.voter_id, voter.password_hash, "true" if voter.has_voted else "false"])
    return dataset


def candidates_dataset(candidates: Iterable[Candidate]) -> Dataset:
    dataset = Dataset(headers=list(CANDIDATE_HEADERS))
    for candidate in candidates:
        dataset.append([candidate.candidate_id, candidate.name, candidate.position, str(candidate.vote_count)])
    return dataset


def ballots_dataset(ballots: Iterable[BallotRecord]) -> Dataset:
    dataset = Dataset(headers=list(BALLOT_HEADERS))
    for ballot in ballots:
        dataset.append([ballot.voter_id, ballot.candidate_id, format_timestamp(ballot.cast_at)])
    return dataset


def administrators_dataset(administrators: Iterable[Administrator]) -> Dataset:
    dataset = Dataset(headers=list(ADMINISTRATOR_HEADERS))
    for admin in administrators:
        # Digests are written verbatim; hashing happens once, at creation.
        dataset.append([admin.username, admin.password_hash])
    return dataset


def election_dataset(state: ElectionState) -> Dataset:
    dataset = Dataset(headers=list(ELECTION_HEADERS))
    dataset.append(
        [
            str(state.phase),
            _isoformat_or_blank(state.window_start),
            _isoformat_or_blank(state.window_end),
            _isoformat_or_blank(state.started_at),
            _isoformat_or_blank(state.ended_at),
        ]
    )
    return dataset


class RecordStore:
    def __init__(self, data_dir: str | os.PathLike[str] | None = None) -> None:
        self.data_dir = Path(data_dir if data_dir is not None else settings.LEDGER_DATA_DIR)
        # Serializes read-modify-write sequences of callers sharing this store.
        self.lock = threading.RLock()

    def path_for(self, filename: str) -> Path:
        return self.data_dir / filename

    def _read_table(self, filename: str, *, strict: bool = False) -> tuple[list[str], list[list[str]]] | None:
        """Read one snapshot. A missing file is `None`.

        An unreadable or unparseable file is logged and read as `None`. With
        `strict`, it raises `StorageUnavailableError`; read-modify-write callers
        load strictly.
        """
        path = self.path_for(filename)
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.exception("record_store_read_failed file=%s", path)
            if strict:
                raise StorageUnavailableError(f"Unable to read {filename}: {exc}") from exc
            return None

        try:
            return read_csv_table(decode_csv_bytes(raw))
        except csv.Error as exc:
            logger.exception("record_store_parse_failed file=%s", path)
            if strict:
                raise StorageUnavailableError(f"Unable to parse {filename}: {exc}") from exc
            return None

    def _skip(self, filename: str, line: int, reason: str) -> None:
        logger.warning("record_store_row_skipped file=%s line=%d reason=%s", filename, line, reason)

    def load_voters(self, *, strict: bool = False) -> list[Voter]:
        table = self._read_table(VOTERS_FILE, strict=strict)
        if table is None:
            return []
        headers, rows = table
        id_col, password_col, voted_col = _columns(headers, ("id", "voterId"), ("password",), ("hasVoted",))

        voters: list[Voter] = []
        for line, row in enumerate(rows, start=2):
            if is_blank_row(row):
                continue
            voter_id = cell(row, id_col)
            password_hash = cell(row, password_col)
            if not voter_id or not password_hash:
                self._skip(VOTERS_FILE, line, "missing_fields")
                continue
            voters.append(Voter(voter_id, password_hash, has_voted=parse_csv_bool(cell(row, voted_col))))
        return voters

    def load_candidates(self, *, strict: bool = False) -> list[Candidate]:
        table = self._read_table(CANDIDATES_FILE, strict=strict)
        if table is None:
            return []
        headers, rows = table
        id_col, name_col, position_col, count_col = _columns(
            headers, ("candidateId", "id"), ("name",), ("position",), ("voteCount",)
        )

        candidates: list[Candidate] = []
        for line, row in enumerate(rows, start=2):
            if is_blank_row(row):
                continue
            candidate_id = cell(row, id_col)
            if not candidate_id or len(row) < len(CANDIDATE_HEADERS):
                self._skip(CANDIDATES_FILE, line, "missing_fields")
                continue
            try:
                vote_count = int(cell(row, count_col))
            except ValueError:
                self._skip(CANDIDATES_FILE, line, "invalid_vote_count")
                continue
            if vote_count < 0:
                self._skip(CANDIDATES_FILE, line, "negative_vote_count")
                continue
            candidates.append(
                Candidate(candidate_id, cell(row, name_col), cell(row, position_col), vote_count=vote_count)
            )
        return candidates

    def load_ballots(self, *, strict: bool = False) -> list[BallotRecord]:
        table = self._read_table(BALLOTS_FILE, strict=strict)
        if table is None:
            return []
        headers, rows = table
        voter_col, candidate_col, timestamp_col = _columns(
            headers, ("voterId",), ("candidateId",), ("timestamp",)
        )

        ballots: list[BallotRecord] = []
        for line, row in enumerate(rows, start=2):
            if is_blank_row(row):
                continue
            voter_id = cell(row, voter_col)
            candidate_id = cell(row, candidate_col)
            if not voter_id or not candidate_id:
                self._skip(BALLOTS_FILE, line, "missing_fields")
                continue
            cast_at = parse_csv_datetime(cell(row, timestamp_col))
            if cast_at is None:
                # The ballot itself stands; only its timestamp is unrecoverable.
                logger.warning("record_store_timestamp_replaced file=%s line=%d", BALLOTS_FILE, line)
                cast_at = timezone.now().replace(microsecond=0)
            ballots.append(BallotRecord(voter_id, candidate_id, cast_at))
        return ballots

    def load_administrators(self, *, strict: bool = False) -> list[Administrator]:
        table = self._read_table(ADMINISTRATORS_FILE, strict=strict)
        if table is None:
            return []
        headers, rows = table
        username_col, password_col = _columns(headers, ("username",), ("password",))

        administrators: list[Administrator] = []
        for line, row in enumerate(rows, start=2):
            if is_blank_row(row):
                continue
            username = cell(row, username_col)
            password_hash = cell(row, password_col)
            if not username or not password_hash:
                self._skip(ADMINISTRATORS_FILE, line, "missing_fields")
                continue
            administrators.append(Administrator(username, password_hash))
        return administrators

    def load_election_state(self, *, strict: bool = False) -> ElectionState:
        table = self._read_table(ELECTION_FILE, strict=strict)
        if table is None:
            return ElectionState()
        headers, rows = table
        status_col, start_col, end_col, started_col, ended_col = _columns(
            headers, ("status",), ("windowStart",), ("windowEnd",), ("startedAt",), ("endedAt",)
        )

        row = next((r for r in rows if not is_blank_row(r)), None)
        if row is None:
            return ElectionState()

        raw_status = cell(row, status_col).upper()
        if raw_status not in Phase.values:
            logger.warning("record_store_unknown_phase file=%s status=%r", ELECTION_FILE, raw_status)
            raw_status = Phase.closed
        return ElectionState(
            phase=Phase(raw_status),
            window_start=parse_csv_datetime(cell(row, start_col)),
            window_end=parse_csv_datetime(cell(row, end_col)),
            started_at=parse_csv_datetime(cell(row, started_col)),
            ended_at=parse_csv_datetime(cell(row, ended_col)),
        )

    def save_voters(self, voters: Iterable[Voter]) -> None:
        self.commit([(VOTERS_FILE, voters_dataset(voters))])

    def save_candidates(self, candidates: Iterable[Candidate]) -> None:
        self.commit([(CANDIDATES_FILE, candidates_dataset(candidates))])

    def save_ballots(self, ballots: Iterable[BallotRecord]) -> None:
        self.commit([(BALLOTS_FILE, ballots_dataset(ballots))])

    def save_administrators(self, administrators: Iterable[Administrator]) -> None:
        self.commit([(ADMINISTRATORS_FILE, administrators_dataset(administrators))])

    def save_election_state(self, state: ElectionState) -> None:
        self.commit([(ELECTION_FILE, election_dataset(state))])

    def save_ballot_transaction(
        self,
        *,
        voters: Iterable[Voter],
        candidates: Iterable[Candidate],
        ballots: Iterable[BallotRecord],
    ) -> None:
        self.commit(
            [
                (VOTERS_FILE, voters_dataset(voters)),
                (CANDIDATES_FILE, candidates_dataset(candidates)),
                (BALLOTS_FILE, ballots_dataset(ballots)),
            ]
        )

    def _stage(self, filename: str, dataset: Dataset) -> Path:
        tmp_path: Path | None = None
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{filename}.", suffix=".tmp", dir=self.data_dir)
            tmp_path = Path(tmp_name)
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as fh:
                fh.write(dataset.export("csv"))
                fh.flush()
                os.fsync(fh.fileno())
        except OSError as exc:
            if tmp_path is not None:
                tmp_path.unlink(missing_ok=True)
            raise StorageUnavailableError(f"Unable to write {filename}: {exc}") from exc
        return tmp_path

    def commit(self, snapshots: Sequence[tuple[str, Dataset]]) -> None:
        """Write several snapshots as one unit.

        Every snapshot is staged before any live file is replaced. A staging
        failure leaves all live files untouched. Replacements then run in the
        given order.
        """
        staged: list[tuple[Path, Path]] = []
        try:
            for filename, dataset in snapshots:
                staged.append((self._stage(filename, dataset), self.path_for(filename)))
        except StorageUnavailableError:
            for tmp_path, _target in staged:
                tmp_path.unlink(missing_ok=True)
            logger.exception("record_store_commit_aborted files=%s", [name for name, _ in snapshots])
            raise

        for position, (tmp_path, target) in enumerate(staged):
            try:
                os.replace(tmp_path, target)
            except OSError as exc:
                for leftover, _target in staged[position:]:
                    leftover.unlink(missing_ok=True)
                logger.exception(
                    "record_store_commit_incomplete replaced=%s failed=%s",
                    [str(t.name) for _tmp, t in staged[:position]],
                    target.name,
                )
                raise StorageUnavailableError(f"Unable to replace {target.name}: {exc}") from exc
