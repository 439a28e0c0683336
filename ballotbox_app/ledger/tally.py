from __future__ import annotations

from collections.abc import Iterable

from tablib import Dataset

from ledger.csv_import_utils import sanitize_csv_cell
from ledger.record_store import RecordStore
from ledger.records import Candidate

TALLY_HEADERS = ("rank", "candidateId", "name", "position", "votes", "share")


def tally(candidates: Iterable[Candidate]) -> list[Candidate]:
    """Rank candidates by vote count, highest first.

    `sorted` is stable, so tied candidates keep their roster order.
    """
    return sorted(candidates, key=lambda candidate: candidate.vote_count, reverse=True)


def tally_from_store(store: RecordStore) -> list[Candidate]:
    return tally(store.load_candidates())


def tally_dataset(candidates: Iterable[Candidate]) -> Dataset:
    ranked = tally(candidates)
    total = sum(candidate.vote_count for candidate in ranked)

    dataset = Dataset(headers=list(TALLY_HEADERS))
    for rank, candidate in enumerate(ranked, start=1):
        share = f"{candidate.vote_count / total * 100:.2f}" if total else "0.00"
        dataset.append(
            [
                rank,
                sanitize_csv_cell(candidate.candidate_id),
                sanitize_csv_cell(candidate.name),
                sanitize_csv_cell(candidate.position),
                candidate.vote_count,
                share,
            ]
        )
    return dataset
