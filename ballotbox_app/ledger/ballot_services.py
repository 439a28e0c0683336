from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from django.utils import timezone

from ledger.election_phase import ElectionPhaseController
from ledger.errors import (
    AlreadyVotedError,
    ElectionNotOpenError,
    LedgerError,
    StorageUnavailableError,
    UnknownCandidateError,
    UnknownVoterError,
)
from ledger.record_store import RecordStore
from ledger.records import BallotRecord, Voter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BallotOutcome:
    ballot: BallotRecord | None = None
    reason: LedgerError | None = None

    @property
    def accepted(self) -> bool:
        return self.ballot is not None


class BallotBox:
    """Accepts ballots while the injected election is active.

    A ballot flips the voter's has-voted flag, adds one vote to the candidate
    and appends a ballot record. The three collections are committed together
    through `RecordStore.save_ballot_transaction`.
    """

    def __init__(self, *, store: RecordStore, election: ElectionPhaseController) -> None:
        self.store = store
        self.election = election

    def submit_ballot(self, *, voter: Voter | str, candidate_id: str) -> BallotRecord:
        if not self.election.is_active:
            raise ElectionNotOpenError("election is not open")

        # A caller holding a voter object that already cast is turned away
        # before the store is read.
        if isinstance(voter, Voter) and voter.has_voted:
            raise AlreadyVotedError(f"voter {voter.voter_id!r} has already voted")

        voter_id = voter.voter_id if isinstance(voter, Voter) else voter

        with self.store.lock:
            voters = self.store.load_voters(strict=True)
            voter_index = next((i for i, v in enumerate(voters) if v.voter_id == voter_id), None)
            if voter_index is None:
                raise UnknownVoterError(f"unknown voter {voter_id!r}")
            if voters[voter_index].has_voted:
                raise AlreadyVotedError(f"voter {voter_id!r} has already voted")

            candidates = self.store.load_candidates(strict=True)
            candidate_index = next(
                (i for i, c in enumerate(candidates) if c.candidate_id == candidate_id),
                None,
            )
            if candidate_index is None:
                raise UnknownCandidateError(f"unknown candidate {candidate_id!r}")

            ballot = BallotRecord(
                voter_id=voter_id,
                candidate_id=candidate_id,
                cast_at=timezone.now().replace(microsecond=0),
            )
            voters[voter_index] = replace(voters[voter_index], has_voted=True)
            target = candidates[candidate_index]
            candidates[candidate_index] = replace(target, vote_count=target.vote_count + 1)
            ballots = [*self.store.load_ballots(strict=True), ballot]

            self.store.save_ballot_transaction(voters=voters, candidates=candidates, ballots=ballots)

        if isinstance(voter, Voter):
            voter.has_voted = True

        logger.info("ballot_cast voter=%s candidate=%s", voter_id, candidate_id)
        return ballot

    def cast_ballot(self, voter: Voter | str, candidate_id: str) -> BallotOutcome:
        try:
            ballot = self.submit_ballot(voter=voter, candidate_id=candidate_id)
        except StorageUnavailableError as exc:
            logger.error("ballot_not_recorded candidate=%s reason=%s", candidate_id, exc.code)
            return BallotOutcome(reason=exc)
        except LedgerError as exc:
            logger.warning("ballot_rejected candidate=%s reason=%s", candidate_id, exc.code)
            return BallotOutcome(reason=exc)
        return BallotOutcome(ballot=ballot)
