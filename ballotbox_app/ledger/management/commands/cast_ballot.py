from typing import override

from django.core.management.base import BaseCommand, CommandError

from ledger.ballot_services import BallotBox
from ledger.election_phase import ElectionPhaseController
from ledger.record_store import RecordStore


class Command(BaseCommand):
    help = "Record a ballot for a voter."

    @override
    def add_arguments(self, parser) -> None:
        parser.add_argument("voter_id")
        parser.add_argument("candidate_id")

    @override
    def handle(self, *args, **options) -> None:
        store = RecordStore()
        election = ElectionPhaseController(store.load_election_state())
        outcome = BallotBox(store=store, election=election).cast_ballot(
            options["voter_id"],
            options["candidate_id"],
        )
        if not outcome.accepted:
            raise CommandError(f"Ballot rejected ({outcome.reason.code}): {outcome.reason}")

        self.stdout.write(
            f"Ballot recorded for voter {outcome.ballot.voter_id} at {outcome.ballot.cast_at.isoformat()}."
        )
