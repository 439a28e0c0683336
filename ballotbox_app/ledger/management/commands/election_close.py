from typing import override

from django.core.management.base import BaseCommand, CommandError

from ledger.election_phase import ElectionPhaseController
from ledger.errors import LedgerError
from ledger.record_store import RecordStore


class Command(BaseCommand):
    help = "Close the election. Ballots are refused until it is opened again."

    @override
    def handle(self, *args, **options) -> None:
        store = RecordStore()
        with store.lock:
            try:
                controller = ElectionPhaseController(store.load_election_state(strict=True))
                controller.close()
                store.save_election_state(controller.state)
            except LedgerError as exc:
                raise CommandError(str(exc)) from exc

        self.stdout.write(f"Election closed at {controller.state.ended_at.isoformat()}.")
