from typing import override

from django.core.management.base import BaseCommand, CommandError

from ledger.election_phase import ElectionPhaseController
from ledger.errors import LedgerError
from ledger.record_store import RecordStore


class Command(BaseCommand):
    help = "Open the election for ballots. Requires a configured voting window."

    @override
    def handle(self, *args, **options) -> None:
        store = RecordStore()
        with store.lock:
            try:
                controller = ElectionPhaseController(store.load_election_state(strict=True))
                controller.open()
                store.save_election_state(controller.state)
            except LedgerError as exc:
                raise CommandError(str(exc)) from exc

        self.stdout.write(f"Election opened at {controller.state.started_at.isoformat()}.")
