from typing import override

from django.core.management.base import BaseCommand, CommandError

from ledger.csv_import_utils import parse_csv_datetime
from ledger.election_phase import ElectionPhaseController
from ledger.errors import LedgerError
from ledger.record_store import RecordStore


class Command(BaseCommand):
    help = "Configure the voting window. Does not open or close the election."

    @override
    def add_arguments(self, parser) -> None:
        parser.add_argument("start", help="Window start, e.g. '2025-01-01 00:00'. Naive values are UTC.")
        parser.add_argument("end", help="Window end; must be after the start.")

    @override
    def handle(self, *args, **options) -> None:
        start = parse_csv_datetime(options["start"])
        end = parse_csv_datetime(options["end"])

        store = RecordStore()
        with store.lock:
            try:
                controller = ElectionPhaseController(store.load_election_state(strict=True))
                controller.configure_window(start, end)
                store.save_election_state(controller.state)
            except LedgerError as exc:
                raise CommandError(str(exc)) from exc

        self.stdout.write(f"Voting window set: {start.isoformat()} to {end.isoformat()}.")
