from typing import override

from django.core.management.base import BaseCommand

from ledger.record_store import RecordStore
from ledger.startup import ensure_default_administrator


class Command(BaseCommand):
    help = "Check the ledger data directory and create the default administrator if it is missing."

    @override
    def handle(self, *args, **options) -> None:
        store = RecordStore()
        self.stdout.write(f"Data directory: {store.data_dir}")

        if ensure_default_administrator(store=store):
            self.stdout.write("Created the default administrator.")

        self.stdout.write(
            f"{len(store.load_voters())} voter(s), "
            f"{len(store.load_candidates())} candidate(s), "
            f"{len(store.load_ballots())} ballot(s), "
            f"{len(store.load_administrators())} administrator(s); "
            f"election is {store.load_election_state().phase}."
        )
