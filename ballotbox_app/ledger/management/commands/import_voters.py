from typing import override

from django.core.management.base import BaseCommand, CommandError

from ledger.errors import LedgerError
from ledger.record_store import RecordStore
from ledger.roster import RosterAdministration


class Command(BaseCommand):
    help = (
        "Import voters from a CSV with a 'voterId,password' header. Existing voter ids "
        "are skipped and keep their has-voted state."
    )

    @override
    def add_arguments(self, parser) -> None:
        parser.add_argument("path", help="CSV file to import.")

    @override
    def handle(self, *args, **options) -> None:
        roster = RosterAdministration(store=RecordStore())
        try:
            summary = roster.bulk_import_voters(options["path"])
        except LedgerError as exc:
            raise CommandError(str(exc)) from exc

        if not summary.persisted:
            raise CommandError(summary.describe())
        self.stdout.write(summary.describe())
