from typing import override

from django.core.management.base import BaseCommand

from ledger.record_store import RecordStore
from ledger.tally import tally_dataset


class Command(BaseCommand):
    help = "Print the current tally, highest vote count first."

    @override
    def add_arguments(self, parser) -> None:
        parser.add_argument(
            "--format",
            choices=("csv", "json"),
            default="csv",
            help="Output format.",
        )

    @override
    def handle(self, *args, **options) -> None:
        dataset = tally_dataset(RecordStore().load_candidates())
        self.stdout.write(dataset.export(options["format"]))
