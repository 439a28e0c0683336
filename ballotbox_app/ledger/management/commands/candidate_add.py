from typing import override

from django.core.management.base import BaseCommand, CommandError

from ledger.errors import LedgerError
from ledger.record_store import RecordStore
from ledger.roster import RosterAdministration


class Command(BaseCommand):
    help = "Add a candidate, or rename an existing one with --update. Vote counts are preserved."

    @override
    def add_arguments(self, parser) -> None:
        parser.add_argument("candidate_id")
        parser.add_argument("name")
        parser.add_argument("position")
        parser.add_argument(
            "--update",
            action="store_true",
            help="Update the name and position of an existing candidate instead.",
        )

    @override
    def handle(self, *args, **options) -> None:
        roster = RosterAdministration(store=RecordStore())
        candidate_id: str = options["candidate_id"]
        try:
            if options.get("update"):
                candidate = roster.edit_candidate(candidate_id, options["name"], options["position"])
            else:
                candidate = roster.create_candidate(candidate_id, options["name"], options["position"])
        except LedgerError as exc:
            raise CommandError(str(exc)) from exc

        self.stdout.write(
            f"Candidate {candidate.candidate_id}: {candidate.name} ({candidate.position}), "
            f"{candidate.vote_count} vote(s)."
        )
