from io import StringIO

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import override_settings

from ledger.election_phase import Phase
from ledger.records import Candidate
from ledger.tests.utils_test_data import LedgerTestCase


class ElectionCommandTests(LedgerTestCase):
    def _call(self, *args: str) -> str:
        out = StringIO()
        call_command(*args, stdout=out)
        return out.getvalue()

    def test_open_requires_window(self) -> None:
        with self.assertRaisesMessage(CommandError, "window has not been configured"):
            self._call("election_open")

    def test_window_open_close_cycle_is_persisted(self) -> None:
        self._call("election_window", "2025-01-01 00:00", "2025-01-02 00:00")
        self.assertEqual(self.store.load_election_state().phase, Phase.closed)

        self._call("election_open")
        self.assertEqual(self.store.load_election_state().phase, Phase.active)

        with self.assertRaises(CommandError):
            self._call("election_open")

        self._call("election_close")
        state = self.store.load_election_state()
        self.assertEqual(state.phase, Phase.closed)
        self.assertIsNotNone(state.ended_at)

    def test_window_rejects_reversed_bounds(self) -> None:
        with self.assertRaises(CommandError):
            self._call("election_window", "2025-01-02", "2025-01-01")

    def test_cast_ballot_and_tally(self) -> None:
        self.seed_voters("alice")
        self.seed_candidates(("c1", "Jane", "President"), ("c2", "John", "President"))

        with self.assertRaisesMessage(CommandError, "election_not_open"):
            self._call("cast_ballot", "alice", "c2")

        self._call("election_window", "2025-01-01", "2025-01-02")
        self._call("election_open")
        output = self._call("cast_ballot", "alice", "c2")
        self.assertIn("Ballot recorded for voter alice", output)

        with self.assertRaisesMessage(CommandError, "already_voted"):
            self._call("cast_ballot", "alice", "c1")

        tally_lines = self._call("election_tally").splitlines()
        self.assertEqual(tally_lines[0], "rank,candidateId,name,position,votes,share")
        self.assertTrue(tally_lines[1].startswith("1,c2,John,President,1,"))


class RosterCommandTests(LedgerTestCase):
    def _call(self, *args: str) -> str:
        out = StringIO()
        call_command(*args, stdout=out)
        return out.getvalue()

    def test_candidate_add_and_update(self) -> None:
        self._call("candidate_add", "c1", "Jane", "President")
        self.store.save_candidates([Candidate("c1", "Jane", "President", 4)])

        output = self._call("candidate_add", "c1", "Jane Doe", "Chair", "--update")

        self.assertIn("4 vote(s)", output)
        self.assertEqual(self.store.load_candidates(), [Candidate("c1", "Jane Doe", "Chair", 4)])

        with self.assertRaises(CommandError):
            self._call("candidate_add", "c1", "Other", "Chair")

    def test_import_voters_reports_summary(self) -> None:
        path = self.data_dir / "voters-upload.csv"
        path.write_text("voterId,password\nv1,pw\nv1,pw\nv2\n", encoding="utf-8")

        output = self._call("import_voters", str(path))

        self.assertIn("1 voter(s) imported successfully, 1 duplicate(s) skipped, 1 malformed row(s) skipped", output)

    def test_import_voters_rejects_bad_header(self) -> None:
        path = self.data_dir / "bad.csv"
        path.write_text("name,email\n", encoding="utf-8")

        with self.assertRaisesMessage(CommandError, "Expected header"):
            self._call("import_voters", str(path))

    @override_settings(LEDGER_DEFAULT_ADMIN_USERNAME="admin", LEDGER_DEFAULT_ADMIN_PASSWORD="change-me")
    def test_bootstrap_creates_default_administrator(self) -> None:
        output = self._call("ledger_bootstrap")

        self.assertIn("Created the default administrator.", output)
        self.assertIn("1 administrator(s); election is CLOSED.", output)
        self.assertNotIn("Created", self._call("ledger_bootstrap"))
