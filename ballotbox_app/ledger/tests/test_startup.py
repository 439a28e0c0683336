from django.test import override_settings

from ledger.credentials import hash_credential
from ledger.records import Administrator
from ledger.startup import ensure_default_administrator
from ledger.tests.utils_test_data import LedgerTestCase


class EnsureDefaultAdministratorTests(LedgerTestCase):
    @override_settings(LEDGER_DEFAULT_ADMIN_USERNAME="admin", LEDGER_DEFAULT_ADMIN_PASSWORD="change-me")
    def test_creates_missing_administrator_once(self) -> None:
        self.assertTrue(ensure_default_administrator(store=self.store))
        self.assertFalse(ensure_default_administrator(store=self.store))

        self.assertEqual(
            self.store.load_administrators(),
            [Administrator("admin", hash_credential("change-me"))],
        )

    @override_settings(LEDGER_DEFAULT_ADMIN_USERNAME="admin", LEDGER_DEFAULT_ADMIN_PASSWORD="")
    def test_empty_password_skips_creation(self) -> None:
        with self.assertLogs("ledger.startup", level="WARNING"):
            self.assertFalse(ensure_default_administrator(store=self.store))

        self.assertEqual(self.store.load_administrators(), [])

    @override_settings(LEDGER_DEFAULT_ADMIN_USERNAME="admin", LEDGER_DEFAULT_ADMIN_PASSWORD="change-me")
    def test_existing_administrator_is_left_alone(self) -> None:
        self.store.save_administrators([Administrator("admin", "existing-digest")])

        self.assertFalse(ensure_default_administrator(store=self.store))
        self.assertEqual(self.store.load_administrators(), [Administrator("admin", "existing-digest")])
