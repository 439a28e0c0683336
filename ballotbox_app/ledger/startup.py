import logging

from django.conf import settings

from ledger.record_store import RecordStore
from ledger.roster import RosterAdministration

logger = logging.getLogger(__name__)


def ensure_default_administrator(*, store: RecordStore) -> bool:
    """Create the configured default administrator when it is missing.

    Returns True when an administrator was created. An empty
    LEDGER_DEFAULT_ADMIN_PASSWORD disables creation.
    """

    username = str(settings.LEDGER_DEFAULT_ADMIN_USERNAME or "").strip()
    password = str(settings.LEDGER_DEFAULT_ADMIN_PASSWORD or "")
    if not username:
        return False

    if any(admin.username == username for admin in store.load_administrators()):
        return False

    if not password:
        logger.warning(
            "Startup: no administrator %r and LEDGER_DEFAULT_ADMIN_PASSWORD is empty; skipping creation",
            username,
        )
        return False

    created = RosterAdministration(store=store).add_administrator(username, password)
    if created:
        logger.info("Startup: created default administrator %r", username)
    return created
