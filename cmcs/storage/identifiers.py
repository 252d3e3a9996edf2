"""
Identifier allocation for claims and notifications.

Identifiers are derived from the records currently in the container, not
from a persisted counter. Callers must hold the owning store's lock between
loading the records and saving the record that consumes the identifier;
the repositories do this for every add.

CLAIMS: "C{year}-{NNN}" where NNN is the claim number, max(existing) + 1.
NOTIFICATIONS: "N{yyyyMMdd}-{NNN}" where NNN is the existing count + 1,
raised past any suffix already used on that day so deletions cannot cause
an id to be handed out twice.
"""

import re
from datetime import datetime
from typing import Iterable, Optional

from ..models.claim import Claim
from ..models.notification import Notification
from ..utils.time_utils import now


_NOTIFICATION_ID_RE = re.compile(r"^N(\d{8})-(\d+)$")


def next_claim_number(claims: Iterable[Claim]) -> int:
    """Return max(claim_number) + 1, or 1 for an empty collection."""
    highest = max((c.claim_number for c in claims), default=0)
    return highest + 1


def format_claim_id(claim_number: int, year: int) -> str:
    return f"C{year}-{claim_number:03d}"


def next_notification_id(
    notifications: Iterable[Notification],
    at: Optional[datetime] = None
) -> str:
    """
    Derive the id for a notification created at ``at`` (default: now).

    The suffix is the number of existing notifications plus one; when that
    value was already issued on the same day the next free suffix for the
    day is used instead.
    """
    at = at or now()
    day = at.strftime("%Y%m%d")

    existing = list(notifications)
    sequence = len(existing) + 1

    for notification in existing:
        match = _NOTIFICATION_ID_RE.match(notification.notification_id or "")
        if match and match.group(1) == day:
            sequence = max(sequence, int(match.group(2)) + 1)

    return f"N{day}-{sequence:03d}"
