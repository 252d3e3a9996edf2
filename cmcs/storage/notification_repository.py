"""Notifications container access."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Union

from ..models.notification import Notification, NotificationType
from ..utils.time_utils import now
from .identifiers import next_notification_id
from .record_store import JsonRecordStore

logger = logging.getLogger(__name__)


REJECTION_TITLE = "Claim Rejected"
REJECTION_TEMPLATE = (
    "Your claim {claim_id} has been rejected by {manager_name}.\n\n"
    "Reason: {reason}\n\n"
    "If you have questions about this decision, please contact the Academic Manager."
)
APPROVAL_TITLE = "Claim Approved"
APPROVAL_TEMPLATE = (
    "Your claim {claim_id} has been approved by {manager_name} and authorized for payment."
)
_EPOCH = datetime.min


class NotificationRepository:
    """
    Repository over the notifications container.

    The container is non-critical: a failed save is logged and the caller
    carries on, matching the dashboards' expectations.
    """

    def __init__(self, store: Union[JsonRecordStore, str, Path]):
        if not isinstance(store, JsonRecordStore):
            store = JsonRecordStore(
                store,
                decode=Notification.from_dict,
                encode=Notification.to_dict,
                name="notifications",
                critical=False
            )
        self.store = store

    def load(self) -> List[Notification]:
        return self.store.load()

    def save(self, notifications: List[Notification]) -> bool:
        return self.store.save(notifications)

    def add(self, notification: Notification) -> str:
        """
        Assign id and creation time, append and persist.

        Args:
            notification: New notification; updated in place

        Returns:
            The assigned notification id
        """
        with self.store.lock:
            notifications = self.store.load()
            timestamp = now()

            notification.notification_id = next_notification_id(notifications, timestamp)
            notification.created_date = timestamp

            notifications.append(notification)
            self.store.save(notifications)

        logger.info(
            f"Added {notification.type} notification {notification.notification_id} "
            f"for {notification.recipient_email}"
        )
        return notification.notification_id

    def get(self, notification_id: str) -> Optional[Notification]:
        for notification in self.store.load():
            if notification.notification_id == notification_id:
                return notification
        return None

    def get_by_user(self, user_email: str) -> List[Notification]:
        """Notifications for the user (case-insensitive), newest first."""
        target = (user_email or "").lower()
        matches = [
            n for n in self.store.load()
            if (n.recipient_email or "").lower() == target
        ]
        # sort is stable, so equal timestamps keep container order
        matches.sort(key=lambda n: n.created_date or _EPOCH, reverse=True)
        return matches

    def mark_as_read(self, notification_id: str) -> bool:
        """
        Flip the read flag. Unknown ids are a silent no-op.

        Returns:
            True if the notification exists (read afterwards either way)
        """
        with self.store.lock:
            notifications = self.store.load()
            for notification in notifications:
                if notification.notification_id == notification_id:
                    if not notification.is_read:
                        notification.is_read = True
                        self.store.save(notifications)
                        logger.debug(f"Marked notification {notification_id} as read")
                    return True
        return False

    def mark_all_as_read(self, user_email: str) -> int:
        """Mark every unread notification of the user as read; returns how many changed."""
        target = (user_email or "").lower()
        changed = 0

        with self.store.lock:
            notifications = self.store.load()
            for notification in notifications:
                if (notification.recipient_email or "").lower() == target and not notification.is_read:
                    notification.is_read = True
                    changed += 1
            if changed:
                self.store.save(notifications)

        logger.debug(f"Marked {changed} notifications as read for {user_email}")
        return changed

    def get_unread_count(self, user_email: str) -> int:
        target = (user_email or "").lower()
        return sum(
            1 for n in self.store.load()
            if (n.recipient_email or "").lower() == target and not n.is_read
        )

    def delete(self, notification_id: str) -> bool:
        """
        Remove one notification.

        Returns:
            True if it existed and was removed
        """
        with self.store.lock:
            notifications = self.store.load()
            kept = [n for n in notifications if n.notification_id != notification_id]
            if len(kept) == len(notifications):
                return False
            self.store.save(kept)

        logger.info(f"Deleted notification {notification_id}")
        return True

    def delete_many(self, notification_ids: Iterable[str]) -> bool:
        """
        Remove every listed notification with a single persist.

        Returns:
            True if at least one notification was removed
        """
        targets = set(notification_ids)

        with self.store.lock:
            notifications = self.store.load()
            kept = [n for n in notifications if n.notification_id not in targets]
            removed = len(notifications) - len(kept)
            self.store.save(kept)

        logger.info(f"Deleted {removed} notifications")
        return removed > 0

    def create_rejection_notification(
        self,
        lecturer_email: str,
        claim_id: str,
        rejection_reason: str,
        manager_name: str
    ) -> Notification:
        """
        Build and store the rejection notice sent to a lecturer.

        Args:
            lecturer_email: Recipient
            claim_id: Rejected claim
            rejection_reason: Reason entered by the manager
            manager_name: Name shown as the rejecting manager

        Returns:
            The stored notification
        """
        notification = Notification(
            recipient_email=lecturer_email,
            title=REJECTION_TITLE,
            message=REJECTION_TEMPLATE.format(
                claim_id=claim_id,
                manager_name=manager_name,
                reason=rejection_reason
            ),
            type=NotificationType.REJECTION.value,
            related_claim_id=claim_id,
        )
        self.add(notification)
        return notification

    def create_approval_notification(
        self,
        lecturer_email: str,
        claim_id: str,
        manager_name: str
    ) -> Notification:
        notification = Notification(
            recipient_email=lecturer_email,
            title=APPROVAL_TITLE,
            message=APPROVAL_TEMPLATE.format(claim_id=claim_id, manager_name=manager_name),
            type=NotificationType.APPROVAL.value,
            related_claim_id=claim_id,
        )
        self.add(notification)
        return notification
