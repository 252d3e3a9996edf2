"""Notification record model."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from ..utils.time_utils import format_timestamp, parse_timestamp


class NotificationType(str, Enum):
    """Kind of event a notification reports."""
    REJECTION = "Rejection"
    APPROVAL = "Approval"
    GENERAL = "General"


@dataclass
class Notification:
    """
    A message shown to a user on their dashboard.

    Attributes:
        recipient_email: User the notification is addressed to
        title: Short heading
        message: Body text
        type: One of the NotificationType values
        related_claim_id: Claim the notification is about, if any
        notification_id: Identifier "N{yyyyMMdd}-{NNN}", assigned on add
        created_date: Assigned on add
        is_read: Flipped by mark-as-read, never reset
    """
    recipient_email: str
    title: str
    message: str
    type: str = NotificationType.GENERAL.value
    related_claim_id: Optional[str] = None
    notification_id: str = ""
    created_date: Optional[datetime] = None
    is_read: bool = False

    def __post_init__(self):
        if isinstance(self.type, NotificationType):
            self.type = self.type.value

    def to_dict(self) -> Dict[str, Any]:
        return {
            "NotificationId": self.notification_id,
            "RecipientEmail": self.recipient_email,
            "Title": self.title,
            "Message": self.message,
            "CreatedDate": format_timestamp(self.created_date),
            "IsRead": self.is_read,
            "Type": self.type,
            "RelatedClaimId": self.related_claim_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Notification":
        return cls(
            notification_id=data.get("NotificationId") or "",
            recipient_email=data.get("RecipientEmail") or "",
            title=data.get("Title") or "",
            message=data.get("Message") or "",
            created_date=parse_timestamp(data.get("CreatedDate")),
            is_read=bool(data.get("IsRead", False)),
            type=data.get("Type") or NotificationType.GENERAL.value,
            related_claim_id=data.get("RelatedClaimId"),
        )
