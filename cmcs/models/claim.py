"""Claim record and claim statistics models."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from ..utils.formatting import to_money
from ..utils.time_utils import format_timestamp, parse_timestamp


class ClaimStatus(str, Enum):
    """Claim lifecycle status as stored in the claims container."""
    DRAFT = "Draft"
    PENDING_REVIEW = "Pending Review"
    PENDING_MANAGER_REVIEW = "Pending Manager Review"  # legacy alias of PENDING_REVIEW
    APPROVED = "Approved"
    REJECTED = "Rejected"


PENDING_STATUSES = frozenset({
    ClaimStatus.PENDING_REVIEW.value,
    ClaimStatus.PENDING_MANAGER_REVIEW.value,
})
INITIAL_STATUSES = frozenset({
    ClaimStatus.DRAFT.value,
    ClaimStatus.PENDING_REVIEW.value,
})


def is_pending(status: str) -> bool:
    """True for claims waiting on a manager decision."""
    return status in PENDING_STATUSES


@dataclass
class Claim:
    """
    A lecturer's request for payment for hours worked.

    Attributes:
        claim_id: Identifier "C{year}-{NNN}", assigned on add
        claim_number: Monotonic sequence number, assigned on add
        lecturer_email: Submitting lecturer
        lecturer_name: Submitting lecturer's display name
        assigned_manager_email: Reviewing manager, if one was chosen
        assigned_manager_name: Reviewing manager's display name
        submit_date: When the claim was added
        start_date: First day of the claimed period
        end_date: Last day of the claimed period
        hours: Hours worked (> 0)
        hourly_rate: Rate per hour (> 0)
        total_amount: hours x rate; stored as given, never recomputed on load
        status: One of the ClaimStatus values
        description: Free-text description of the work
        last_updated: Refreshed on every persisted mutation
        attached_documents: Storage paths of the claim's documents
        manager_comments: Approval note or rejection reason
        manager_action_date: When the manager last acted on the claim
    """
    lecturer_email: str
    hours: int
    hourly_rate: Decimal
    lecturer_name: str = ""
    claim_id: str = ""
    claim_number: int = 0
    assigned_manager_email: Optional[str] = None
    assigned_manager_name: Optional[str] = None
    submit_date: Optional[datetime] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    total_amount: Optional[Decimal] = None
    status: str = ClaimStatus.PENDING_REVIEW.value
    description: str = ""
    last_updated: Optional[datetime] = None
    attached_documents: List[str] = field(default_factory=list)
    manager_comments: Optional[str] = None
    manager_action_date: Optional[datetime] = None

    def __post_init__(self):
        if isinstance(self.status, ClaimStatus):
            self.status = self.status.value
        if not isinstance(self.hourly_rate, Decimal):
            self.hourly_rate = Decimal(str(self.hourly_rate))
        if self.total_amount is not None and not isinstance(self.total_amount, Decimal):
            self.total_amount = Decimal(str(self.total_amount))

    def calculate_total(self) -> Decimal:
        """Return hours x hourly rate rounded to cents."""
        return to_money(Decimal(self.hours) * self.hourly_rate)

    @property
    def is_editable(self) -> bool:
        """Only drafts may be edited or deleted by the lecturer."""
        return self.status == ClaimStatus.DRAFT.value

    @property
    def is_pending(self) -> bool:
        return is_pending(self.status)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the claim to its container representation.

        Returns:
            Dict keyed the way the claims container stores it
        """
        return {
            "ClaimId": self.claim_id,
            "ClaimNumber": self.claim_number,
            "LecturerEmail": self.lecturer_email,
            "LecturerName": self.lecturer_name,
            "AssignedManagerEmail": self.assigned_manager_email,
            "AssignedManagerName": self.assigned_manager_name,
            "SubmitDate": format_timestamp(self.submit_date),
            "StartDate": format_timestamp(self.start_date),
            "EndDate": format_timestamp(self.end_date),
            "Hours": self.hours,
            "HourlyRate": _decimal_out(self.hourly_rate),
            "TotalAmount": _decimal_out(self.total_amount),
            "Status": self.status,
            "Description": self.description,
            "LastUpdated": format_timestamp(self.last_updated),
            "AttachedDocuments": list(self.attached_documents),
            "ManagerComments": self.manager_comments,
            "ManagerActionDate": format_timestamp(self.manager_action_date),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Claim":
        """
        Build a claim from its container representation.

        Args:
            data: One element of the claims container

        Returns:
            Claim instance

        Raises:
            KeyError, TypeError, ValueError: If the record is malformed
        """
        return cls(
            claim_id=data.get("ClaimId") or "",
            claim_number=int(data.get("ClaimNumber") or 0),
            lecturer_email=data.get("LecturerEmail") or "",
            lecturer_name=data.get("LecturerName") or "",
            assigned_manager_email=data.get("AssignedManagerEmail"),
            assigned_manager_name=data.get("AssignedManagerName"),
            submit_date=parse_timestamp(data.get("SubmitDate")),
            start_date=parse_timestamp(data.get("StartDate")),
            end_date=parse_timestamp(data.get("EndDate")),
            hours=int(data.get("Hours") or 0),
            hourly_rate=_decimal_in(data.get("HourlyRate")) or Decimal("0"),
            total_amount=_decimal_in(data.get("TotalAmount")),
            status=data.get("Status") or ClaimStatus.PENDING_REVIEW.value,
            description=data.get("Description") or "",
            last_updated=parse_timestamp(data.get("LastUpdated")),
            attached_documents=list(data.get("AttachedDocuments") or []),
            manager_comments=data.get("ManagerComments"),
            manager_action_date=parse_timestamp(data.get("ManagerActionDate")),
        )


@dataclass
class ManagerStats:
    """Dashboard figures for one manager's assigned claims."""
    pending_claims: int = 0
    approved_this_month: int = 0
    rejected_this_month: int = 0
    total_pending_amount: Decimal = Decimal("0")


@dataclass
class LecturerStats:
    """Dashboard figures for one lecturer's own claims."""
    total_claims: int = 0
    pending_claims: int = 0
    approved_claims: int = 0
    total_earnings: Decimal = Decimal("0")


def _decimal_out(value: Optional[Decimal]) -> Union[float, str, None]:
    """
    Encode money for the container.

    Existing containers hold money as JSON numbers, so a value a float
    carries exactly is written as one. Anything a float would round
    (more than ~15 significant digits) is written as a decimal string,
    which ``_decimal_in`` reads back unchanged.
    """
    if value is None:
        return None
    as_float = float(value)
    if Decimal(repr(as_float)) == value:
        return as_float
    return str(value)


def _decimal_in(value: Any) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))
