"""Claims container access: CRUD, queries and dashboard statistics."""

import logging
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Iterable, List, Optional, Union

from ..models.claim import (
    Claim,
    ClaimStatus,
    INITIAL_STATUSES,
    LecturerStats,
    ManagerStats,
    is_pending,
)
from ..utils.errors import ClaimValidationError
from ..utils.time_utils import in_month, now
from .identifiers import format_claim_id, next_claim_number
from .record_store import JsonRecordStore

logger = logging.getLogger(__name__)


STATUS_FILTERS = ("All", "Pending", "Approved", "Rejected", "Draft")


def _same_email(left: Optional[str], right: Optional[str]) -> bool:
    if left is None or right is None:
        return False
    return left.lower() == right.lower()


def filter_by_status(
    claims: Iterable[Claim],
    status_filter: str,
    include_drafts: bool = True
) -> List[Claim]:
    """
    Apply a dashboard status filter.

    Args:
        claims: Claims to filter
        status_filter: One of STATUS_FILTERS (case-insensitive); unknown
            values behave like "All"
        include_drafts: Whether "Pending" also covers drafts (lecturer view)

    Returns:
        Matching claims in their original order
    """
    key = (status_filter or "All").strip().lower()

    if key == "pending":
        return [
            c for c in claims
            if is_pending(c.status) or (include_drafts and c.status == ClaimStatus.DRAFT.value)
        ]
    if key == "approved":
        return [c for c in claims if c.status == ClaimStatus.APPROVED.value]
    if key == "rejected":
        return [c for c in claims if c.status == ClaimStatus.REJECTED.value]
    if key == "draft":
        return [c for c in claims if c.status == ClaimStatus.DRAFT.value]
    return list(claims)


class ClaimRepository:
    """
    Repository over the claims container.

    Owns claim identifier assignment and the ``last_updated`` refresh on
    every mutation. Missing ids on update/delete are silently ignored.
    """

    def __init__(self, store: Union[JsonRecordStore, str, Path]):
        """
        Initialize ClaimRepository.

        Args:
            store: A claims record store, or a path to the claims container
        """
        if not isinstance(store, JsonRecordStore):
            store = JsonRecordStore(
                store,
                decode=Claim.from_dict,
                encode=Claim.to_dict,
                name="claims",
                critical=True
            )
        self.store = store

    def load(self) -> List[Claim]:
        return self.store.load()

    def save(self, claims: List[Claim]) -> None:
        self.store.save(claims)

    def next_claim_number(self) -> int:
        """Claim number the next add would assign."""
        return next_claim_number(self.store.load())

    def add(self, claim: Claim) -> str:
        """
        Assign identity and timestamps, append the claim and persist.

        The claim object passed in is updated in place with its assigned
        ``claim_id``, ``claim_number``, ``submit_date`` and ``last_updated``.
        When no total is supplied it is derived from hours x rate.

        Args:
            claim: New claim in Draft or Pending Review status

        Returns:
            The assigned claim id

        Raises:
            ClaimValidationError: If the claim violates the claim invariants
        """
        self._validate_new(claim)

        with self.store.lock:
            claims = self.store.load()
            timestamp = now()
            claim_number = next_claim_number(claims)

            stored = replace(
                claim,
                claim_number=claim_number,
                claim_id=format_claim_id(claim_number, timestamp.year),
                submit_date=timestamp,
                last_updated=timestamp,
                total_amount=(
                    claim.calculate_total() if claim.total_amount is None else claim.total_amount
                ),
            )
            claims.append(stored)
            self.store.save(claims)

            # the caller's claim only takes the new identity once it is on disk
            claim.claim_number = stored.claim_number
            claim.claim_id = stored.claim_id
            claim.submit_date = stored.submit_date
            claim.last_updated = stored.last_updated
            claim.total_amount = stored.total_amount

        logger.info(
            f"Added claim {claim.claim_id} for {claim.lecturer_email} "
            f"(status={claim.status}, total={claim.total_amount})"
        )
        return claim.claim_id

    def get(self, claim_id: str) -> Optional[Claim]:
        for claim in self.store.load():
            if claim.claim_id == claim_id:
                return claim
        return None

    def update(self, claim: Claim) -> bool:
        """
        Replace the stored claim with the same id, refreshing ``last_updated``.

        Args:
            claim: Updated claim

        Returns:
            True if a claim was replaced, False (no-op) if the id is unknown
        """
        with self.store.lock:
            claims = self.store.load()
            index = self._index_of(claims, claim.claim_id)
            if index is None:
                logger.debug(f"Update skipped, claim {claim.claim_id} not found")
                return False

            timestamp = now()
            claims[index] = replace(claim, last_updated=timestamp)
            self.store.save(claims)
            claim.last_updated = timestamp

        logger.info(f"Updated claim {claim.claim_id} (status={claim.status})")
        return True

    def bulk_update(self, updated_claims: Iterable[Claim]) -> List[str]:
        """
        Apply ``update`` semantics to each claim with a single persist.

        Args:
            updated_claims: Claims to replace; unknown ids are skipped

        Returns:
            Ids of the claims that were replaced
        """
        updated: List[Claim] = []

        with self.store.lock:
            claims = self.store.load()
            timestamp = now()

            for claim in updated_claims:
                index = self._index_of(claims, claim.claim_id)
                if index is None:
                    logger.debug(f"Bulk update skipped unknown claim {claim.claim_id}")
                    continue
                claims[index] = replace(claim, last_updated=timestamp)
                updated.append(claim)

            self.store.save(claims)
            for claim in updated:
                claim.last_updated = timestamp

        updated_ids = [c.claim_id for c in updated]

        logger.info(f"Bulk updated {len(updated_ids)} claims")
        return updated_ids

    def delete(self, claim_id: str) -> bool:
        """
        Remove the claim with the given id.

        Returns:
            True if a claim was removed
        """
        return claim_id in self.bulk_delete([claim_id])

    def bulk_delete(self, claim_ids: Iterable[str]) -> List[str]:
        """
        Remove every claim whose id is listed, with a single persist.

        Returns:
            Ids that were actually removed
        """
        targets = set(claim_ids)

        with self.store.lock:
            claims = self.store.load()
            kept = [c for c in claims if c.claim_id not in targets]
            removed = [c.claim_id for c in claims if c.claim_id in targets]
            self.store.save(kept)

        if removed:
            logger.info(f"Deleted {len(removed)} claims: {', '.join(removed)}")
        return removed

    def get_by_lecturer(self, lecturer_email: str) -> List[Claim]:
        """Claims whose lecturer email matches, ignoring case."""
        return [
            c for c in self.store.load()
            if _same_email(c.lecturer_email, lecturer_email)
        ]

    def get_by_manager(self, manager_email: str) -> List[Claim]:
        """Claims assigned to the manager; unassigned claims never match."""
        return [
            c for c in self.store.load()
            if c.assigned_manager_email is not None
            and _same_email(c.assigned_manager_email, manager_email)
        ]

    def get_manager_stats(
        self,
        manager_email: str,
        as_of: Optional[datetime] = None
    ) -> ManagerStats:
        """
        Compute dashboard figures over the manager's assigned claims.

        Approved/rejected counts only include claims whose ``last_updated``
        falls in the calendar month of ``as_of`` (default: now).

        Args:
            manager_email: Manager whose assigned claims are counted
            as_of: Reference time for the "this month" counts

        Returns:
            ManagerStats
        """
        reference = as_of or now()
        claims = self.get_by_manager(manager_email)

        pending = [c for c in claims if is_pending(c.status)]
        approved = [
            c for c in claims
            if c.status == ClaimStatus.APPROVED.value and in_month(c.last_updated, reference)
        ]
        rejected = [
            c for c in claims
            if c.status == ClaimStatus.REJECTED.value and in_month(c.last_updated, reference)
        ]

        return ManagerStats(
            pending_claims=len(pending),
            approved_this_month=len(approved),
            rejected_this_month=len(rejected),
            total_pending_amount=sum(
                (c.total_amount or Decimal("0") for c in pending), Decimal("0")
            ),
        )

    def get_lecturer_stats(self, lecturer_email: str) -> LecturerStats:
        """Totals shown on the lecturer dashboard (drafts count as pending)."""
        claims = self.get_by_lecturer(lecturer_email)
        approved = [c for c in claims if c.status == ClaimStatus.APPROVED.value]

        return LecturerStats(
            total_claims=len(claims),
            pending_claims=len(filter_by_status(claims, "Pending", include_drafts=True)),
            approved_claims=len(approved),
            total_earnings=sum(
                (c.total_amount or Decimal("0") for c in approved), Decimal("0")
            ),
        )

    @staticmethod
    def _index_of(claims: List[Claim], claim_id: str) -> Optional[int]:
        for index, existing in enumerate(claims):
            if existing.claim_id == claim_id:
                return index
        return None

    @staticmethod
    def _validate_new(claim: Claim) -> None:
        if not claim.lecturer_email or not claim.lecturer_email.strip():
            raise ClaimValidationError.invalid_field("lecturer_email", "must not be empty")
        if claim.hours is None or claim.hours <= 0:
            raise ClaimValidationError.invalid_field("hours", "must be greater than 0")
        if claim.hourly_rate is None or claim.hourly_rate <= 0:
            raise ClaimValidationError.invalid_field("hourly_rate", "must be greater than 0")
        if claim.status not in INITIAL_STATUSES:
            raise ClaimValidationError.invalid_field(
                "status",
                f"new claims must start as Draft or Pending Review, not '{claim.status}'"
            )
