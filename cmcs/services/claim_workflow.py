"""Lecturer and manager claim actions coordinated across the repositories."""

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from ..models.claim import Claim, ClaimStatus, is_pending
from ..storage.claim_repository import ClaimRepository
from ..storage.file_storage import FileRegistry
from ..storage.notification_repository import NotificationRepository
from ..utils.errors import ClaimValidationError, InvalidTransitionError
from ..utils.logging import log_context
from ..utils.time_utils import now

logger = logging.getLogger(__name__)


DEFAULT_MANAGER_NAME = "Academic Manager"
APPROVAL_COMMENT = "Approved for payment"
BULK_APPROVAL_COMMENT = "Bulk approved for payment"
BULK_REJECTION_PREFIX = "Bulk rejection: "


class ClaimWorkflow:
    """
    Status transitions and their side effects.

    State machine: Draft -> Pending Review -> Approved | Rejected.
    Lecturers edit, submit and delete only their drafts; managers approve
    or reject pending claims and may delete claims in any state. Deleting
    a claim removes its stored files first.

    Attributes:
        claims: Claim repository
        notifications: Notification repository
        files: File registry
    """

    def __init__(
        self,
        claims: ClaimRepository,
        notifications: NotificationRepository,
        files: FileRegistry
    ):
        self.claims = claims
        self.notifications = notifications
        self.files = files

    # Lecturer actions

    def submit_claim(
        self,
        claim: Claim,
        attachments: Sequence[Union[str, Path]] = (),
        as_draft: bool = False
    ) -> str:
        """
        Add a new claim and store its attachments.

        Attachments that fail validation are skipped; the claim keeps the
        paths of the files that were stored.

        Args:
            claim: New claim
            attachments: Files selected by the lecturer
            as_draft: Save as Draft instead of Pending Review

        Returns:
            The assigned claim id
        """
        claim.status = ClaimStatus.DRAFT.value if as_draft else ClaimStatus.PENDING_REVIEW.value
        claim.total_amount = None
        claim_id = self.claims.add(claim)

        if attachments:
            with log_context(claim_id=claim_id):
                saved_paths = self.files.save_multiple_files(attachments, claim_id)
                claim.attached_documents = saved_paths
                self.claims.update(claim)

                if len(saved_paths) < len(attachments):
                    logger.warning(
                        f"Claim {claim_id} saved with {len(saved_paths)} of "
                        f"{len(attachments)} document(s)"
                    )

        return claim_id

    def update_draft(self, claim: Claim) -> bool:
        """
        Save a lecturer's edits to a draft, recomputing its total.

        Returns:
            False if the claim does not exist

        Raises:
            InvalidTransitionError: If the stored claim is no longer a draft
        """
        stored = self.claims.get(claim.claim_id)
        if stored is None:
            return False
        if not stored.is_editable:
            raise InvalidTransitionError.from_status(claim.claim_id, stored.status, "edit")
        if claim.hours <= 0:
            raise ClaimValidationError.invalid_field("hours", "must be greater than 0")
        if claim.hourly_rate <= 0:
            raise ClaimValidationError.invalid_field("hourly_rate", "must be greater than 0")

        claim.status = ClaimStatus.DRAFT.value
        claim.claim_number = stored.claim_number
        claim.submit_date = stored.submit_date
        claim.total_amount = claim.calculate_total()
        return self.claims.update(claim)

    def submit_draft(self, claim_id: str) -> Optional[Claim]:
        """
        Move a draft to Pending Review.

        Returns:
            The updated claim, or None if it does not exist

        Raises:
            InvalidTransitionError: If the claim is not a draft
        """
        claim = self.claims.get(claim_id)
        if claim is None:
            return None
        if not claim.is_editable:
            raise InvalidTransitionError.from_status(claim_id, claim.status, "submit")

        claim.status = ClaimStatus.PENDING_REVIEW.value
        self.claims.update(claim)
        logger.info(f"Draft {claim_id} submitted for review")
        return claim

    def lecturer_delete_claim(self, claim_id: str, lecturer_email: str) -> bool:
        """
        Delete one of the lecturer's own drafts together with its files.

        Returns:
            False if no such claim belongs to the lecturer

        Raises:
            InvalidTransitionError: If the claim is no longer a draft
        """
        claim = self.claims.get(claim_id)
        if claim is None or claim.lecturer_email.lower() != (lecturer_email or "").lower():
            return False
        if not claim.is_editable:
            raise InvalidTransitionError.from_status(claim_id, claim.status, "delete")

        return self.delete_claim(claim_id)

    # Manager actions

    def approve_claim(
        self,
        claim_id: str,
        comments: str = APPROVAL_COMMENT,
        manager_name: str = DEFAULT_MANAGER_NAME,
        notify_lecturer: bool = False
    ) -> Optional[Claim]:
        """
        Approve a pending claim for payment.

        Args:
            claim_id: Claim to approve
            comments: Stored as the manager comments
            manager_name: Used in the optional approval notification
            notify_lecturer: Also send the lecturer an approval notification

        Returns:
            The approved claim, or None if it does not exist

        Raises:
            InvalidTransitionError: If the claim is not pending review
        """
        claim = self.claims.get(claim_id)
        if claim is None:
            return None
        self._require_pending(claim, "approve")

        claim.status = ClaimStatus.APPROVED.value
        claim.manager_comments = comments
        claim.manager_action_date = now()
        self.claims.update(claim)

        if notify_lecturer:
            self.notifications.create_approval_notification(
                claim.lecturer_email, claim_id, manager_name
            )

        logger.info(f"Approved claim {claim_id} for {claim.lecturer_name or claim.lecturer_email}")
        return claim

    def reject_claim(
        self,
        claim_id: str,
        reason: str,
        manager_name: Optional[str] = None
    ) -> Optional[Claim]:
        """
        Reject a pending claim and notify the lecturer.

        Args:
            claim_id: Claim to reject
            reason: Rejection reason, stored as manager comments and quoted
                in the notification
            manager_name: Rejecting manager's name (default "Academic Manager")

        Returns:
            The rejected claim, or None if it does not exist

        Raises:
            ClaimValidationError: If the reason is blank
            InvalidTransitionError: If the claim is not pending review
        """
        if not reason or not reason.strip():
            raise ClaimValidationError.invalid_field("rejection reason", "must not be empty")

        claim = self.claims.get(claim_id)
        if claim is None:
            return None
        self._require_pending(claim, "reject")

        claim.status = ClaimStatus.REJECTED.value
        claim.manager_comments = reason
        claim.manager_action_date = now()
        self.claims.update(claim)

        self.notifications.create_rejection_notification(
            claim.lecturer_email,
            claim_id,
            reason,
            manager_name or DEFAULT_MANAGER_NAME
        )

        logger.info(f"Rejected claim {claim_id}, notification sent to {claim.lecturer_email}")
        return claim

    def bulk_approve(self, claim_ids: Iterable[str]) -> List[str]:
        """
        Approve every listed claim that is pending, with one persist.

        Returns:
            Ids of the claims that were approved
        """
        changed = self._pending_claims(claim_ids, "bulk approve")
        timestamp = now()

        for claim in changed:
            claim.status = ClaimStatus.APPROVED.value
            claim.manager_comments = BULK_APPROVAL_COMMENT
            claim.manager_action_date = timestamp

        approved_ids = self.claims.bulk_update(changed)
        logger.info(f"Bulk approved {len(approved_ids)} claims")
        return approved_ids

    def bulk_reject(
        self,
        claim_ids: Iterable[str],
        reason: str,
        manager_name: Optional[str] = None
    ) -> List[str]:
        """
        Reject every listed claim that is pending and notify each lecturer.

        Returns:
            Ids of the claims that were rejected

        Raises:
            ClaimValidationError: If the reason is blank
        """
        if not reason or not reason.strip():
            raise ClaimValidationError.invalid_field("rejection reason", "must not be empty")

        changed = self._pending_claims(claim_ids, "bulk reject")
        timestamp = now()

        for claim in changed:
            claim.status = ClaimStatus.REJECTED.value
            claim.manager_comments = f"{BULK_REJECTION_PREFIX}{reason}"
            claim.manager_action_date = timestamp

        rejected_ids = self.claims.bulk_update(changed)

        for claim in changed:
            if claim.claim_id in rejected_ids:
                self.notifications.create_rejection_notification(
                    claim.lecturer_email,
                    claim.claim_id,
                    reason,
                    manager_name or DEFAULT_MANAGER_NAME
                )

        logger.info(f"Bulk rejected {len(rejected_ids)} claims")
        return rejected_ids

    def delete_claim(self, claim_id: str) -> bool:
        """
        Delete a claim in any state, removing its stored files first.

        Returns:
            True if the claim existed
        """
        self.files.delete_claim_files(claim_id)
        return self.claims.delete(claim_id)

    def bulk_delete(self, claim_ids: Iterable[str]) -> List[str]:
        """
        Delete several claims and their files with one claims persist.

        Returns:
            Ids of the claims that were removed
        """
        ids = list(claim_ids)
        for claim_id in ids:
            self.files.delete_claim_files(claim_id)
        return self.claims.bulk_delete(ids)

    def cleanup_orphaned_files(self) -> int:
        return self.files.cleanup_orphaned_files()

    def _require_pending(self, claim: Claim, action: str) -> None:
        if not is_pending(claim.status):
            logger.warning(f"Refused to {action} claim {claim.claim_id} in status {claim.status}")
            raise InvalidTransitionError.from_status(claim.claim_id, claim.status, action)

    def _pending_claims(self, claim_ids: Iterable[str], action: str) -> List[Claim]:
        wanted = list(dict.fromkeys(claim_ids))
        by_id = {c.claim_id: c for c in self.claims.load()}

        pending: List[Claim] = []
        for claim_id in wanted:
            claim = by_id.get(claim_id)
            if claim is None:
                logger.warning(f"{action}: claim {claim_id} not found, skipped")
            elif not is_pending(claim.status):
                logger.warning(f"{action}: claim {claim_id} is {claim.status}, skipped")
            else:
                pending.append(claim)
        return pending
