"""
Single wiring point for the claim data layer.

Builds every repository and the workflow service from one Config, so the
dashboards, the maintenance command and tests share the same containers.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from ..storage.claim_repository import ClaimRepository
from ..storage.file_storage import FileRegistry
from ..storage.notification_repository import NotificationRepository
from ..storage.user_repository import UserRepository
from ..utils.config import Config
from .claim_workflow import ClaimWorkflow

logger = logging.getLogger(__name__)


@dataclass
class ClaimsData:
    """All persistence components for one data directory."""
    config: Config
    claims: ClaimRepository
    notifications: NotificationRepository
    users: UserRepository
    files: FileRegistry
    workflow: ClaimWorkflow

    @classmethod
    def from_config(cls, config: Optional[Config] = None) -> "ClaimsData":
        """
        Build the repositories named by a configuration.

        Args:
            config: Loaded configuration; built-in defaults when omitted

        Returns:
            ClaimsData with every component wired to the same containers
        """
        config = config or Config.default()
        storage = config.storage

        claims = ClaimRepository(storage.claims_path)
        notifications = NotificationRepository(storage.notifications_path)
        users = UserRepository(storage.users_path)
        files = FileRegistry(
            documents_dir=storage.documents_path,
            registry=storage.file_registry_path,
            claims=claims,
            file_policy=config.file_policy
        )
        workflow = ClaimWorkflow(claims, notifications, files)

        logger.info(f"Claim data layer ready: data_dir={storage.data_dir}")

        return cls(
            config=config,
            claims=claims,
            notifications=notifications,
            users=users,
            files=files,
            workflow=workflow,
        )
