"""Claim actions and component wiring built on the storage layer."""

from .claim_workflow import ClaimWorkflow
from .data_context import ClaimsData

__all__ = [
    "ClaimWorkflow",
    "ClaimsData"
]
