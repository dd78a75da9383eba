"""
Serial reconciliation schemas.

A reconciliation compares a pasted list of serial numbers against the
assets allocated to one branch.
"""

from pydantic import ConfigDict, Field
from typing import Optional
from enum import Enum

from models.base import BaseSchema
from models.asset import AssetRecord


class ScopeClassification(str, Enum):
    """Where a found asset sits relative to the target scope."""
    IN_TARGET = "IN_TARGET"
    SERVICE_ORDER = "SERVICE_ORDER"
    OTHER_SCOPE = "OTHER_SCOPE"


class ReconciliationPhase(str, Enum):
    """Progress phases of one run, in order."""
    FETCHING = "FETCHING"
    COMPARING = "COMPARING"
    SEARCHING_REMAINDER = "SEARCHING_REMAINDER"
    FINALIZING = "FINALIZING"
    COMPLETE = "COMPLETE"


class ReconciliationRequest(BaseSchema):
    """
    Input of one reconciliation run.

    Frozen: a run never mutates its request.
    """

    model_config = ConfigDict(
        str_strip_whitespace=True,
        frozen=True
    )

    target_scope: str = Field(..., description="Branch to compare against")
    serials: str = Field(..., description="Raw pasted serial list")


class ReconciliationProgress(BaseSchema):
    """Progress event emitted while a run is in flight."""

    phase: ReconciliationPhase
    percent: int = Field(..., ge=0, le=100)
    batch_index: Optional[int] = Field(None, description="Remainder batch just completed (1-based)")
    batch_count: Optional[int] = Field(None, description="Total remainder batches")


class ReconciliationResult(BaseSchema):
    """
    Outcome of one run.

    Every unique input serial is in exactly one of matched_serials,
    missing_serials, in_other_scope or in_service_order.
    """

    target_scope: str

    matched_count: int = 0
    matched_serials: list[str] = Field(default_factory=list)
    missing_serials: list[str] = Field(
        default_factory=list,
        description="In the input, not found anywhere in the store"
    )
    extras_in_target: list[AssetRecord] = Field(
        default_factory=list,
        description="In the target scope, absent from the input"
    )
    in_other_scope: list[AssetRecord] = Field(
        default_factory=list,
        description="In the input, allocated to another branch"
    )
    in_service_order: list[AssetRecord] = Field(
        default_factory=list,
        description="In the input, checked out under a service order"
    )
    duplicates_in_input: list[str] = Field(default_factory=list)

    input_count: int = Field(0, description="Serial tokens in the raw input")
    unique_count: int = Field(0, description="Distinct serials in the input")
    target_scope_count: int = Field(0, description="Assets allocated to the target scope")
