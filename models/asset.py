"""
Asset schemas for validation and serialization.

An asset is one physical unit of serialized equipment (POS terminal,
tablet, power bank...). Column names match the assets table.
"""

from pydantic import Field, field_validator
from typing import Optional
from datetime import datetime
from enum import Enum

from models.base import BaseSchema


class AssetStatus(str, Enum):
    """Physical condition of an asset."""
    GOOD = "Good"
    BAD = "Bad"


# Columns the browser may filter with an in-list
FILTERABLE_FIELDS = (
    "kind",
    "model",
    "acquirer",
    "allocation_scope",
    "status",
    "park_category",
    "park_subcategory",
    "detail",
)


class AssetRecord(BaseSchema):
    """
    One asset as stored.

    Only serial and allocation_scope matter for reconciliation; every other
    field is carried through unchanged.
    """

    id: str = Field(..., description="Store-assigned identifier")
    serial: str = Field(..., description="Machine serial number")
    allocation_scope: str = Field(
        default="",
        description="Branch name or service-order tag (e.g. 'OS: 12345')"
    )

    # Identification
    kind: Optional[str] = Field(None, description="Equipment type (SMARTPOS, TOTEM...)")
    model: Optional[str] = Field(None, description="Equipment model")
    acquirer: Optional[str] = Field(None, description="Payment acquirer")
    serial_n: Optional[str] = Field(None, description="Secondary serial number")
    device_z: Optional[str] = Field(None, description="Device identifier")

    # Status
    status: Optional[str] = Field(
        None,
        description="Good or Bad; any other stored value is carried through as-is"
    )
    category: Optional[str] = None
    subcategory: Optional[str] = None
    park_category: Optional[str] = None
    park_subcategory: Optional[str] = None
    detail: Optional[str] = Field(None, description="Status detail (e.g. 'Em manutenção')")

    # Audit
    last_modified_at: Optional[datetime] = None
    last_modified_by: Optional[str] = None

    @property
    def is_incomplete(self) -> bool:
        """Asset registered without its secondary identifiers."""
        return not self.serial_n or not self.device_z


class AssetPatch(BaseSchema):
    """
    Partial update applied to an in-memory asset.

    Only fields explicitly set are merged.
    """

    id: str
    serial: Optional[str] = None
    allocation_scope: Optional[str] = None
    kind: Optional[str] = None
    model: Optional[str] = None
    acquirer: Optional[str] = None
    serial_n: Optional[str] = None
    device_z: Optional[str] = None
    status: Optional[AssetStatus] = None
    category: Optional[str] = None
    subcategory: Optional[str] = None
    park_category: Optional[str] = None
    park_subcategory: Optional[str] = None
    detail: Optional[str] = None
    last_modified_at: Optional[datetime] = None
    last_modified_by: Optional[str] = None


class AssetQueryFilter(BaseSchema):
    """
    Predicate sent to the asset store.

    No scope plus a serial_in list means "find these serials in any scope".
    """

    scope: Optional[str] = Field(
        None,
        description="Exact match on allocation_scope"
    )
    serial_in: Optional[list[str]] = Field(
        None,
        description="Serial in-list (bounded by the store batch limit)"
    )
    serial_prefix: Optional[str] = Field(
        None,
        description="Serial starts-with search"
    )
    field_in: dict[str, list[str]] = Field(
        default_factory=dict,
        description="Column -> accepted values"
    )
    incomplete_only: bool = Field(
        default=False,
        description="Only assets missing serial_n"
    )
    service_order_only: bool = Field(
        default=False,
        description="Only assets allocated under a service order"
    )

    @field_validator("field_in")
    @classmethod
    def known_fields(cls, v: dict[str, list[str]]) -> dict[str, list[str]]:
        """Reject columns the store cannot filter on; drop empty lists."""
        unknown = [name for name in v if name not in FILTERABLE_FIELDS]
        if unknown:
            raise ValueError(f"Cannot filter on: {', '.join(sorted(unknown))}")
        return {name: values for name, values in v.items() if values}


class AssetQueryResult(BaseSchema):
    """One page returned by the asset store."""

    records: list[AssetRecord] = Field(default_factory=list)
    next_cursor: Optional[str] = Field(
        None,
        description="Cursor to continue from; None when the store has no more"
    )
    has_more: Optional[bool] = Field(
        None,
        description="Authoritative end-of-data signal, if the store knows it"
    )


class AssetPage(BaseSchema):
    """Page handed out by PagedAssetRepository."""

    items: list[AssetRecord] = Field(default_factory=list)
    cursor: Optional[str] = None
    has_more: bool = False
    stale: bool = Field(
        default=False,
        description="Fetch was superseded and its data dropped"
    )


class AssetPageResponse(BaseSchema):
    """Single page of assets for the API."""

    data: list[AssetRecord]
    count: int
    next_cursor: Optional[str] = None
    has_more: bool
    incomplete_count: int = 0


class FilterOptions(BaseSchema):
    """Distinct values available for each browser filter."""

    kind: list[str] = Field(default_factory=list)
    model: list[str] = Field(default_factory=list)
    acquirer: list[str] = Field(default_factory=list)
    allocation_scope: list[str] = Field(default_factory=list)
    park_category: list[str] = Field(default_factory=list)
    park_subcategory: list[str] = Field(default_factory=list)
    status: list[str] = Field(default_factory=list)
    detail: list[str] = Field(default_factory=list)


class AllocationLabel(BaseSchema):
    """Display label for an allocation scope."""

    allocation: str
    service_order_number: Optional[str] = None
    event_name: Optional[str] = None
    label: str
