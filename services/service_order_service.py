"""
Service order lookups.

Assets checked out for an event carry their service order in the
allocation scope ("OS: 48213"). This service extracts the order number and
resolves the event name so the scope can be displayed as
"<event> - <order>".
"""

from abc import ABC, abstractmethod
from typing import Optional
import re
import structlog

from supabase import AsyncClient

from config import settings, get_supabase_client
from models.asset import AllocationLabel
from exceptions import RemoteQueryError
from services.scope_classifier import ScopeClassifier, get_scope_classifier
from utils.bounded_cache import BoundedTTLCache, MISSING

logger = structlog.get_logger(__name__)

# Tried in order; first match wins
SERVICE_ORDER_NUMBER_PATTERNS = (
    re.compile(r"OS\s*:\s*(\w+)", re.IGNORECASE),
    re.compile(r"OS\s*(\w+)", re.IGNORECASE),
    re.compile(r"\b(\d{4,})\b"),
)

EMPTY_ALLOCATION_LABEL = "Stock"


def extract_service_order_number(allocation: Optional[str]) -> Optional[str]:
    """
    Extract the service order number from an allocation scope.

    Examples:
        "OS: 48213" -> "48213"
        "OS 7781" -> "7781"
        "Evento 123456" -> "123456"
        "Recife - PE" -> None
    """
    if not allocation:
        return None

    for pattern in SERVICE_ORDER_NUMBER_PATTERNS:
        match = pattern.search(allocation)
        if match and match.group(1):
            return match.group(1).strip()

    return None


class ServiceOrderDirectory(ABC):
    """Source of event names by service order number."""

    @abstractmethod
    async def find_event_name(self, number: str) -> Optional[str]:
        """
        Event name for a service order, or None if it has none.

        Raises:
            RemoteQueryError: On any store failure
        """


class SupabaseServiceOrderDirectory(ServiceOrderDirectory):
    """Looks up service_orders.event by service_orders.number."""

    def __init__(self, client: Optional[AsyncClient] = None, table: Optional[str] = None):
        self._client = client
        self.table = table or settings.service_orders_table

    async def find_event_name(self, number: str) -> Optional[str]:
        try:
            client = self._client or await get_supabase_client()
            result = (
                await client.table(self.table)
                .select("number, event")
                .eq("number", number)
                .execute()
            )
        except Exception as e:
            logger.error(
                "service_order_query_failed",
                number=number,
                error=str(e)
            )
            raise RemoteQueryError(str(e), details={"service_order": number}) from e

        # Numbers may be stored as integers or padded strings
        for row in result.data:
            if str(row.get("number", "")).strip() == number:
                return row.get("event") or None

        return None


class ServiceOrderLookupService:
    """
    Resolves service orders to event names.

    Answers (including "no event") are cached in a bounded LRU cache with
    TTL owned by this instance. Failed lookups are not cached.
    """

    def __init__(
        self,
        directory: Optional[ServiceOrderDirectory] = None,
        cache: Optional[BoundedTTLCache] = None,
        classifier: Optional[ScopeClassifier] = None,
    ):
        self.directory = directory or SupabaseServiceOrderDirectory()
        self.cache = cache or BoundedTTLCache(
            max_size=settings.service_order_cache_size,
            ttl_seconds=settings.service_order_cache_ttl_seconds
        )
        self.classifier = classifier or get_scope_classifier()

    async def get_event_name(self, number: str) -> Optional[str]:
        """Event name for a service order number, or None."""
        key = (number or "").strip()
        if not key:
            return None

        cached = self.cache.get(key)
        if cached is not MISSING:
            return cached

        try:
            event_name = await self.directory.find_event_name(key)
        except RemoteQueryError as e:
            logger.warning(
                "service_order_lookup_failed",
                number=key,
                error=e.message
            )
            return None

        self.cache.set(key, event_name)
        logger.debug("service_order_cached", number=key, found=event_name is not None)

        return event_name

    async def format_allocation_label(self, allocation: Optional[str]) -> AllocationLabel:
        """
        Display label for an allocation scope.

        Branch names are returned as-is; service orders become
        "<event> - <number>" when the event is known.
        """
        allocation = (allocation or "").strip()
        if not allocation:
            return AllocationLabel(allocation="", label=EMPTY_ALLOCATION_LABEL)

        if not self.classifier.is_service_order(allocation):
            return AllocationLabel(allocation=allocation, label=allocation)

        number = extract_service_order_number(allocation)
        if not number:
            return AllocationLabel(allocation=allocation, label=allocation)

        event_name = await self.get_event_name(number)

        return AllocationLabel(
            allocation=allocation,
            service_order_number=number,
            event_name=event_name,
            label=f"{event_name} - {number}" if event_name else allocation
        )


# Singleton instance for convenience
_service_order_service: Optional[ServiceOrderLookupService] = None


def get_service_order_service() -> ServiceOrderLookupService:
    """Get or create ServiceOrderLookupService instance."""
    global _service_order_service
    if _service_order_service is None:
        _service_order_service = ServiceOrderLookupService()
    return _service_order_service
