"""
Allocation scope classification.

Decides where a found asset sits relative to the branch being reconciled.
"""

from typing import Optional
import re

from config import settings
from models.asset import AssetRecord
from models.reconciliation import ScopeClassification


class ScopeClassifier:
    """
    Classifies assets against a target scope.

    Priority:
        1. Service-order tag -> SERVICE_ORDER (even if it equals the target)
        2. Same scope as target -> IN_TARGET
        3. Anything else -> OTHER_SCOPE
    """

    def __init__(self, service_order_pattern: Optional[str] = None):
        self.pattern = re.compile(service_order_pattern or settings.service_order_pattern)

    def is_service_order(self, allocation_scope: Optional[str]) -> bool:
        """True if the scope denotes an asset checked out under a service order."""
        if not allocation_scope:
            return False
        return self.pattern.search(allocation_scope) is not None

    def classify(self, asset: AssetRecord, target_scope: str) -> ScopeClassification:
        """Classify one asset against target_scope."""
        if self.is_service_order(asset.allocation_scope):
            return ScopeClassification.SERVICE_ORDER
        if asset.allocation_scope == target_scope:
            return ScopeClassification.IN_TARGET
        return ScopeClassification.OTHER_SCOPE


_scope_classifier: Optional[ScopeClassifier] = None


def get_scope_classifier() -> ScopeClassifier:
    """Get or create ScopeClassifier instance."""
    global _scope_classifier
    if _scope_classifier is None:
        _scope_classifier = ScopeClassifier()
    return _scope_classifier
