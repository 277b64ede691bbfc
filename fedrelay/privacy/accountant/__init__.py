from .base import BasePrivacyAccountant, PrivacyAccountant, PrivacySpent
from .heuristic import HeuristicAccountant, estimate_privacy_cost

__all__ = [
    "PrivacyAccountant",
    "BasePrivacyAccountant",
    "PrivacySpent",
    "HeuristicAccountant",
    "estimate_privacy_cost",
]
