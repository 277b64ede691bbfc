from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Protocol

from ..types import PrivacyBudget


@dataclass(frozen=True)
class PrivacySpent:
    """Privacy budget consumption tracking."""

    epsilon_spent: float
    delta_spent: float

    def validate(self, max_epsilon: float, max_delta: float = 1.0) -> bool:
        """Validate against privacy budget."""
        return (
            self.epsilon_spent <= max_epsilon
            and self.delta_spent <= max_delta
        )

    def to_dict(self) -> PrivacyBudget:
        return {"epsilon": self.epsilon_spent, "delta": self.delta_spent}


class PrivacyAccountant(Protocol):
    """Protocol for privacy budget accounting."""

    def get_privacy_spent(self) -> PrivacySpent: ...
    def add_noise_event(
        self, epsilon: float, delta: float, sample_rate: float
    ) -> None: ...
    def validate_budget(
        self, max_epsilon: float, max_delta: float = 1.0
    ) -> bool: ...


class BasePrivacyAccountant(ABC):
    """Base class for privacy accountants."""

    def __init__(self) -> None:
        self._event_count = 0

    @property
    def event_count(self) -> int:
        return self._event_count

    @abstractmethod
    def _compute_privacy_spent(self) -> PrivacySpent:
        """Compute current privacy consumption."""
        pass

    def get_privacy_spent(self) -> PrivacySpent:
        """Get current privacy budget consumption."""
        return self._compute_privacy_spent()

    def validate_budget(
        self, max_epsilon: float, max_delta: float = 1.0
    ) -> bool:
        """Validate current privacy consumption against budget."""
        spent = self.get_privacy_spent()
        return bool(spent.validate(max_epsilon, max_delta))
