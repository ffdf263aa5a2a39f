"""Axis configuration and the domain-preserving merge."""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Sequence, Tuple

from .observable import Observable

Domain = Tuple[float, float]


class ScaleType(str, Enum):
    """Axis scale types."""

    LINEAR = "linear"
    LOG = "log"


def merge_domain(existing: Optional[Sequence[float]], new: Sequence[float]) -> Domain:
    """
    Combine a domain already on screen with a newly computed one.

    Each side only ever moves outward: the result covers both inputs, so the
    visible range grows to include new data but never shrinks.
    """
    new_min, new_max = new
    if existing is None:
        return (new_min, new_max)
    existing_min, existing_max = existing
    return (min(existing_min, new_min), max(existing_max, new_max))


@dataclass
class AxisConfig(Observable):
    """User-facing settings for a chart axis."""

    scale_type: ScaleType = ScaleType.LINEAR
    can_change_scale_type: bool = False
    min: Optional[float] = None
    max: Optional[float] = None

    def __post_init__(self) -> None:
        self._domain: Optional[Domain] = None
        if self.min is not None and self.max is not None:
            self._domain = (self.min, self.max)

    @property
    def domain(self) -> Optional[Domain]:
        """Domain currently in effect, or None before any data was seen."""
        return self._domain

    def update_domain_preserving_user_settings(
        self, new_domain: Sequence[float]
    ) -> Domain:
        """
        Widen the domain to include new_domain without shrinking it.

        A user setting for only one side is kept on that side; the other side
        comes from new_domain.
        """
        existing = self._domain
        if existing is None and (self.min is not None or self.max is not None):
            existing = (
                self.min if self.min is not None else new_domain[0],
                self.max if self.max is not None else new_domain[1],
            )
        self._domain = merge_domain(existing, new_domain)
        return self._domain

    def clone(self) -> "AxisConfig":
        """Independent copy carrying the current domain."""
        axis = replace(self)
        axis._domain = self._domain
        return axis
