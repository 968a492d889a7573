"""m/z ranges ignored when choosing the main feature of a group."""

from dataclasses import dataclass
from typing import Iterable, Optional

from ..exceptions import ConfigurationError


@dataclass(frozen=True)
class MzExclusionRange:
    """Closed m/z interval ``[lower, upper]``, e.g. a known background ion."""

    lower: float
    upper: float

    def __post_init__(self):
        if self.lower > self.upper:
            raise ConfigurationError(f"Invalid m/z exclusion range [{self.lower}, {self.upper}]")

    @classmethod
    def around(cls, mz: float, tolerance: float) -> 'MzExclusionRange':
        return cls(mz - tolerance, mz + tolerance)

    def contains(self, mz: float) -> bool:
        return self.lower <= mz <= self.upper

    def __contains__(self, mz: float) -> bool:
        return self.contains(mz)


def is_excluded(mz: float, ranges: Optional[Iterable[MzExclusionRange]]) -> bool:
    """True if any range contains ``mz``. Ranges may overlap."""
    if not ranges:
        return False
    return any(r.contains(mz) for r in ranges)
