"""Data models for pysadf."""

from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from typing import Any

# Counters summed to detect an offline CPU and to compute its interval.
# Guest time is already accounted for in user time.
CPU_TIME_FIELDS = (
    "user",
    "nice",
    "system",
    "iowait",
    "idle",
    "steal",
    "hardirq",
    "softirq",
)


@dataclass(slots=True)
class CpuSnapshot:
    """Raw tick counters of one logical CPU (or of CPU "all")."""

    user: int = 0
    nice: int = 0
    system: int = 0
    iowait: int = 0
    idle: int = 0
    steal: int = 0
    hardirq: int = 0
    softirq: int = 0
    guest: int = 0

    def total(self) -> int:
        """Sum of the time counters, guest excluded."""
        return sum(getattr(self, name) for name in CPU_TIME_FIELDS)

    def copy_from(self, other: "CpuSnapshot") -> None:
        """Overwrite every counter in place with the values of ``other``."""
        for f in fields(self):
            setattr(self, f.name, getattr(other, f.name))

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "CpuSnapshot":
        """Build a snapshot from a mapping, missing counters read as zero."""
        known = {f.name for f in fields(cls)}
        unknown = set(raw) - known
        if unknown:
            raise ValueError(f"unknown CPU counters: {', '.join(sorted(unknown))}")
        return cls(**{name: int(value) for name, value in raw.items()})


@dataclass(slots=True, frozen=True)
class Sample:
    """One timestamped sample of every recorded activity."""

    timestamp: int
    records: dict[str, Any] = field(default_factory=dict)
    uptime0: int | None = None  # Ticks of a single processor

    @property
    def cpus(self) -> list[CpuSnapshot]:
        """CPU snapshots, index 0 being CPU "all"."""
        return self.records.get("cpu", [])


@dataclass(slots=True, frozen=True)
class SampleDocument:
    """A host's ordered samples as loaded from a sample file."""

    hostname: str
    samples: list[Sample]
    hz: int | None = None
