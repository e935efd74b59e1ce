"""Per-CPU interval normalization for offline and tickless processors."""

import logging
from dataclasses import dataclass

from pysadf.models import CpuSnapshot

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class CpuInterval:
    """Effective elapsed ticks of one CPU over a sampling interval."""

    divisor: int
    offline: bool

    @property
    def tickless(self) -> bool:
        """True when the CPU was online but its time base did not advance."""
        return self.divisor == 0 and not self.offline


def get_per_cpu_interval(current: CpuSnapshot, previous: CpuSnapshot) -> int:
    """
    Compute the ticks a CPU spent over the interval from its own counters.

    A CPU coming back online may report counters below the substituted
    previous values; such an interval counts as zero ticks.
    """
    return max(current.total() - previous.total(), 0)


def normalize(current: CpuSnapshot, previous: CpuSnapshot, nominal_divisor: int) -> CpuInterval:
    """
    Classify a CPU as offline, tickless or active for the interval.

    An offline CPU is absent from the data source, so every counter of its
    current snapshot reads zero. The current snapshot is then overwritten in
    place with the previous one, so the next interval does not see a jump
    from zero when the CPU comes back.

    Args:
        current: Snapshot at the end of the interval. Mutated when offline.
        previous: Snapshot at the start of the interval.
        nominal_divisor: System-wide interval in ticks.

    Returns:
        CpuInterval: Divisor to use for rates, zero when offline or tickless.
    """
    if current.total() == 0:
        current.copy_from(previous)
        return CpuInterval(divisor=0, offline=True)

    divisor = get_per_cpu_interval(current, previous)
    if divisor < nominal_divisor:
        logger.debug("CPU ran %d of %d nominal ticks", divisor, nominal_divisor)
    return CpuInterval(divisor=divisor, offline=False)
