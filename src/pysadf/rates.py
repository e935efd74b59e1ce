"""Rate helpers. A zero denominator always yields 0.0."""


def s_value(previous: float, current: float, itv: int, hz: int) -> float:
    """Per-second rate of a counter over ``itv`` ticks at ``hz`` ticks per second."""
    if not itv:
        return 0.0
    return (current - previous) / itv * hz


def sp_value(previous: float, current: float, total: float) -> float:
    """Percentage of ``total`` that a counter advanced by."""
    if not total:
        return 0.0
    return (current - previous) / total * 100
