"""Report pass driver for pysadf."""

import logging
import sys
from datetime import datetime, timezone
from typing import TextIO

from pysadf.activities import ACTIVITIES, ActivityContext
from pysadf.config import ReportConfig
from pysadf.models import Sample, SampleDocument
from pysadf.normalize import get_per_cpu_interval
from pysadf.render import FieldRenderer, Layout

logger = logging.getLogger(__name__)


def compute_intervals(previous: Sample, current: Sample) -> tuple[int, int]:
    """
    Compute the interval between two samples in ticks.

    Returns:
        tuple[int, int]: ``(itv, g_itv)`` where ``g_itv`` is the interval
        summed over all processors (taken from CPU "all") and ``itv`` the
        interval of a single processor.
    """
    cur_cpus, prev_cpus = current.cpus, previous.cpus
    g_itv = get_per_cpu_interval(cur_cpus[0], prev_cpus[0]) if cur_cpus and prev_cpus else 0

    if current.uptime0 is not None and previous.uptime0 is not None:
        itv = max(current.uptime0 - previous.uptime0, 0)
    else:
        # Index 0 is CPU "all"
        itv = g_itv // max(len(cur_cpus) - 1, 1)
    return itv, g_itv


def format_timestamp(timestamp: int, time_format: str) -> str:
    """Format a sample timestamp for the line prefix."""
    if time_format == "epoch":
        return str(timestamp)
    if time_format == "local":
        return datetime.fromtimestamp(timestamp).strftime("%Y-%m-%d %H:%M:%S")
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


class ReportWriter:
    """
    Render the selected activities of consecutive sample pairs.

    Each pair of adjacent samples is one report pass. Line state is reset at
    the start of every pass, and before every activity in vertical layout.
    """

    def __init__(self, config: ReportConfig, stream: TextIO | None = None) -> None:
        """
        Initialize the ReportWriter.

        Args:
            config: Validated report configuration.
            stream: Output stream. Default sys.stdout.
        """
        self._config = config
        self._renderer = FieldRenderer(
            stream if stream is not None else sys.stdout,
            dialect=config.dialect,
            layout=config.layout,
        )
        self._activities = [a for name, a in ACTIVITIES.items() if name in config.activities]

    @property
    def renderer(self) -> FieldRenderer:
        """Get the field renderer."""
        return self._renderer

    def write(self, document: SampleDocument) -> int:
        """
        Render every adjacent pair of samples of a document.

        Returns:
            int: Number of report passes written.
        """
        hz = document.hz or self._config.hz
        passes = 0
        for previous, current in zip(document.samples, document.samples[1:]):
            self.write_pair(document.hostname, previous, current, hz=hz)
            passes += 1
        logger.info("Wrote %d report passes for %s", passes, document.hostname)
        return passes

    def write_pair(
        self,
        hostname: str,
        previous: Sample,
        current: Sample,
        hz: int | None = None,
    ) -> None:
        """Render one report pass over two adjacent samples."""
        config = self._config
        hz = hz or config.hz
        itv, g_itv = compute_intervals(previous, current)
        if not g_itv and not itv:
            logger.warning(
                "No elapsed ticks between samples at %d and %d",
                previous.timestamp,
                current.timestamp,
            )

        sep = config.dialect.separator
        timestamp = format_timestamp(current.timestamp, config.time_format)
        prefix = f"{hostname}{sep}{itv // hz}{sep}{timestamp}"
        ctx = ActivityContext(
            renderer=self._renderer,
            prefix=prefix,
            itv=itv,
            g_itv=g_itv,
            hz=hz,
            page_size=config.page_size,
            cpu_mode=config.cpu_mode,
            cpus=config.cpus,
            irqs=config.irqs,
            pretty=config.pretty,
        )
        logger.debug("Pass at %d: itv=%d g_itv=%d", current.timestamp, itv, g_itv)

        self._renderer.start_pass(prefix)
        for activity in self._activities:
            cur = current.records.get(activity.record)
            prev = previous.records.get(activity.record)
            if cur is None or prev is None:
                logger.warning(
                    "Activity %s not recorded at %d; skipped", activity.name, current.timestamp
                )
                continue
            if self._renderer.layout is Layout.VERTICAL:
                self._renderer.reset()
            activity.render(ctx, cur, prev)
        self._renderer.finish_pass()
