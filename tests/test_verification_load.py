"""Verification Test: Load Test - Render a large multi-processor report.

A 256-processor host sampled 200 times with several activities enabled.
Rendering must stay fast and produce exactly the expected number of lines.
"""

import io
import time

import pytest

from pysadf.config import ReportConfig
from pysadf.models import CpuSnapshot, Sample, SampleDocument
from pysadf.render import Dialect, Layout
from pysadf.report import ReportWriter

NUM_CPUS = 256
NUM_SAMPLES = 200


@pytest.fixture
def large_document() -> SampleDocument:
    """Build a document with many processors, interrupts and disks."""
    samples = []
    for n in range(NUM_SAMPLES):
        cpus = [CpuSnapshot(user=n * 10, system=n * 5, idle=n * 85) for _ in range(NUM_CPUS)]
        total = CpuSnapshot(user=n * 10 * NUM_CPUS, system=n * 5 * NUM_CPUS, idle=n * 85 * NUM_CPUS)
        records = {
            "cpu": [total, *cpus],
            "irq": [n * 100] + [n] * 16,
            "disk": [
                {"major": 8, "minor": m, "nr_ios": n * 10, "tot_ticks": n * 3}
                for m in range(0, 64, 16)
            ],
        }
        samples.append(Sample(timestamp=n, records=records, uptime0=n * 100))
    return SampleDocument(hostname="bighost", samples=samples)


class TestLoadTest:
    """Load test verification suite tests."""

    def test_vertical_line_count(self, large_document):
        """Test every record of every pass gets its own line."""
        stream = io.StringIO()
        config = ReportConfig(dialect=Dialect.DELIMITED, activities=("cpu", "irq", "disk"))

        passes = ReportWriter(config, stream).write(large_document)

        lines_per_pass = (NUM_CPUS + 1) + 17 + 4
        assert stream.getvalue().count("\n") == passes * lines_per_pass

    def test_horizontal_one_line_per_pass(self, large_document):
        """Test a horizontal report has exactly one line per pass."""
        stream = io.StringIO()
        config = ReportConfig(
            dialect=Dialect.DELIMITED,
            layout=Layout.HORIZONTAL,
            activities=("cpu", "irq", "disk"),
        )

        passes = ReportWriter(config, stream).write(large_document)

        lines = stream.getvalue().splitlines()
        assert len(lines) == passes == NUM_SAMPLES - 1
        assert all(line.startswith("bighost;1;") for line in lines)

    def test_render_time_under_threshold(self, large_document):
        """
        Test rendering completes within acceptable time.

        Roughly 400,000 fields are written. The bound is generous to account
        for CI variability.
        """
        config = ReportConfig(activities=("cpu", "irq", "disk"))

        start_time = time.perf_counter()
        ReportWriter(config, io.StringIO()).write(large_document)
        render_time = time.perf_counter() - start_time

        assert render_time < 30.0, f"Rendering took {render_time:.2f}s, expected < 30.0s"
