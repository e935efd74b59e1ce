"""Tests for the report pass driver."""

import io
import logging

from pysadf.config import ReportConfig
from pysadf.models import CpuSnapshot, Sample, SampleDocument
from pysadf.render import Dialect, Layout
from pysadf.report import ReportWriter, compute_intervals, format_timestamp


def make_sample(
    timestamp: int,
    user: int,
    idle: int,
    uptime0: int | None = None,
    **records,
) -> Sample:
    """Build a sample with CPU "all" and one processor sharing the same counters."""
    cpus = [CpuSnapshot(user=user, idle=idle), CpuSnapshot(user=user, idle=idle)]
    return Sample(timestamp=timestamp, records={"cpu": cpus, **records}, uptime0=uptime0)


def idle_cpus(count: int) -> list[CpuSnapshot]:
    return [CpuSnapshot() for _ in range(count)]


def two_samples() -> tuple[Sample, Sample]:
    previous = make_sample(0, 100, 900, uptime0=0, pcsw={"processes": 10, "context_switch": 1000})
    current = make_sample(
        100, 150, 950, uptime0=100, pcsw={"processes": 30, "context_switch": 1500}
    )
    return previous, current


def make_writer(**overrides) -> tuple[ReportWriter, io.StringIO]:
    stream = io.StringIO()
    overrides.setdefault("time_format", "epoch")
    return ReportWriter(ReportConfig(**overrides), stream), stream


class TestComputeIntervals:
    """Tests for interval computation."""

    def test_uptime_of_first_processor(self):
        """Test the single-processor interval comes from uptime0 when recorded."""
        previous = make_sample(0, 100, 900, uptime0=1000)
        current = make_sample(1, 300, 1700, uptime0=1250)

        assert compute_intervals(previous, current) == (250, 1000)

    def test_interval_split_across_processors(self):
        """Test the global interval is divided among processors without uptime0."""
        previous = Sample(timestamp=0, records={"cpu": [CpuSnapshot(idle=1000)] + idle_cpus(2)})
        current = Sample(timestamp=1, records={"cpu": [CpuSnapshot(idle=1200)] + idle_cpus(2)})

        assert compute_intervals(previous, current) == (100, 200)

    def test_no_cpu_records(self):
        """Test samples without CPU counters have no global interval."""
        assert compute_intervals(Sample(timestamp=0), Sample(timestamp=1)) == (0, 0)


class TestFormatTimestamp:
    """Tests for timestamp formatting."""

    def test_utc(self):
        """Test UTC timestamps."""
        assert format_timestamp(0, "utc") == "1970-01-01 00:00:00 UTC"
        assert format_timestamp(100, "utc") == "1970-01-01 00:01:40 UTC"

    def test_epoch(self):
        """Test seconds since the epoch."""
        assert format_timestamp(1234567890, "epoch") == "1234567890"

    def test_local(self):
        """Test local time has no zone suffix."""
        assert not format_timestamp(0, "local").endswith("UTC")


class TestReportWriter:
    """Tests for ReportWriter."""

    def test_horizontal_pass_is_one_line(self):
        """Test a horizontal pass puts every activity on one prefixed line."""
        writer, stream = make_writer(
            dialect=Dialect.DELIMITED,
            layout=Layout.HORIZONTAL,
            activities=("cpu", "pcsw"),
            cpus=frozenset({0}),
        )

        writer.write_pair("host", *two_samples())

        assert stream.getvalue() == "host;1;100;-1;50.00;0.00;0.00;0.00;0.00;50.00;20.00;500.00\n"

    def test_horizontal_pass_without_fields_is_terminated(self):
        """Test a horizontal pass rendering no field still ends its line."""
        writer, stream = make_writer(
            dialect=Dialect.DELIMITED, layout=Layout.HORIZONTAL, activities=("pcsw",)
        )
        missing = (make_sample(0, 100, 900, uptime0=0), make_sample(100, 150, 950, uptime0=100))

        writer.write_pair("host", *missing)
        writer.write_pair("host", *two_samples())

        assert stream.getvalue() == "host;1;100\nhost;1;100;20.00;500.00\n"

    def test_vertical_pass_one_line_per_record(self):
        """Test each activity record starts its own line in vertical layout."""
        writer, stream = make_writer(
            dialect=Dialect.DELIMITED,
            activities=("cpu", "pcsw"),
            cpus=frozenset({0}),
        )

        writer.write_pair("host", *two_samples())

        assert stream.getvalue() == (
            "host;1;100;-1;50.00;0.00;0.00;0.00;0.00;50.00\n"
            "host;1;100;20.00;500.00\n"
        )

    def test_activities_in_registry_order(self):
        """Test activities are rendered in a fixed order whatever the selection order."""
        writer, stream = make_writer(activities=("pcsw", "cpu"), cpus=frozenset({0}))

        writer.write_pair("host", *two_samples())

        lines = stream.getvalue().splitlines()
        assert lines[0] == "host\t1\t100\tall\t%user\t50.00"
        assert lines[-1] == "host\t1\t100\t-\tcswch/s\t500.00"

    def test_tabular_prefix_with_utc_time(self):
        """Test the tabular prefix carries host, interval and time."""
        writer, stream = make_writer(activities=("pcsw",), time_format="utc")

        writer.write_pair("db01", *two_samples())

        assert stream.getvalue() == (
            "db01\t1\t1970-01-01 00:01:40 UTC\t-\tproc/s\t20.00\n"
            "db01\t1\t1970-01-01 00:01:40 UTC\t-\tcswch/s\t500.00\n"
        )

    def test_missing_activity_skipped(self, caplog):
        """Test an activity absent from a sample is skipped with a warning."""
        writer, stream = make_writer(activities=("cpu", "pcsw"), cpus=frozenset({0}))
        previous = make_sample(0, 100, 900, uptime0=0)
        current = make_sample(100, 150, 950, uptime0=100)

        with caplog.at_level(logging.WARNING, logger="pysadf.report"):
            writer.write_pair("host", previous, current)

        assert "pcsw" in caplog.text
        assert "cswch/s" not in stream.getvalue()
        assert "%idle" in stream.getvalue()

    def test_no_elapsed_ticks_warns(self, caplog):
        """Test identical samples are reported."""
        writer, stream = make_writer(activities=("cpu",), cpus=frozenset({0}))
        sample = make_sample(0, 100, 900)

        with caplog.at_level(logging.WARNING, logger="pysadf.report"):
            writer.write_pair("host", sample, sample)

        assert "No elapsed ticks" in caplog.text
        assert "host\t0\t0\tall\t%idle\t0.00\n" in stream.getvalue()

    def test_write_document(self):
        """Test one pass per adjacent pair of samples."""
        writer, stream = make_writer(dialect=Dialect.DELIMITED, activities=("pcsw",))
        samples = [
            make_sample(0, 0, 0, uptime0=0, pcsw={"processes": 0, "context_switch": 0}),
            make_sample(100, 0, 0, uptime0=100, pcsw={"processes": 10, "context_switch": 100}),
            make_sample(200, 0, 0, uptime0=200, pcsw={"processes": 30, "context_switch": 100}),
        ]

        passes = writer.write(SampleDocument(hostname="h", samples=samples))

        assert passes == 2
        assert stream.getvalue() == "h;1;100;10.00;100.00\nh;1;200;20.00;0.00\n"

    def test_document_hz_overrides_config(self):
        """Test the document's tick rate is used for rates and the interval column."""
        writer, stream = make_writer(dialect=Dialect.DELIMITED, activities=("pcsw",))
        previous, current = two_samples()

        writer.write(SampleDocument(hostname="h", samples=[previous, current], hz=50))

        assert stream.getvalue() == "h;2;100;10.00;250.00\n"

    def test_single_sample_writes_nothing(self):
        """Test a document with one sample has no pass."""
        writer, stream = make_writer()

        assert writer.write(SampleDocument(hostname="h", samples=[make_sample(0, 1, 1)])) == 0
        assert stream.getvalue() == ""

    def test_renderer_follows_config(self):
        """Test the renderer is built from the configured dialect and layout."""
        writer, _ = make_writer(dialect=Dialect.DELIMITED, layout=Layout.HORIZONTAL)

        assert writer.renderer.dialect is Dialect.DELIMITED
        assert writer.renderer.layout is Layout.HORIZONTAL
