"""Verification Test: CPU hotplug chaos.

Processors are randomly taken offline and brought back between samples
while a long report is rendered. Every pass must still produce one
well-formed line per processor, offline processors must read 100% idle,
and no rate may leave the 0-100% range when a processor returns.
"""

import io
import random

from pysadf.config import ReportConfig
from pysadf.models import CPU_TIME_FIELDS, CpuSnapshot, Sample, SampleDocument
from pysadf.render import Dialect
from pysadf.report import ReportWriter

NUM_CPUS = 8
NUM_SAMPLES = 60


def hotplug_samples(seed: int) -> tuple[list[Sample], list[list[bool]]]:
    """
    Build samples where each processor is randomly online or offline.

    Counters of an online processor advance by a random number of ticks.
    An offline processor reports all counters as zero, and its real
    counters are frozen until it comes back.
    """
    rng = random.Random(seed)
    counters = [dict.fromkeys(CPU_TIME_FIELDS, 0) for _ in range(NUM_CPUS)]
    samples = []
    online_map = []

    for n in range(NUM_SAMPLES):
        # Every processor is online in the first sample
        online = [n == 0 or rng.random() > 0.3 for _ in range(NUM_CPUS)]
        cpus = []
        for cpu, is_online in enumerate(online):
            if is_online:
                for field in ("user", "system", "idle"):
                    counters[cpu][field] += rng.randint(1, 50)
                cpus.append(CpuSnapshot(**counters[cpu]))
            else:
                cpus.append(CpuSnapshot())
        # The aggregate keeps counting the frozen time of offline processors
        total = CpuSnapshot(**{f: sum(c[f] for c in counters) for f in CPU_TIME_FIELDS})
        samples.append(Sample(timestamp=n, records={"cpu": [total, *cpus]}))
        online_map.append(online)

    return samples, online_map


class TestCpuHotplug:
    """CPU hotplug verification suite tests."""

    def test_report_survives_hotplug(self):
        """Test every pass renders one line per processor despite hotplug."""
        samples, _ = hotplug_samples(seed=1)
        stream = io.StringIO()
        writer = ReportWriter(ReportConfig(dialect=Dialect.DELIMITED, time_format="epoch"), stream)

        passes = writer.write(SampleDocument(hostname="h", samples=samples))

        lines = stream.getvalue().splitlines()
        assert passes == NUM_SAMPLES - 1
        assert len(lines) == passes * (NUM_CPUS + 1)
        for line in lines:
            fields = line.split(";")
            assert len(fields) == 10, line
            for value in fields[4:]:
                assert 0.0 <= float(value) <= 100.0, line

    def test_offline_processors_read_idle(self):
        """Test processors offline in a sample show 100% idle and nothing else."""
        samples, online_map = hotplug_samples(seed=2)
        stream = io.StringIO()
        writer = ReportWriter(ReportConfig(dialect=Dialect.DELIMITED, time_format="epoch"), stream)

        writer.write(SampleDocument(hostname="h", samples=samples))

        for line in stream.getvalue().splitlines():
            fields = line.split(";")
            if fields[3] == "-1":
                continue
            cpu, timestamp = int(fields[3]), int(fields[2])
            if not online_map[timestamp][cpu]:
                assert fields[4:] == ["0.00", "0.00", "0.00", "0.00", "0.00", "100.00"], line

    def test_returning_processor_compared_with_last_online_values(self):
        """Test a processor coming back online is not charged for its offline time."""
        samples, online_map = hotplug_samples(seed=3)
        writer = ReportWriter(ReportConfig(dialect=Dialect.DELIMITED), io.StringIO())

        writer.write(SampleDocument(hostname="h", samples=samples))

        # Offline snapshots were replaced by the last values seen online
        for n in range(1, NUM_SAMPLES):
            for cpu in range(NUM_CPUS):
                if not online_map[n][cpu]:
                    assert samples[n].cpus[cpu + 1] == samples[n - 1].cpus[cpu + 1]
