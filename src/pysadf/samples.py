"""Load sample documents (YAML or JSON) into Sample records."""

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from pysadf.models import CpuSnapshot, Sample, SampleDocument

logger = logging.getLogger(__name__)


class SampleFormatError(ValueError):
    """Raised when a sample document is malformed."""


COUNTERS = "counters"
COUNTER_LIST = "counter list"
DEVICE_LIST = "device list"
STATE_TABLE = "state table"

# Shape of each activity record as its renderer reads it
RECORD_SHAPES = {
    **dict.fromkeys(
        (
            "pcsw", "swap", "paging", "io", "memory", "ktables", "queue", "huge",
            "net_nfs", "net_nfsd", "net_sock", "net_ip", "net_eip", "net_icmp", "net_eicmp",
            "net_tcp", "net_etcp", "net_udp", "net_sock6", "net_ip6", "net_eip6",
            "net_icmp6", "net_eicmp6", "net_udp6",
        ),
        COUNTERS,
    ),
    **dict.fromkeys(("irq", "cpufreq"), COUNTER_LIST),
    **dict.fromkeys(("serial", "disk", "net_dev", "net_edev", "fan", "temp", "in"), DEVICE_LIST),
    "wghfreq": STATE_TABLE,
}
# Device records may name their device
TEXT_KEYS = frozenset({"name", "interface", "device"})


def _is_number(value: Any) -> bool:
    """Check for an int or float that is not a bool."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _check_counters(where: str, record: Any, text_keys: frozenset[str] = frozenset()) -> None:
    """Check a record is a mapping of numeric counters."""
    if not isinstance(record, Mapping):
        raise SampleFormatError(f"{where} must be a mapping of counters")
    for key, value in record.items():
        if key not in text_keys and not _is_number(value):
            raise SampleFormatError(f"{where}: counter {key!r} must be a number, got {value!r}")


def _check_record(where: str, shape: str, record: Any) -> None:
    """Check an activity record has the container shape its renderer reads."""
    if shape == COUNTERS:
        _check_counters(where, record)
        return
    if not isinstance(record, list):
        raise SampleFormatError(f"{where} must be a list")
    if shape == COUNTER_LIST:
        if not all(_is_number(value) for value in record):
            raise SampleFormatError(f"{where} must be a list of numbers")
    elif shape == DEVICE_LIST:
        for item in record:
            _check_counters(where, item, TEXT_KEYS)
    else:
        for states in record:
            if not isinstance(states, list):
                raise SampleFormatError(f"{where} must be a list of state lists")
            for state in states:
                _check_counters(where, state)


def _parse_sample(index: int, raw: Any) -> Sample:
    """Validate one raw sample and build its Sample record."""
    if not isinstance(raw, Mapping):
        raise SampleFormatError(f"sample #{index} must be a mapping")

    timestamp = raw.get("timestamp")
    if not isinstance(timestamp, int) or isinstance(timestamp, bool):
        raise SampleFormatError(f"sample #{index} missing integer 'timestamp'")

    uptime0 = raw.get("uptime0")
    if uptime0 is not None and (not isinstance(uptime0, int) or uptime0 < 0):
        raise SampleFormatError(f"sample #{index}: 'uptime0' must be a non-negative integer")

    records = {key: value for key, value in raw.items() if key not in ("timestamp", "uptime0")}

    cpus = records.get("cpu")
    if cpus is not None:
        if not isinstance(cpus, list) or not all(isinstance(c, Mapping) for c in cpus):
            raise SampleFormatError(f"sample #{index}: 'cpu' must be a list of counter mappings")
        try:
            records["cpu"] = [CpuSnapshot.from_mapping(c) for c in cpus]
        except (TypeError, ValueError) as exc:
            raise SampleFormatError(f"sample #{index}: {exc}") from exc

    for name, record in records.items():
        shape = RECORD_SHAPES.get(name)
        if shape is not None:
            _check_record(f"sample #{index}: {name!r}", shape, record)

    return Sample(timestamp=timestamp, records=records, uptime0=uptime0)


def parse_document(raw: Any, source: str = "<document>") -> SampleDocument:
    """
    Build a SampleDocument from already decoded YAML/JSON data.

    Raises:
        SampleFormatError: When required fields are missing or malformed.
    """
    if not isinstance(raw, Mapping):
        raise SampleFormatError(f"{source}: document must be a mapping")

    samples_raw = raw.get("samples")
    if not isinstance(samples_raw, list):
        raise SampleFormatError(f"{source}: 'samples' must be a list")

    hz = raw.get("hz")
    if hz is not None and (not isinstance(hz, int) or hz <= 0):
        raise SampleFormatError(f"{source}: 'hz' must be a positive integer")

    samples = [_parse_sample(i, entry) for i, entry in enumerate(samples_raw)]
    for earlier, later in zip(samples, samples[1:]):
        if later.timestamp < earlier.timestamp:
            raise SampleFormatError(f"{source}: samples are not in time order")

    return SampleDocument(hostname=str(raw.get("hostname", "localhost")), samples=samples, hz=hz)


def load_samples(path: str | Path) -> SampleDocument:
    """
    Load a sample document from a YAML or JSON file.

    Args:
        path: Filesystem path to the document.

    Returns:
        SampleDocument: The host name and its samples in time order.

    Raises:
        FileNotFoundError: If the file does not exist.
        SampleFormatError: When the document is malformed.
    """
    sample_path = Path(path)
    if not sample_path.exists():
        raise FileNotFoundError(sample_path)
    with sample_path.open("r", encoding="utf-8") as handle:
        try:
            raw = yaml.safe_load(handle)
        except yaml.YAMLError as exc:
            raise SampleFormatError(f"{sample_path}: {exc}") from exc

    document = parse_document(raw, str(sample_path))
    logger.info(
        "Loaded %d samples for %s from %s",
        len(document.samples),
        document.hostname,
        sample_path,
    )
    return document
