"""Report configuration and its YAML loader."""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

from pysadf.activities import ACTIVITIES, CpuMode
from pysadf.render import Dialect, Layout

TIME_FORMATS = ("utc", "local", "epoch")

DEFAULT_ACTIVITIES = ("cpu",)


class ConfigError(ValueError):
    """Raised when a report configuration is invalid."""


@dataclass(slots=True, frozen=True)
class ReportConfig:
    """What to render and how."""

    dialect: Dialect = Dialect.TABULAR
    layout: Layout = Layout.VERTICAL
    cpu_mode: CpuMode = CpuMode.DEFAULT
    cpus: frozenset[int] | None = None  # Entity indices, 0 is CPU "all"
    irqs: frozenset[int] | None = None  # Entity indices, 0 is the "sum" entry
    activities: tuple[str, ...] = DEFAULT_ACTIVITIES
    hz: int = 100
    page_size: int = 4096
    pretty: bool = False
    time_format: str = "utc"

    def validate(self) -> None:
        """
        Check the configuration is consistent.

        Raises:
            ConfigError: If any setting is out of range.
        """
        if self.layout is Layout.HORIZONTAL and self.dialect is Dialect.TABULAR:
            raise ConfigError("horizontal layout requires the delimited dialect")
        unknown = [name for name in self.activities if name not in ACTIVITIES]
        if unknown:
            raise ConfigError(f"unknown activities: {', '.join(unknown)}")
        if not self.activities:
            raise ConfigError("no activity selected")
        if self.hz <= 0:
            raise ConfigError(f"hz must be positive, got {self.hz}")
        if self.page_size < 1024 or self.page_size % 1024:
            raise ConfigError(f"page_size must be a multiple of 1024, got {self.page_size}")
        if self.time_format not in TIME_FORMATS:
            raise ConfigError(f"time_format must be one of {', '.join(TIME_FORMATS)}")

    def with_overrides(self, **overrides: Any) -> "ReportConfig":
        """Return a copy with every non-None override applied, validated."""
        config = replace(self, **{k: v for k, v in overrides.items() if v is not None})
        config.validate()
        return config


def _cpu_number(text: str, item: str) -> int:
    """Parse one CPU number from a selection item."""
    try:
        number = int(text)
    except ValueError as exc:
        raise ConfigError(f"invalid CPU selection: {item!r}") from exc
    if number < 0:
        raise ConfigError(f"invalid CPU number: {item}")
    return number


def parse_cpu_list(value: str | Iterable[int | str] | None) -> frozenset[int] | None:
    """
    Parse a CPU selection into entity indices.

    Accepts "ALL" (every CPU and CPU "all"), or a comma separated list of CPU
    numbers, ranges such as "0-3", and the word "all" for the aggregate.
    CPU ``n`` maps to entity index ``n + 1``.
    """
    if value is None:
        return None
    if isinstance(value, str):
        if value == "ALL":
            return None
        items: Iterable[int | str] = [item.strip() for item in value.split(",") if item.strip()]
    else:
        items = value

    selection: set[int] = set()
    for item in items:
        if isinstance(item, int):
            if item < 0:
                raise ConfigError(f"invalid CPU number: {item}")
            selection.add(item + 1)
            continue
        if not isinstance(item, str):
            raise ConfigError(f"invalid CPU selection: {item!r}")
        if item == "all":
            selection.add(0)
            continue
        low_text, _, high_text = item.partition("-")
        low = _cpu_number(low_text, item)
        high = _cpu_number(high_text, item) if high_text else low
        if high < low:
            raise ConfigError(f"invalid CPU range: {item}")
        selection.update(range(low + 1, high + 2))

    if not selection:
        raise ConfigError("empty CPU selection")
    return frozenset(selection)


def _enum(kind: type, raw: Any, key: str) -> Any:
    """Convert a setting to an enum member, listing the choices on error."""
    try:
        return kind(raw)
    except ValueError as exc:
        choices = ", ".join(member.value for member in kind)
        raise ConfigError(f"'{key}' must be one of {choices}, got {raw!r}") from exc


def config_from_mapping(raw: Mapping[str, Any]) -> ReportConfig:
    """Build a validated ReportConfig from a plain mapping."""
    known = {f.name for f in fields(ReportConfig)}
    unknown = set(raw) - known
    if unknown:
        raise ConfigError(f"unknown configuration keys: {', '.join(sorted(unknown))}")

    values: dict[str, Any] = {}
    if "dialect" in raw:
        values["dialect"] = _enum(Dialect, raw["dialect"], "dialect")
    if "layout" in raw:
        values["layout"] = _enum(Layout, raw["layout"], "layout")
    if "cpu_mode" in raw:
        values["cpu_mode"] = _enum(CpuMode, raw["cpu_mode"], "cpu_mode")
    if "cpus" in raw:
        values["cpus"] = parse_cpu_list(raw["cpus"])
    if "irqs" in raw:
        irqs = raw["irqs"]
        if irqs is not None:
            if not isinstance(irqs, list) or not all(isinstance(i, int) and i >= 0 for i in irqs):
                raise ConfigError("'irqs' must be a list of interrupt indices")
            irqs = frozenset(irqs)
        values["irqs"] = irqs
    if "activities" in raw:
        activities = raw["activities"]
        if isinstance(activities, str):
            activities = [activities]
        if not isinstance(activities, list):
            raise ConfigError("'activities' must be a list of activity names")
        values["activities"] = tuple(str(name) for name in activities)
    for key in ("hz", "page_size"):
        if key in raw:
            if not isinstance(raw[key], int) or isinstance(raw[key], bool):
                raise ConfigError(f"'{key}' must be an integer")
            values[key] = raw[key]
    if "pretty" in raw:
        values["pretty"] = bool(raw["pretty"])
    if "time_format" in raw:
        values["time_format"] = str(raw["time_format"])

    config = ReportConfig(**values)
    config.validate()
    return config


def load_config(path: str | Path) -> ReportConfig:
    """
    Load a report configuration from a YAML file.

    Args:
        path: Filesystem path to the YAML file.

    Returns:
        ReportConfig: Validated configuration.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigError: When the file is not a mapping or holds invalid settings.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(config_path)
    with config_path.open("r", encoding="utf-8") as handle:
        try:
            raw = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"{config_path}: {exc}") from exc

    if not isinstance(raw, Mapping):
        raise ConfigError(f"{config_path}: configuration must be a mapping")
    return config_from_mapping(raw)
