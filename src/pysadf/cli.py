"""pysadf - command line entry point."""

import argparse
import logging
import sys

from pysadf.activities import ACTIVITIES, CpuMode
from pysadf.config import TIME_FORMATS, ConfigError, ReportConfig, load_config, parse_cpu_list
from pysadf.log import configure_logging, verbosity_to_level
from pysadf.render import Dialect, Layout
from pysadf.report import ReportWriter
from pysadf.samples import SampleFormatError, load_samples

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="pysadf",
        description="Render system activity samples in tabular or delimited form.",
    )
    parser.add_argument("samples", help="Sample document (YAML or JSON)")

    dialect = parser.add_mutually_exclusive_group()
    dialect.add_argument(
        "-d",
        dest="dialect",
        action="store_const",
        const=Dialect.DELIMITED,
        help="Delimited output, fields separated by semicolons",
    )
    dialect.add_argument(
        "-p",
        dest="dialect",
        action="store_const",
        const=Dialect.TABULAR,
        help="Tabular output, one metric per line (default)",
    )

    parser.add_argument(
        "-H",
        "--horizontally",
        dest="layout",
        action="store_const",
        const=Layout.HORIZONTAL,
        help="Print all metrics of a sample on one line (delimited output only)",
    )
    parser.add_argument(
        "-A",
        "--activity",
        dest="activities",
        action="append",
        choices=sorted(ACTIVITIES),
        metavar="ACTIVITY",
        help="Activity to render; repeat for several. Default: cpu",
    )
    parser.add_argument("-P", "--cpus", help='CPU list such as "0,2-3,all", or ALL')
    parser.add_argument(
        "--cpu-mode",
        choices=[mode.value for mode in CpuMode],
        help="CPU fields: default, or all (adds %%irq, %%soft, %%guest)",
    )
    parser.add_argument(
        "--pretty",
        action="store_const",
        const=True,
        help="Use persistent device names",
    )
    parser.add_argument(
        "--time-format",
        choices=TIME_FORMATS,
        help="Timestamp format in the line prefix",
    )
    parser.add_argument("--config", help="YAML report configuration file")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Increase log verbosity")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Entry point for pysadf."""
    args = build_parser().parse_args(argv)
    configure_logging(verbosity_to_level(args.verbose))

    try:
        base = load_config(args.config) if args.config else ReportConfig()
        config = base.with_overrides(
            dialect=args.dialect,
            layout=args.layout,
            activities=tuple(args.activities) if args.activities else None,
            cpus=parse_cpu_list(args.cpus),
            cpu_mode=CpuMode(args.cpu_mode) if args.cpu_mode else None,
            pretty=args.pretty,
            time_format=args.time_format,
        )
        document = load_samples(args.samples)
    except FileNotFoundError as exc:
        print(f"pysadf: file not found: {exc}", file=sys.stderr)
        return 1
    except (ConfigError, SampleFormatError) as exc:
        print(f"pysadf: {exc}", file=sys.stderr)
        return 2

    if len(document.samples) < 2:
        logger.warning("Need at least two samples to compute rates, got %d", len(document.samples))

    ReportWriter(config).write(document)
    return 0


if __name__ == "__main__":
    sys.exit(main())
