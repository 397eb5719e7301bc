"""Command line entry point for pysysmon."""

import argparse
import logging
import signal
from pathlib import Path

import psutil

from pysysmon.app import SysmonApp
from pysysmon.config import DEFAULT_PERIOD, MonitorConfig, SystemSettings
from pysysmon.errors import InvalidArgument
from pysysmon.log_config import setup_logging
from pysysmon.monitor import SamplingLoop
from pysysmon.recorder import JsonLinesRecorder, Recorder
from pysysmon.scheduler import SamplingScheduler

logger = logging.getLogger(__name__)


def _period(value: str) -> int:
    try:
        period = int(value, 10)
    except ValueError:
        raise argparse.ArgumentTypeError(f"period '{value}' is not decimal") from None
    if period <= 0:
        raise argparse.ArgumentTypeError(f"period '{value}' is negative or null")
    return period


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pysysmon",
        description="Sample CPU, memory, thread and descriptor usage of named processes.",
    )
    parser.add_argument("process", nargs="+", help="process name to monitor")
    parser.add_argument(
        "-p",
        "--period",
        type=_period,
        default=DEFAULT_PERIOD,
        help=f"sample acquisition period (seconds). Default : {DEFAULT_PERIOD}",
    )
    parser.add_argument("-o", "--output", type=Path, help="output record file (JSON lines)")
    parser.add_argument("--tui", action="store_true", help="show a live view of the samples")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    parser.add_argument("--log-file", type=Path, help="also write logs to this file")
    parser.add_argument("--proc-root", type=Path, help=argparse.SUPPRESS)
    return parser


def parse_config(argv: list[str] | None = None) -> tuple[MonitorConfig, argparse.Namespace]:
    """
    Parse command line arguments into a MonitorConfig.

    Exits with status 2 on usage errors, like argparse does.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = MonitorConfig(
            names=tuple(args.process),
            period=args.period,
            output=args.output,
            tui=args.tui,
        )
    except InvalidArgument as e:
        parser.error(str(e))
    return config, args


def install_signal_handlers(loop: SamplingLoop) -> None:
    """Stop the loop on SIGINT and SIGTERM."""

    def _handler(signum, frame) -> None:
        logger.info("Received %s, stopping", signal.Signals(signum).name)
        loop.stop()

    signal.signal(signal.SIGINT, _handler)
    signal.signal(signal.SIGTERM, _handler)


def run(config: MonitorConfig, settings: SystemSettings) -> int:
    """Sample until interrupted. Returns the process exit status."""
    recorder: Recorder | None = None
    if config.output is not None:
        recorder = JsonLinesRecorder(config.output)
        try:
            recorder.open()
        except OSError as e:
            logger.error("open() failed for %s: %s", config.output, e)
            return 1

    try:
        if config.tui:
            SysmonApp(config.names, settings, config.period, recorder).run()
            return 0

        scheduler = SamplingScheduler(recorder, settings)
        for name in config.names:
            scheduler.register(name)

        loop = SamplingLoop(scheduler, period=config.period)
        install_signal_handlers(loop)
        logger.info(
            "Sampling %s every %ds into %s",
            ", ".join(config.names),
            config.period,
            config.output,
        )
        loop.run()
        return 0
    finally:
        if recorder is not None:
            recorder.close()


def main(argv: list[str] | None = None) -> int:
    """Entry point for the pysysmon command."""
    config, args = parse_config(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO, args.log_file)

    if not psutil.LINUX:
        logger.error("pysysmon reads procfs and only runs on Linux")
        return 1

    return run(config, SystemSettings.capture(args.proc_root))


if __name__ == "__main__":
    raise SystemExit(main())
