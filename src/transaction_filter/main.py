"""
Command line entry point.

Loads settings and the identifier store, runs each given transaction file
through the processing pipeline and writes forwarded records (with hashed
PANs) to the output directory.
"""

import logging
import sys
from argparse import ArgumentParser, BooleanOptionalAction
from pathlib import Path
from typing import List, Optional

import structlog
from prometheus_client import CollectorRegistry

from .config import Settings, get_settings
from .core.audit import AuditLogger, source_basename
from .core.exceptions import ConfigurationError, StoreUnavailableError
from .core.metrics import MetricsCollector
from .core.pipeline import ProcessingPipeline
from .core.processor import RecordProcessor
from .core.reader import read_transactions
from .core.store import load_identifier_store


def configure_logging(log_level: str = "INFO") -> None:
    """Configure structured logging for the application."""
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, log_level.upper()),
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def build_parser() -> ArgumentParser:
    """Build the CLI argument parser."""
    parser = ArgumentParser(
        prog="transaction-filter",
        description="Filter transaction files against a set of permitted card identifiers.",
    )
    parser.add_argument(
        "files",
        nargs="+",
        help="Transaction file path(s)",
    )
    parser.add_argument(
        "--config",
        help="YAML configuration file (default: ./config.yaml if present)",
    )
    parser.add_argument(
        "--apply-hashing",
        action=BooleanOptionalAction,
        default=None,
        help="Hash PANs before the store lookup",
    )
    parser.add_argument(
        "--workers",
        type=int,
        help="Record processing threads",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        help="Directory for forwarded records",
    )
    return parser


def apply_overrides(settings: Settings, args) -> Settings:
    """Command line flags take precedence over configuration."""
    overrides = {}
    if args.apply_hashing is not None:
        overrides["apply_hashing"] = args.apply_hashing
    if args.workers is not None:
        overrides["workers"] = args.workers
    if args.output_dir is not None:
        overrides["output_dir"] = args.output_dir
    return settings.model_copy(update=overrides) if overrides else settings


def output_target(source: str, output_dir: Path) -> Path:
    """Forwarded records for a source go to {output_dir}/{basename of source}."""
    return output_dir / source_basename(source)


def run(settings: Settings, files: List[str], metrics: Optional[MetricsCollector] = None) -> int:
    """Run every file through the pipeline. Returns the process exit code."""
    logger = structlog.get_logger(__name__)

    missing = [path for path in files if not Path(path).is_file()]
    if missing:
        logger.error("Transaction files not found", files=missing)
        return 1

    if settings.output_dir is not None:
        clashes = [
            path for path in files
            if output_target(path, settings.output_dir).resolve() == Path(path).resolve()
        ]
        if clashes:
            logger.error("Output would overwrite transaction files", files=clashes, output_dir=str(settings.output_dir))
            return 1

    try:
        store = load_identifier_store(settings.store)
    except StoreUnavailableError as e:
        logger.error("Identifier store unavailable", error=str(e), **e.details)
        return 1

    metrics = metrics or MetricsCollector(registry=CollectorRegistry())
    processor = RecordProcessor(store, apply_hashing=settings.apply_hashing)
    audit_logger = AuditLogger(settings.audit, metrics=metrics)

    try:
        with ProcessingPipeline(processor, audit_logger, metrics=metrics, workers=settings.workers) as pipeline:
            for path in files:
                logger.info("Processing transaction file", filename=path)
                records = read_transactions(
                    path,
                    encoding=settings.audit.encoding,
                    on_error=lambda *_: metrics.record_read_error(),
                )
                if settings.output_dir is None:
                    pipeline.run(records, sink=lambda record: None)
                    continue

                target = output_target(path, settings.output_dir)
                target.parent.mkdir(parents=True, exist_ok=True)
                with open(target, "w", encoding=settings.audit.encoding) as out:
                    pipeline.run(records, sink=lambda record: out.write(record.to_csv_line()))
    except StoreUnavailableError as e:
        logger.error("Identifier store unavailable", error=str(e), **e.details)
        return 1

    if settings.metrics_textfile is not None:
        metrics.write_textfile(settings.metrics_textfile)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = apply_overrides(get_settings(args.config), args)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    configure_logging(settings.log_level)
    return run(settings, args.files)


if __name__ == "__main__":
    sys.exit(main())
