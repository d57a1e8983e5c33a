import argparse
import logging
import pathlib
import sys
import time

from pydantic import ValidationError

from .ban_classifier import BanSelection
from .config import Settings
from .config_tree import ConfigResolver
from .exceptions import RowSourceOpenFailure
from .fail2ban_db import Fail2BanDatabaseInterface
from .formatters.base import BaseFormatter, OutputType
from .formatters.csv_formatter import AbuseIpdbCsvFormatter
from .formatters.json_formatter import JsonFormatter
from .formatters.markdown_formatter import MarkdownFormatter
from .formatters.prometheus_formatter import PrometheusFormatter
from .geoip_provider.base import load_provider
from .jail import Jail, count_total_jails, load_jails, load_selected_jails
from .queries import QueryCatalog
from .resources import APP_DESCRIPTION, APP_NAME, APP_VERSION

logger = logging.getLogger(__name__)

FORMATTERS = {
    OutputType.ABUSEIPDB_CSV: AbuseIpdbCsvFormatter,
    OutputType.JSON: JsonFormatter,
    OutputType.MARKDOWN: MarkdownFormatter,
    OutputType.PROMETHEUS: PrometheusFormatter,
}


def make_formatter(output_type: OutputType, config: ConfigResolver) -> BaseFormatter:
    return FORMATTERS[output_type](config, load_provider(config))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=APP_NAME, description=APP_DESCRIPTION)
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"{APP_NAME} v{APP_VERSION} - {APP_DESCRIPTION}",
    )
    parser.add_argument(
        "-c",
        "--config",
        dest="config_file",
        type=pathlib.Path,
        help="Override the default config location",
    )
    parser.add_argument(
        "-f",
        "--db-file",
        type=pathlib.Path,
        help="Override the fail2ban database location",
    )
    parser.add_argument(
        "-o",
        "--output",
        dest="output_file",
        type=pathlib.Path,
        help="Write the report to this file instead of stdout",
    )
    parser.add_argument(
        "-J",
        "--only-jails",
        help="A comma-separated list of jails to include in the report",
    )
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING or ERROR")

    output = parser.add_mutually_exclusive_group()
    output.add_argument(
        "-j",
        "--json-out",
        dest="output_type",
        action="store_const",
        const=OutputType.JSON,
        help="Output bans as JSON",
    )
    output.add_argument(
        "-m",
        "--markdown-out",
        dest="output_type",
        action="store_const",
        const=OutputType.MARKDOWN,
        help="Output bans as a markdown document",
    )
    output.add_argument(
        "-P",
        "--prometheus-out",
        dest="output_type",
        action="store_const",
        const=OutputType.PROMETHEUS,
        help="Output bans as Prometheus metrics",
    )

    selection = parser.add_mutually_exclusive_group()
    selection.add_argument(
        "-a",
        "--all-bans",
        dest="ban_selection",
        action="store_const",
        const=BanSelection.ALL,
        help="Report ALL bans found in the database",
    )
    selection.add_argument(
        "-p",
        "--previous-bans",
        dest="ban_selection",
        action="store_const",
        const=BanSelection.PREVIOUS,
        help="Report ONLY expired bans",
    )
    return parser


def setup_logging(level: str):
    package_logger = logging.getLogger(APP_NAME)
    package_logger.setLevel(level)
    if package_logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setLevel(level)
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    handler.setFormatter(formatter)
    package_logger.addHandler(handler)


def load_report_jails(
    settings: Settings, db: Fail2BanDatabaseInterface, queries: QueryCatalog
) -> list[Jail]:
    names = settings.selected_jails
    if names is None:
        return load_jails(db, queries)
    return load_selected_jails(names, db, queries)


def write_report(report: str, output_file: pathlib.Path | None):
    if not report.endswith("\n"):
        report += "\n"
    if output_file is None:
        sys.stdout.write(report)
    else:
        output_file.write_text(report, encoding="utf-8")
        logger.info("Report written to '%s'", output_file)


def run(settings: Settings, now: int | None = None) -> int:
    if now is None:
        now = int(time.time())

    config = ConfigResolver.from_file(settings.config_file)
    queries = QueryCatalog(config)
    db_file = settings.db_file or pathlib.Path(config.db_file())

    try:
        db = Fail2BanDatabaseInterface(db_file)
    except RowSourceOpenFailure as ex:
        logger.error("Failed to open Fail2Ban DB file: %s", ex)
        logger.warning("Do you have read permissions for '%s'?", db_file)
        return 1

    ignore_threshold = config.ban_ignore_threshold(now)
    with db:
        jails = load_report_jails(settings, db, queries)
        logger.info(
            "Reporting on %d of %d jails", len(jails), count_total_jails(db, queries)
        )
        for jail in jails:
            logger.debug("Reading jail '%s' details", jail.name)
            jail.load_banned(
                db,
                queries,
                settings.ban_selection,
                now=now,
                ignore_threshold=ignore_threshold,
            )

    report = make_formatter(settings.output_type, config).format_data(jails)
    try:
        write_report(report, settings.output_file)
    except OSError as ex:
        logger.error("Cannot write report to '%s': %s", settings.output_file, ex)
        return 1
    return 0


def entrypoint(argv=None) -> int:
    args = build_parser().parse_args(argv)
    overrides = {k: v for k, v in vars(args).items() if v is not None}
    try:
        settings = Settings(**overrides)
    except ValidationError as ex:
        print(f"{APP_NAME}: invalid settings\n{ex}", file=sys.stderr)
        return 2

    setup_logging(settings.log_level)
    return run(settings)


def main():
    sys.exit(entrypoint())


if __name__ == "__main__":
    main()
