import socket
from collections.abc import Sequence

from ..jail import Jail
from .base import BaseFormatter, OutputType, human_readable_duration, iso_timestamp

SUMMARY_HEADERS = [
    "Jail Name",
    "Jail Active",
    "Total Bans in Jail",
    "Selected Bans in Jail",
]
REPORT_HEADERS = ["Host", "Banned On", "Banned For", "Ban Count"]


def markdown_table(headers: list[str], rows: list[list[str]]) -> str:
    """Render a table with every cell centred in its column."""
    widths = [len(header) + 2 for header in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell) + 2)

    def line(cells):
        centred = (cell.center(width) for cell, width in zip(cells, widths))
        return "|" + "|".join(centred) + "|"

    lines = [line(headers), "|" + "|".join("-" * width for width in widths) + "|"]
    lines.extend(line(row) for row in rows)
    return "\n".join(lines)


class MarkdownFormatter(BaseFormatter):
    output_type = OutputType.MARKDOWN

    def format_data(self, jails: Sequence[Jail]) -> str:
        sections = [self.generate_overview(jails)]
        sections.extend(self.generate_jail_statistics(jail) for jail in jails)
        return "\n\n".join(sections) + "\n"

    def generate_overview(self, jails: Sequence[Jail]) -> str:
        rows = [
            [
                jail.name,
                "yes" if jail.enabled else "no",
                "n/a" if jail.total_bans is None else str(jail.total_bans),
                str(len(jail.reports)),
            ]
            for jail in jails
        ]
        return (
            f"# General Overview for {socket.gethostname()}\n\n"
            + markdown_table(SUMMARY_HEADERS, rows)
        )

    def generate_jail_statistics(self, jail: Jail) -> str:
        text = (
            f"# Statistics for {jail.name}\n"
            f"## Jail description: {jail.description or 'A Fail2Ban jail'}"
        )
        if not jail.reports:
            return text + "\n\nNo bans to report."

        with_location = bool(self.geo_provider.get_labels())
        headers = REPORT_HEADERS + (["Location"] if with_location else [])
        rows = []
        for record in jail.reports:
            row = [
                record.host_address,
                iso_timestamp(record.banned_at),
                human_readable_duration(record.ban_duration),
                str(record.ban_count),
            ]
            if with_location:
                row.append(self.format_location(record.host_address))
            rows.append(row)
        return text + "\n\n" + markdown_table(headers, rows)

    def format_location(self, ip: str) -> str:
        location = self.locate(ip)
        if not location:
            return "unknown"
        parts = [location.get("city"), location.get("country")]
        return ", ".join(p for p in parts if p and p != "None") or "unknown"
