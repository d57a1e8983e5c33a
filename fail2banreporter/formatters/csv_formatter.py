import csv
import io
from collections.abc import Sequence

from ..jail import BanRecord, Jail
from .base import BaseFormatter, OutputType, human_readable_duration, iso_timestamp

HEADER = ["IP", "Categories", "ReportDate", "Comment"]


class AbuseIpdbCsvFormatter(BaseFormatter):
    """AbuseIPDB bulk report CSV."""

    output_type = OutputType.ABUSEIPDB_CSV

    def format_data(self, jails: Sequence[Jail]) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(HEADER)
        for jail in jails:
            categories = self.config.abuseipdb_categories(jail.name)
            for record in jail.reports:
                writer.writerow(
                    [
                        record.host_address,
                        categories,
                        iso_timestamp(record.banned_at),
                        self.comment(jail, record),
                    ]
                )
        return buffer.getvalue()

    @staticmethod
    def comment(jail: Jail, record: BanRecord) -> str:
        times = "once" if record.ban_count == 1 else f"{record.ban_count} times"
        return (
            f"Banned by fail2ban jail {jail.name} {times}, "
            f"for {human_readable_duration(record.ban_duration)}"
        )
