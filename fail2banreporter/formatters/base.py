import enum
import logging
from collections.abc import Sequence
from datetime import datetime, timezone

from ..config_tree import ConfigResolver
from ..geoip_provider.base import BaseProvider
from ..jail import Jail

logger = logging.getLogger(__name__)


class OutputType(enum.Enum):
    ABUSEIPDB_CSV = "csv"
    JSON = "json"
    MARKDOWN = "markdown"
    PROMETHEUS = "prometheus"


def human_readable_duration(seconds: int) -> str:
    """300 -> '5m', 90061 -> '1d 1h 1m 1s'."""
    if seconds < 60:
        return f"{seconds}s"
    days, rest = divmod(seconds, 86400)
    hours, rest = divmod(rest, 3600)
    minutes, secs = divmod(rest, 60)
    parts = [
        f"{value}{unit}"
        for value, unit in ((days, "d"), (hours, "h"), (minutes, "m"), (secs, "s"))
        if value
    ]
    return " ".join(parts)


def iso_timestamp(timestamp: int) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()


class BaseFormatter:
    output_type: OutputType

    def __init__(
        self, config: ConfigResolver, geo_provider: BaseProvider | None = None
    ):
        self.config = config
        self.geo_provider = geo_provider or BaseProvider(config)
        self._locations = {}

    def locate(self, ip: str) -> dict | None:
        if ip not in self._locations:
            logger.debug("Updating location for %s", ip)
            location = self.geo_provider.annotate(ip)
            if location is None:
                logger.warning("Cannot assign location info for '%s'", ip)
            self._locations[ip] = location
        return self._locations[ip]

    def format_data(self, jails: Sequence[Jail]) -> str:
        raise NotImplementedError
