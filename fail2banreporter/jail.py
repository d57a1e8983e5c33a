import logging
import time
from collections.abc import Iterable
from dataclasses import dataclass, field

from .ban_classifier import BanSelection, classify, parse_ban_metadata
from .exceptions import MetadataParseFailure, RowSourceError, RowSourceStepFailure
from .fail2ban_db import Fail2BanDatabaseInterface
from .queries import QueryCatalog

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class BanRecord:
    host_address: str
    banned_at: int
    ban_duration: int
    ban_count: int
    metadata: dict = field(default_factory=dict)

    def __post_init__(self):
        if self.ban_duration < 0:
            raise ValueError(f"Negative ban duration for {self.host_address}")

    @property
    def banned_until(self) -> int:
        return self.banned_at + self.ban_duration

    def to_dict(self) -> dict:
        return {
            "host_address": self.host_address,
            "banned_on": self.banned_at,
            "banned_for": self.ban_duration,
            "ban_count": self.ban_count,
            "ban_data": self.metadata,
        }

    @classmethod
    def from_row(cls, row) -> "BanRecord":
        """Build a record from ``(ip, jail, timeofban, bantime, bancount, data)``.

        A row of any other shape raises ``RowSourceStepFailure``.
        """
        try:
            host, _, banned_at, ban_duration, ban_count, blob = row[:6]
            banned_at, ban_duration = int(banned_at), int(ban_duration)
            ban_count = int(ban_count)
        except (TypeError, ValueError) as ex:
            raise RowSourceStepFailure(f"Unexpected ban row {row!r}: {ex}") from ex

        try:
            metadata = parse_ban_metadata(blob)
        except MetadataParseFailure as ex:
            logger.debug("Ignoring ban data for %s: %s", host, ex)
            metadata = {}
        # fail2ban records permanent bans with a bantime of -1
        return cls(
            host_address=str(host),
            banned_at=banned_at,
            ban_duration=max(ban_duration, 0),
            ban_count=ban_count,
            metadata=metadata,
        )


@dataclass(slots=True)
class Jail:
    name: str
    enabled: bool = True
    description: str | None = None
    reports: list[BanRecord] = field(default_factory=list)
    total_bans: int | None = None
    selection: BanSelection | None = None

    def __post_init__(self):
        if not self.name:
            raise ValueError("Jail name must not be empty")

    def to_dict(self) -> dict:
        return {
            "jail_name": self.name,
            "jail_description": self.description,
            "is_enabled": self.enabled,
            "reports": [record.to_dict() for record in self.reports],
        }

    def load_banned(
        self,
        db: Fail2BanDatabaseInterface,
        queries: QueryCatalog,
        selection: BanSelection,
        now: int | None = None,
        ignore_threshold: int | None = None,
    ):
        """Replace ``reports`` with this jail's bans matching ``selection``."""
        if now is None:
            now = int(time.time())
        if ignore_threshold is None:
            ignore_threshold = queries.config.ban_ignore_threshold(now)

        self.reports = []
        self.total_bans = 0
        self.selection = selection

        query = queries.get_jail_query("get_banned_ips_per_jail_query", self.name)
        reports = []
        total = 0
        try:
            for row in db.rows(query):
                total += 1
                record = BanRecord.from_row(row)
                if classify(record, selection, now, ignore_threshold):
                    reports.append(record)
        except RowSourceError as ex:
            logger.error("Failed to load bans for jail '%s': %s", self.name, ex)
            return

        self.reports = reports
        self.total_bans = total
        logger.debug(
            "Jail '%s': %d of %d bans selected (%s)",
            self.name,
            len(reports),
            total,
            selection.value,
        )


def _jail_from_row(row, queries: QueryCatalog) -> Jail:
    try:
        name, enabled = row[:2]
        jail = Jail(name=name, enabled=bool(enabled))
    except (TypeError, ValueError) as ex:
        raise RowSourceStepFailure(f"Unexpected jail row {row!r}: {ex}") from ex
    jail.description = queries.config.jail_description(name)
    return jail


def load_jails(db: Fail2BanDatabaseInterface, queries: QueryCatalog) -> list[Jail]:
    query = queries.get_query("get_jails_query")
    try:
        return [_jail_from_row(row, queries) for row in db.rows(query)]
    except RowSourceError as ex:
        logger.error("Failed to load jails: %s", ex)
        return []


def load_jail(
    name: str, db: Fail2BanDatabaseInterface, queries: QueryCatalog
) -> Jail | None:
    query = queries.get_jail_query("get_specific_jail_query", name)
    try:
        for row in db.rows(query):
            return _jail_from_row(row, queries)
    except RowSourceError as ex:
        logger.error("Failed to load jail '%s': %s", name, ex)
    return None


def load_selected_jails(
    names: Iterable[str], db: Fail2BanDatabaseInterface, queries: QueryCatalog
) -> list[Jail]:
    jails = []
    for name in names:
        name = name.strip()
        if not name:
            continue
        jail = load_jail(name, db, queries)
        if jail is None:
            logger.warning("Jail '%s' not found", name)
        else:
            jails.append(jail)
    return jails


def count_total_jails(db: Fail2BanDatabaseInterface, queries: QueryCatalog) -> int:
    try:
        count = db.fetch_scalar(queries.get_query("count_jails_query"))
        return int(count or 0)
    except (RowSourceError, TypeError, ValueError) as ex:
        logger.error("Failed to count jails: %s", ex)
        return 0
