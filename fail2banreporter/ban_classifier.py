"""Decides which ban records belong in a report."""

import enum
import json

from .exceptions import MetadataParseFailure


class BanSelection(enum.Enum):
    ACTIVE = "active"
    PREVIOUS = "previous"
    ALL = "all"


def is_elapsed(banned_at: int, ban_duration: int, now: int) -> bool:
    return now >= banned_at + ban_duration


def classify(record, selection: BanSelection, now: int, ignore_threshold: int) -> bool:
    """Return True if ``record`` should be reported for ``selection``.

    ACTIVE drops bans whose window ended before ``now`` and bans that started
    after ``ignore_threshold``. PREVIOUS keeps only bans whose window has
    ended. ALL keeps everything.
    """
    if selection is BanSelection.ALL:
        return True

    if selection is BanSelection.ACTIVE:
        return not (
            record.banned_at + record.ban_duration < now
            or record.banned_at > ignore_threshold
        )

    return is_elapsed(record.banned_at, record.ban_duration, now)


def parse_ban_metadata(blob) -> dict:
    """Parse the ``data`` column of a ban row.

    fail2ban stores a JSON object there; it may also be NULL or empty.
    """
    if blob is None:
        return {}
    if isinstance(blob, (bytes, bytearray, memoryview)):
        try:
            blob = bytes(blob).decode("utf-8")
        except UnicodeDecodeError as ex:
            raise MetadataParseFailure(f"Ban data is not UTF-8: {ex}") from ex
    if not isinstance(blob, str):
        raise MetadataParseFailure(f"Unexpected ban data type {type(blob).__name__}")
    if not blob.strip():
        return {}

    try:
        data = json.loads(blob)
    except ValueError as ex:
        raise MetadataParseFailure(f"Ban data is not JSON: {ex}") from ex
    if not isinstance(data, dict):
        raise MetadataParseFailure(
            f"Ban data is a {type(data).__name__}, expected an object"
        )
    return data
