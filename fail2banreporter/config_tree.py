"""Dot-notation access to the JSON configuration.

The configuration is held in two trees: the primary tree parsed from the
user's config file, and a default tree parsed from the built-in
``DEFAULT_CONFIG``. Paths such as ``jail_descriptions.sshd`` are resolved by
walking nested objects one segment at a time. ``ConfigResolver.try_get``
falls back from the primary tree to the default tree, and from there to a
caller-supplied value.
"""

import logging
import pathlib
import re
import typing
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

import json5

from .exceptions import (
    ConfigError,
    ConfigNotFound,
    ConfigPathInvalid,
    ConfigTypeMismatch,
)
from .resources import DEFAULT_CONFIG

logger = logging.getLogger(__name__)

# Only a path made entirely of identifier segments is split. Anything else is
# looked up as a single key.
COMPOUND_PATH = re.compile(r"[A-Za-z][A-Za-z0-9_]*(?:\.[A-Za-z][A-Za-z0-9_]*)+")


def _freeze(value):
    if isinstance(value, Mapping):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(v) for v in value)
    return value


@dataclass(slots=True, frozen=True)
class ConfigTree:
    root: typing.Any = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def from_value(cls, value) -> "ConfigTree":
        return cls(_freeze(value))

    @classmethod
    def from_string(cls, text: str) -> "ConfigTree":
        return cls.from_value(json5.loads(text))


def load_config_tree(fpath: str | pathlib.Path) -> ConfigTree:
    """Read the config file at ``fpath``.

    A missing or malformed file is logged and yields an empty tree, so the
    run continues on the built-in defaults.
    """
    fpath = pathlib.Path(fpath)
    try:
        text = fpath.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as ex:
        logger.warning("Cannot open config at path '%s': %s", fpath, ex)
        return ConfigTree()

    try:
        tree = ConfigTree.from_string(text)
    except ValueError as ex:
        logger.critical("Failed to parse config '%s': %s", fpath, ex)
        return ConfigTree()

    logger.debug("Loaded config '%s'", fpath)
    return tree


def split_path(path: str) -> tuple[str, str | None]:
    if COMPOUND_PATH.fullmatch(path):
        head, _, rest = path.partition(".")
        return head, rest
    return path, None


def lookup(container, path: str):
    """Walk ``path`` through ``container`` and return the raw value."""
    remaining = path
    while True:
        key, remaining = split_path(remaining)
        if not isinstance(container, Mapping) or key not in container:
            raise ConfigNotFound(path, key)
        value = container[key]
        if remaining is None:
            return value
        if not isinstance(value, Mapping):
            raise ConfigPathInvalid(path, key)
        container = value


def convert(value, as_type, path: str):
    """Convert a stored value to ``as_type``.

    ``None`` returns the stored value as is. Numbers convert to ``int``
    (truncating) and ``float``, strings only to ``str``, booleans only to
    ``bool`` and arrays only to ``list``/``tuple``, optionally parametrised
    with an element type, e.g. ``list[int]``.
    """
    if as_type is None or as_type is object:
        return value

    origin = typing.get_origin(as_type) or as_type
    is_number = isinstance(value, (int, float)) and not isinstance(value, bool)

    try:
        if origin is bool and isinstance(value, bool):
            return value
        if origin is int and is_number:
            return int(value)
        if origin is float and is_number:
            return float(value)
        if origin is str and isinstance(value, str):
            return value
        if origin is dict and isinstance(value, Mapping):
            return dict(value)
        if origin in (list, tuple) and isinstance(value, tuple):
            args = typing.get_args(as_type)
            item_type = args[0] if args else None
            return origin(convert(item, item_type, path) for item in value)
    except (OverflowError, ValueError):
        # int() of inf / nan
        pass

    raise ConfigTypeMismatch(path, as_type, value)


class ConfigResolver:
    def __init__(self, primary: ConfigTree, default: ConfigTree | None = None):
        self.primary = primary
        self.default = default if default is not None else ConfigTree()

    @classmethod
    def from_file(cls, fpath: str | pathlib.Path) -> "ConfigResolver":
        return cls(load_config_tree(fpath), ConfigTree.from_string(DEFAULT_CONFIG))

    def has(self, path: str) -> bool:
        try:
            lookup(self.primary.root, path)
        except ConfigError:
            return False
        return True

    def get(self, path: str, as_type=None):
        return self._get(self.primary, path, as_type)

    def try_get(self, path: str, fallback=None, as_type=None):
        for tree in (self.primary, self.default):
            try:
                return self._get(tree, path, as_type)
            except ConfigError as ex:
                logger.debug("%s", ex)
        return fallback

    @staticmethod
    def _get(tree: ConfigTree, path: str, as_type):
        return convert(lookup(tree.root, path), as_type, path)

    def db_file(self) -> str:
        return self.try_get("f2b_db_file", "", str)

    def ban_ignore_threshold(self, now: int) -> int:
        # The configured value is in hours. When unset the current timestamp
        # is used as the hour count, which never excludes a ban.
        return self.try_get("ignore_bans_older_than", now, int) * 3600

    def jail_setting(self, section: str, jail_name: str, as_type=str):
        """Look up ``<section>.<jail_name>``, or ``None`` when unset.

        Jail names that aren't valid path segments, e.g. ``nginx-http-auth``,
        are read by indexing the ``section`` object directly.
        """
        path = f"{section}.{jail_name}"
        value = self.try_get(path, as_type=as_type)
        if value is not None or COMPOUND_PATH.fullmatch(path):
            return value

        for tree in (self.primary, self.default):
            try:
                entries = self._get(tree, section, dict)
            except ConfigError as ex:
                logger.debug("%s", ex)
                continue
            if isinstance(entries.get(jail_name), as_type):
                return entries[jail_name]
        return None

    def jail_description(self, jail_name: str) -> str | None:
        return self.jail_setting("jail_descriptions", jail_name)

    def abuseipdb_categories(self, jail_name: str) -> str:
        categories = self.jail_setting("abuseipdb.categories", jail_name)
        if categories is None:
            categories = self.try_get("abuseipdb.default_categories", "18", str)
        return categories
