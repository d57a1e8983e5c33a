import logging

from .config_tree import ConfigResolver
from .exceptions import ConfigError
from .resources import DEFAULT_QUERIES, JAIL_PLACEHOLDER

logger = logging.getLogger(__name__)


def substitute_placeholder(
    template: str, value: str, marker: str = JAIL_PLACEHOLDER
) -> str:
    """Replace the first occurrence of ``marker`` in ``template``.

    Later occurrences are left in place.
    """
    return template.replace(marker, value, 1)


class QueryCatalog:
    """SQL text by query name: ``queries.<name>`` from the user config,
    otherwise the built-in default."""

    def __init__(self, config: ConfigResolver):
        self.config = config

    def get_query(self, name: str) -> str:
        try:
            query = self.config.get(f"queries.{name}", str)
        except ConfigError:
            query = DEFAULT_QUERIES.get(name, "")
        else:
            logger.debug("Using configured query '%s'", name)

        if not query:
            logger.warning("No query named '%s'", name)
        return query

    def get_jail_query(self, name: str, jail_name: str) -> str:
        return substitute_placeholder(self.get_query(name), jail_name)
