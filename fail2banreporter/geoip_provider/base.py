import logging

from ..config_tree import ConfigResolver

logger = logging.getLogger(__name__)


class BaseProvider:
    def __init__(self, config: ConfigResolver):
        self.config = config

    def annotate(self, ip):
        return {}

    def get_labels(self):
        return []


def load_provider(config: ConfigResolver) -> BaseProvider:
    """Instantiate the provider named by ``geoip.provider`` if geoip is enabled."""
    if not config.try_get("geoip.enabled", False, bool):
        return BaseProvider(config)

    class_name = config.try_get("geoip.provider", "MaxmindDB", str)
    try:
        mod = __import__(
            f"fail2banreporter.geoip_provider.{class_name.lower()}",
            fromlist=[class_name],
        )
        provider_cls = getattr(mod, class_name)
    except (ImportError, AttributeError) as ex:
        logger.error("Unknown geoip provider '%s': %s", class_name, ex)
        return BaseProvider(config)
    return provider_cls(config)
