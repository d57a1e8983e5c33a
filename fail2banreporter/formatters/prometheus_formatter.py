import logging
from collections.abc import Sequence

from prometheus_client import CollectorRegistry, generate_latest
from prometheus_client.core import GaugeMetricFamily
from prometheus_client.registry import Collector

from ..jail import Jail
from .base import BaseFormatter, OutputType

logger = logging.getLogger(__name__)


class JailCollector(Collector):
    def __init__(self, formatter: "PrometheusFormatter", jails: Sequence[Jail]):
        self.formatter = formatter
        self.jails = jails
        self.extra_labels = sorted(formatter.geo_provider.get_labels())

    def collect(self):
        yield self.expose_single()
        yield self.expose_jail_summary()
        yield self.expose_jail_enabled()

    def expose_single(self):
        metric_labels = ["jail", "ip"] + self.extra_labels
        gauge = GaugeMetricFamily(
            "fail2ban_banned_ip", "IP banned by fail2ban", labels=metric_labels
        )

        for jail in self.jails:
            for record in jail.reports:
                entry = {"ip": record.host_address}
                if self.extra_labels:
                    entry.update(self.formatter.locate(record.host_address) or {})
                # Skip if the provider did not return every label
                if len(entry) < len(self.extra_labels) + 1:
                    continue
                values = [jail.name, entry["ip"]] + [
                    entry[x] for x in self.extra_labels
                ]
                gauge.add_metric(values, 1)

        logger.debug("Returning fail2ban_banned_ip gauge")
        return gauge

    def expose_jail_summary(self):
        gauge = GaugeMetricFamily(
            "fail2ban_jailed_ips",
            "Number of reported banned IPs per jail",
            labels=["jail"],
        )

        for jail in self.jails:
            gauge.add_metric([jail.name], len(jail.reports))

        logger.debug("Returning fail2ban_jailed_ips gauge")
        return gauge

    def expose_jail_enabled(self):
        gauge = GaugeMetricFamily(
            "fail2ban_jail_enabled",
            "Whether the jail is enabled",
            labels=["jail"],
        )

        for jail in self.jails:
            gauge.add_metric([jail.name], 1 if jail.enabled else 0)

        return gauge


class PrometheusFormatter(BaseFormatter):
    """Text exposition format, e.g. for node_exporter's textfile collector."""

    output_type = OutputType.PROMETHEUS

    def format_data(self, jails: Sequence[Jail]) -> str:
        registry = CollectorRegistry(auto_describe=False)
        registry.register(JailCollector(self, jails))
        return generate_latest(registry).decode("utf-8")
