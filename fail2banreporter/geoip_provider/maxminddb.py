import logging

import geoip2.database
import geoip2.errors

from .base import BaseProvider

logger = logging.getLogger(__name__)


class MaxmindDB(BaseProvider):
    def annotate(self, ip):
        dbpath = self.config.try_get(
            "geoip.maxmind_dbpath", "/var/lib/GeoIP/GeoLite2-City.mmdb", str
        )
        try:
            reader = geoip2.database.Reader(dbpath)
        except (OSError, ValueError, RuntimeError) as ex:
            # maxminddb.InvalidDatabaseError is a RuntimeError
            logger.error("Cannot open MaxMind database '%s': %s", dbpath, ex)
            return None
        try:
            lookup = reader.city(ip)
            entry = {
                "country": str(lookup.country.iso_code),
                "city": str(lookup.city.name),
                "latitude": str(lookup.location.latitude),
                "longitude": str(lookup.location.longitude),
            }
        except (geoip2.errors.GeoIP2Error, ValueError):
            logger.error("Failed to retrieve location for ip '%s'", ip)
            return None
        finally:
            reader.close()
        return entry

    def get_labels(self):
        return ["country", "city", "latitude", "longitude"]
