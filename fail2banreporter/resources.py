"""Built-in resources: application metadata, default config and default SQL."""

APP_NAME = "fail2banreporter"
APP_VERSION = "0.1.0"
APP_DESCRIPTION = "Generate ban reports from the fail2ban database"

DEFAULT_CONFIG_PATH = "/etc/fail2banreporter/config.json"

JAIL_PLACEHOLDER = "${JAIL}"

# Parsed with json5, so comments and trailing commas are fine here.
DEFAULT_CONFIG = """
{
    // Location of the fail2ban database
    "f2b_db_file": "/var/lib/fail2ban/fail2ban.sqlite3",

    "jail_descriptions": {
        "sshd": "Brute-force attempts against the SSH daemon",
    },

    // AbuseIPDB category ids, see https://www.abuseipdb.com/categories
    "abuseipdb": {
        "default_categories": "18",
        "categories": {
            "sshd": "18,22",
        },
    },

    "geoip": {
        "enabled": false,
        "provider": "MaxmindDB",
        "maxmind_dbpath": "/var/lib/GeoIP/GeoLite2-City.mmdb",
    },
}
"""

_BAN_COLUMNS = "ip, jail, timeofban, bantime, bancount, data"

DEFAULT_QUERIES = {
    "get_jails_query": "SELECT name, enabled FROM jails",
    "count_jails_query": "SELECT COUNT(*) FROM jails",
    "get_all_banned_ips_query": f"SELECT {_BAN_COLUMNS} FROM bans",
    "get_banned_ips_per_jail_query": (
        f"SELECT {_BAN_COLUMNS} FROM bans WHERE jail = '{JAIL_PLACEHOLDER}'"
    ),
    "get_banned_ips_after_tstamp_query": (
        f"SELECT {_BAN_COLUMNS} FROM bans WHERE timeofban > ?"
    ),
    "get_banned_ips_before_tstamp_query": (
        f"SELECT {_BAN_COLUMNS} FROM bans WHERE timeofban < ?"
    ),
    "get_banned_ips_between_tstamps_query": (
        f"SELECT {_BAN_COLUMNS} FROM bans WHERE timeofban BETWEEN ? AND ?"
    ),
    "get_specific_jail_query": (
        f"SELECT name, enabled FROM jails WHERE name = '{JAIL_PLACEHOLDER}'"
    ),
}
