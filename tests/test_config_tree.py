import logging

import pytest

from fail2banreporter.config_tree import (
    ConfigResolver,
    ConfigTree,
    load_config_tree,
    split_path,
)
from fail2banreporter.exceptions import (
    ConfigNotFound,
    ConfigPathInvalid,
    ConfigTypeMismatch,
)


def make_resolver(primary, default=None):
    return ConfigResolver(
        ConfigTree.from_value(primary),
        ConfigTree.from_value(default or {}),
    )


class TestPathTraversal:

    def test_nested_value(self):
        config = make_resolver({"a": {"b": {"c": 5}}})
        assert config.get("a.b.c") == 5

    def test_intermediate_not_an_object(self):
        config = make_resolver({"a": {"b": 3}})
        with pytest.raises(ConfigPathInvalid):
            config.get("a.b.c")

    def test_missing_key(self):
        config = make_resolver({})
        with pytest.raises(ConfigNotFound):
            config.get("x")

    def test_missing_nested_key(self):
        config = make_resolver({"a": {"b": 1}})
        with pytest.raises(ConfigNotFound) as excinfo:
            config.get("a.c")
        assert excinfo.value.segment == "c"

    def test_single_character_segments(self):
        config = make_resolver({"a": {"b": "ok"}})
        assert config.get("a.b") == "ok"

    def test_malformed_path_is_a_single_key(self):
        config = make_resolver({"a-b.c": 1, "a-b": {"c": 2}})
        assert config.get("a-b.c") == 1

    def test_malformed_path_does_not_traverse(self):
        config = make_resolver({"a-b": {"c": 2}})
        with pytest.raises(ConfigNotFound):
            config.get("a-b.c")

    def test_split_path(self):
        assert split_path("queries.get_jails_query") == ("queries", "get_jails_query")
        assert split_path("a.b.c") == ("a", "b.c")
        assert split_path("single") == ("single", None)
        assert split_path("jail_descriptions.nginx-http-auth") == (
            "jail_descriptions.nginx-http-auth",
            None,
        )
        assert split_path("a..b") == ("a..b", None)

    def test_has(self):
        config = make_resolver({"a": {"b": 3}, "flag": False})
        assert config.has("a")
        assert config.has("a.b")
        assert config.has("flag")
        assert not config.has("a.b.c")
        assert not config.has("a.c")
        assert not config.has("z")

    def test_has_only_checks_primary(self):
        config = make_resolver({}, {"a": 1})
        assert not config.has("a")

    def test_non_object_root(self):
        config = ConfigResolver(ConfigTree.from_value([1, 2]))
        assert not config.has("a")
        with pytest.raises(ConfigNotFound):
            config.get("a")


class TestConversion:

    @pytest.fixture
    def config(self):
        return make_resolver(
            {
                "int": 7,
                "float": 3.9,
                "negative": -2.5,
                "string": "text",
                "flag": True,
                "numbers": [1, 2, 3],
                "mixed": [1, "two"],
                "object": {"key": "value"},
                "nothing": None,
            }
        )

    def test_number_to_int_truncates(self, config):
        assert config.get("int", int) == 7
        assert config.get("float", int) == 3
        assert config.get("negative", int) == -2

    def test_number_to_float(self, config):
        assert config.get("int", float) == 7.0

    def test_string_only_to_string(self, config):
        assert config.get("string", str) == "text"
        with pytest.raises(ConfigTypeMismatch):
            config.get("string", int)
        with pytest.raises(ConfigTypeMismatch):
            config.get("int", str)

    def test_bool_is_not_a_number(self, config):
        assert config.get("flag", bool) is True
        with pytest.raises(ConfigTypeMismatch):
            config.get("flag", int)
        with pytest.raises(ConfigTypeMismatch):
            config.get("int", bool)

    def test_homogeneous_array(self, config):
        assert config.get("numbers", list[int]) == [1, 2, 3]
        assert config.get("numbers", list) == [1, 2, 3]
        assert config.get("numbers", tuple) == (1, 2, 3)
        with pytest.raises(ConfigTypeMismatch):
            config.get("mixed", list[int])
        with pytest.raises(ConfigTypeMismatch):
            config.get("string", list)

    def test_object(self, config):
        assert config.get("object", dict) == {"key": "value"}
        with pytest.raises(ConfigTypeMismatch):
            config.get("numbers", dict)

    def test_raw_value(self, config):
        assert config.get("object")["key"] == "value"
        assert config.get("nothing") is None
        assert config.get("numbers") == (1, 2, 3)

    def test_raw_value_is_read_only(self, config):
        with pytest.raises(TypeError):
            config.get("object")["key"] = "changed"
        assert config.get("object.key") == "value"

    def test_converted_copies_do_not_touch_tree(self, config):
        numbers = config.get("numbers", list)
        numbers.append(4)
        assert config.get("numbers", list) == [1, 2, 3]


class TestFallback:

    def test_primary_wins(self):
        config = make_resolver({"a": 1}, {"a": 2})
        assert config.try_get("a", 3) == 1

    def test_default_tree_before_literal(self):
        config = make_resolver({}, {"a": {"b": 2}})
        assert config.try_get("a.b", 3) == 2

    def test_literal_when_absent_everywhere(self):
        config = make_resolver({}, {})
        assert config.try_get("a.b", 3) == 3

    def test_wrong_type_in_primary_falls_back(self):
        config = make_resolver({"a": "nope"}, {"a": 2})
        assert config.try_get("a", 3, int) == 2

    def test_never_raises(self):
        config = make_resolver({"a": 1}, {"a": [1]})
        assert config.try_get("a.b.c", "fallback") == "fallback"
        assert config.try_get("a", "fallback", dict) == "fallback"

    def test_fallback_defaults_to_none(self):
        assert make_resolver({}).try_get("missing") is None


class TestConfigTree:

    def test_comments_and_trailing_commas(self):
        tree = ConfigTree.from_string(
            """
            {
                // a comment
                "f2b_db_file": "/tmp/db.sqlite3",
                "list": [1, 2,],
            }
            """
        )
        assert tree.root["f2b_db_file"] == "/tmp/db.sqlite3"
        assert tree.root["list"] == (1, 2)

    def test_default_config_parses(self, default_tree):
        assert default_tree.root["f2b_db_file"] == "/var/lib/fail2ban/fail2ban.sqlite3"
        assert default_tree.root["geoip"]["enabled"] is False

    def test_load_missing_file(self, tmp_path, caplog):
        with caplog.at_level(logging.WARNING):
            tree = load_config_tree(tmp_path / "missing.json")
        assert dict(tree.root) == {}
        assert "Cannot open config" in caplog.text

    def test_load_malformed_file(self, tmp_path, caplog):
        fpath = tmp_path / "config.json"
        fpath.write_text("{ not json")
        with caplog.at_level(logging.CRITICAL):
            tree = load_config_tree(fpath)
        assert dict(tree.root) == {}
        assert "Failed to parse config" in caplog.text

    def test_load_file(self, tmp_path):
        fpath = tmp_path / "config.json"
        fpath.write_text('{"ignore_bans_older_than": 24, /* hours */}')
        assert load_config_tree(fpath).root["ignore_bans_older_than"] == 24

    def test_from_file_uses_builtin_defaults(self, tmp_path):
        config = ConfigResolver.from_file(tmp_path / "missing.json")
        assert config.db_file() == "/var/lib/fail2ban/fail2ban.sqlite3"


class TestHelpers:

    def test_db_file_override(self, default_tree):
        config = ConfigResolver(
            ConfigTree.from_value({"f2b_db_file": "/srv/f2b.db"}), default_tree
        )
        assert config.db_file() == "/srv/f2b.db"

    def test_ban_ignore_threshold_unset(self, resolver):
        assert resolver.ban_ignore_threshold(1000) == 1000 * 3600

    def test_ban_ignore_threshold_configured(self, default_tree):
        config = ConfigResolver(
            ConfigTree.from_value({"ignore_bans_older_than": 24}), default_tree
        )
        assert config.ban_ignore_threshold(1000) == 24 * 3600

    def test_jail_description(self, default_tree):
        config = ConfigResolver(
            ConfigTree.from_value(
                {
                    "jail_descriptions": {
                        "recidive": "Repeat offenders",
                        "nginx-http-auth": "Failed HTTP logins",
                        "broken": 5,
                    }
                }
            ),
            default_tree,
        )
        assert config.jail_description("recidive") == "Repeat offenders"
        assert config.jail_description("nginx-http-auth") == "Failed HTTP logins"
        assert config.jail_description("sshd").startswith("Brute-force")
        assert config.jail_description("broken") is None
        assert config.jail_description("unknown") is None

    def test_abuseipdb_categories(self, default_tree):
        config = ConfigResolver(
            ConfigTree.from_value({"abuseipdb": {"categories": {"postfix": "11"}}}),
            default_tree,
        )
        assert config.abuseipdb_categories("postfix") == "11"
        assert config.abuseipdb_categories("sshd") == "18,22"
        assert config.abuseipdb_categories("other") == "18"

    def test_abuseipdb_categories_hyphenated_jail(self, default_tree):
        config = ConfigResolver(
            ConfigTree.from_value(
                {
                    "abuseipdb": {
                        "categories": {"nginx-http-auth": "21", "apache-auth": 4}
                    },
                    "jail_descriptions": {"nginx-http-auth": "HTTP"},
                }
            ),
            default_tree,
        )
        assert config.jail_description("nginx-http-auth") == "HTTP"
        assert config.abuseipdb_categories("nginx-http-auth") == "21"
        # not a string, so the default categories apply
        assert config.abuseipdb_categories("apache-auth") == "18"
        assert config.abuseipdb_categories("postfix-sasl") == "18"

    def test_hyphenated_jail_in_default_tree(self):
        config = make_resolver(
            {"abuseipdb": {"categories": {"sshd": "22"}}},
            {"abuseipdb": {"categories": {"nginx-http-auth": "21"}}},
        )
        assert config.abuseipdb_categories("nginx-http-auth") == "21"
        assert config.jail_setting("abuseipdb.categories", "sshd") == "22"
        assert config.jail_setting("abuseipdb.categories", "nginx-botsearch") is None
