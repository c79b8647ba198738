from __future__ import annotations

# pyright: reportAny=false, reportUnknownArgumentType=false
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from boxinit.config import (
    deep_merge,
    parse_env_vars,
    parse_string_value,
    read_toml_file,
    set_nested_key,
)
from boxinit.exceptions import ConfigLoadError

if TYPE_CHECKING:
    from pyfakefs.fake_filesystem import FakeFilesystem


class TestReadTomlFile:
    def test_parses_valid_toml(self, fs: FakeFilesystem) -> None:
        content = """
[services.nginx]
command = ["nginx", "-g", "daemon off;"]
depends_on = ["php-fpm"]
"""
        path = Path("/etc/boxinit/boxinit.toml")
        fs.create_file(path, contents=content)

        result = read_toml_file(path)

        assert result == {
            "services": {
                "nginx": {
                    "command": ["nginx", "-g", "daemon off;"],
                    "depends_on": ["php-fpm"],
                }
            }
        }

    def test_raises_file_not_found_for_missing_file(self, fs: FakeFilesystem) -> None:
        with pytest.raises(FileNotFoundError):
            _ = read_toml_file(Path("/etc/boxinit/missing.toml"))

    def test_config_load_error_includes_line_and_column(
        self, fs: FakeFilesystem
    ) -> None:
        content = """[supervisor]
grace_period = 10

[services.nginx
"""
        path = Path("/etc/boxinit/broken.toml")
        fs.create_file(path, contents=content)

        with pytest.raises(ConfigLoadError) as exc_info:
            _ = read_toml_file(path)

        error = exc_info.value
        assert error.path == path
        assert error.line == 4
        assert error.column is not None

    def test_parses_empty_toml_file(self, fs: FakeFilesystem) -> None:
        path = Path("/etc/boxinit/empty.toml")
        fs.create_file(path, contents="")

        assert read_toml_file(path) == {}


class TestDeepMerge:
    def test_merges_nested_dictionaries(self) -> None:
        base = {"supervisor": {"grace_period": 10.0, "stop_on_fatal": True}}
        override = {"supervisor": {"grace_period": 20.0}}

        result = deep_merge(base, override)

        assert result == {"supervisor": {"grace_period": 20.0, "stop_on_fatal": True}}

    def test_replaces_arrays_entirely(self) -> None:
        base = {"bootstrap": [{"name": "a"}, {"name": "b"}]}
        override = {"bootstrap": [{"name": "c"}]}

        assert deep_merge(base, override) == {"bootstrap": [{"name": "c"}]}

    def test_override_scalar_replaces_dict(self) -> None:
        assert deep_merge({"a": {"b": 1}}, {"a": 2}) == {"a": 2}

    def test_does_not_mutate_inputs(self) -> None:
        base = {"logging": {"level": "info"}}
        override = {"logging": {"format": "text"}}

        _ = deep_merge(base, override)

        assert base == {"logging": {"level": "info"}}
        assert override == {"logging": {"format": "text"}}

    def test_returned_list_is_independent(self) -> None:
        base = {"command": ["nginx"]}

        result = deep_merge(base, {})
        result["command"].append("-t")

        assert base == {"command": ["nginx"]}

    def test_keeps_declaration_order(self) -> None:
        base = {"services": {"zeta": {}, "alpha": {}}}
        override = {"services": {"mid": {}, "zeta": {"command": ["z"]}}}

        result = deep_merge(base, override)

        assert list(result["services"]) == ["zeta", "alpha", "mid"]


class TestParseStringValue:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("true", True),
            ("FALSE", False),
            ("42", 42),
            ("-3", -3),
            ("2.5", 2.5),
            ('["nginx", "-t"]', ["nginx", "-t"]),
            ('{"mode": "always"}', {"mode": "always"}),
            ("json", "json"),
            ("/etc/boxinit", "/etc/boxinit"),
            ("[not json", "[not json"),
        ],
    )
    def test_infers_type(self, raw: str, expected: object) -> None:
        assert parse_string_value(raw) == expected


class TestSetNestedKey:
    def test_creates_intermediate_dicts(self) -> None:
        d: dict[str, object] = {}

        set_nested_key(d, "services.nginx.restart.mode", "always")

        assert d == {"services": {"nginx": {"restart": {"mode": "always"}}}}

    def test_replaces_scalar_on_path(self) -> None:
        d: dict[str, object] = {"logging": "info"}

        set_nested_key(d, "logging.level", "debug")

        assert d == {"logging": {"level": "debug"}}


class TestParseEnvVars:
    def test_parses_nested_env_var(self) -> None:
        result = parse_env_vars(environ={"BOXINIT_SUPERVISOR__GRACE_PERIOD": "20"})

        assert result == {"supervisor": {"grace_period": 20}}

    def test_parses_multiple_env_vars(self) -> None:
        result = parse_env_vars(
            environ={
                "BOXINIT_LOGGING__LEVEL": "debug",
                "BOXINIT_LOGGING__FORMAT": "console",
                "BOXINIT_SUPERVISOR__STOP_ON_FATAL": "false",
                "PATH": "/usr/bin",
            }
        )

        assert result == {
            "logging": {"level": "debug", "format": "console"},
            "supervisor": {"stop_on_fatal": False},
        }

    def test_skips_reserved_variables(self) -> None:
        result = parse_env_vars(
            environ={
                "BOXINIT_CONFIG": "/etc/boxinit/other.toml",
                "BOXINIT_DEBUG": "1",
                "BOXINIT_LOG_LEVEL": "debug",
            }
        )

        assert result == {}

    def test_reads_process_environment_by_default(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("BOXINIT_TEST__KEY", "value")

        assert parse_env_vars()["test"] == {"key": "value"}

    def test_custom_prefix(self) -> None:
        result = parse_env_vars(
            prefix="MYAPP_", environ={"MYAPP_KEY": "value", "BOXINIT_OTHER": "x"}
        )

        assert result == {"key": "value"}
