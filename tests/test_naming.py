"""Tests for orbstack_provider.naming module."""

from __future__ import annotations

import re
from unittest.mock import patch

import pytest

from orbstack_provider.exceptions import MachineNameCollision
from orbstack_provider.naming import MachineNamer, sanitize_name


class TestSanitizeName:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("web--server", "web-server"),
            ("web_server", "web-server"),
            ("ubuntu_db 01", "ubuntu-db-01"),
            ("My.Dev  Box!", "my-dev-box"),
            ("--edge--", "edge"),
            ("UPPER", "upper"),
        ],
    )
    def test_sanitize(self, raw, expected):
        assert sanitize_name(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "   ", "___", "!!!"])
    def test_empty_input_uses_default(self, raw):
        assert sanitize_name(raw) == "default"

    @pytest.mark.parametrize("raw", ["web--server", "A_b c", "x" * 80, "-_-", "ubuntu_db 01"])
    def test_idempotent(self, raw):
        once = sanitize_name(raw)
        assert sanitize_name(once) == once


class TestGenerate:
    def test_default_name_with_stubbed_suffix(self, engine):
        namer = MachineNamer(engine, token_source=lambda: "a3b2c1")
        assert namer.generate("default") == "vagrant-default-a3b2c1"

    def test_sanitizes_logical_name(self, engine):
        namer = MachineNamer(engine, token_source=lambda: "0f0f0f")
        assert namer.generate("ubuntu_db 01") == "vagrant-ubuntu-db-01-0f0f0f"

    def test_real_suffix_is_six_hex_chars(self, engine):
        name = MachineNamer(engine).generate("ubuntu_db 01")
        assert re.fullmatch(r"vagrant-ubuntu-db-01-[0-9a-f]{6}", name)

    def test_suffix_drawn_from_secrets(self, engine):
        with patch("orbstack_provider.naming.secrets.token_hex", return_value="abcdef") as mock_hex:
            assert MachineNamer(engine).generate("web") == "vagrant-web-abcdef"
        mock_hex.assert_called_once_with(3)

    def test_custom_prefix(self, engine):
        namer = MachineNamer(engine, prefix="dev", token_source=lambda: "123456")
        assert namer.generate("web") == "dev-web-123456"

    def test_queries_collision_set_every_attempt(self, engine):
        engine.machines = {"vagrant-web-aaaaaa": "running"}
        tokens = iter(["aaaaaa", "bbbbbb"])
        namer = MachineNamer(engine, token_source=lambda: next(tokens))
        assert namer.generate("web") == "vagrant-web-bbbbbb"
        assert engine.verbs() == ["list", "list"]

    def test_second_attempt_success_does_not_raise(self, engine):
        engine.machines = {"vagrant-web-aaaaaa": "running", "vagrant-web-bbbbbb": "stopped"}
        tokens = iter(["aaaaaa", "bbbbbb", "cccccc"])
        namer = MachineNamer(engine, token_source=lambda: next(tokens))
        assert namer.generate("web") == "vagrant-web-cccccc"

    def test_third_collision_raises(self, engine):
        engine.machines = {"vagrant-web-aaaaaa": "running"}
        namer = MachineNamer(engine, token_source=lambda: "aaaaaa")
        with pytest.raises(MachineNameCollision, match="after 3 attempts") as exc:
            namer.generate("web")
        assert exc.value.machine == "web"
        assert "machine: web" in str(exc.value)
        assert engine.verbs() == ["list", "list", "list"]

    def test_never_returns_taken_name(self, engine):
        engine.machines = {f"vagrant-x-{i:06x}": "running" for i in range(4)}
        tokens = iter([f"{i:06x}" for i in range(3)])
        namer = MachineNamer(engine, token_source=lambda: next(tokens))
        with pytest.raises(MachineNameCollision):
            namer.generate("x")

    def test_long_names_truncate_only_the_name_segment(self, engine):
        namer = MachineNamer(engine, token_source=lambda: "a1b2c3")
        name = namer.generate("n" * 100)
        assert len(name) == 63
        assert name.startswith("vagrant-")
        assert name.endswith("-a1b2c3")
        assert name == "vagrant-" + "n" * 48 + "-a1b2c3"

    def test_truncation_does_not_leave_trailing_hyphen(self, engine):
        namer = MachineNamer(engine, token_source=lambda: "a1b2c3")
        name = namer.generate("a" * 47 + "-bbbb")
        assert "--" not in name
        assert name == "vagrant-" + "a" * 47 + "-a1b2c3"

    def test_listing_failure_propagates(self, engine):
        from orbstack_provider.exceptions import CommandExecutionError

        engine.fail["list"] = CommandExecutionError("Failed to list machines: boom", verb="list")
        namer = MachineNamer(engine, token_source=lambda: "aaaaaa")
        with pytest.raises(CommandExecutionError):
            namer.generate("web")
