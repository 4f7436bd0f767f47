"""Tests for ssh_tools.target."""

from __future__ import annotations

import pytest

from ssh_tools.errors import UsageError
from ssh_tools.target import TargetAddress, parse_target


class TestParseTarget:
    @pytest.mark.parametrize(
        "token, username, host, path",
        [
            ("alice@example.com:/etc/hosts", "alice", "example.com", "/etc/hosts"),
            ("alice@example.com", "alice", "example.com", None),
            ("example.com:/etc/hosts", None, "example.com", "/etc/hosts"),
            ("example.com", None, "example.com", None),
            ("example.com:relative/file.txt", None, "example.com", "relative/file.txt"),
            ("10.0.0.5", None, "10.0.0.5", None),
        ],
    )
    def test_forms(self, token, username, host, path):
        t = parse_target(token)
        assert t.username == username
        assert t.host == host
        assert t.path == path

    def test_splits_on_last_at(self):
        t = parse_target("bob@corp@gateway:/tmp/x")
        assert t.username == "bob@corp"
        assert t.host == "gateway"

    def test_splits_on_last_colon(self):
        t = parse_target("host:dir:file")
        assert t.host == "host:dir"
        assert t.path == "file"

    def test_empty_username_means_none(self):
        t = parse_target("@example.com")
        assert t.username is None
        assert t.host == "example.com"

    def test_trailing_colon_means_no_path(self):
        t = parse_target("example.com:")
        assert t.host == "example.com"
        assert t.path is None

    def test_empty_token_gives_empty_host(self):
        assert parse_target("").host == ""

    def test_bracketed_ipv6_with_path(self):
        t = parse_target("root@[fe80::1]:/etc/motd")
        assert t.username == "root"
        assert t.host == "fe80::1"
        assert t.path == "/etc/motd"

    def test_bracketed_ipv6_without_path(self):
        t = parse_target("[::1]")
        assert t.host == "::1"
        assert t.path is None

    def test_without_path_keeps_colons_in_host(self):
        t = parse_target("admin@fe80::1", with_path=False)
        assert t.username == "admin"
        assert t.host == "fe80::1"
        assert t.path is None


class TestTargetAddress:
    def test_destination_with_user(self):
        assert TargetAddress(host="h", username="u").destination == "u@h"

    def test_destination_without_user(self):
        assert TargetAddress(host="h").destination == "h"

    def test_require_host_raises_on_empty(self):
        with pytest.raises(UsageError, match="no host"):
            parse_target("alice@").require_host()

    def test_require_host_returns_self(self):
        t = parse_target("example.com")
        assert t.require_host() is t

    def test_default_path_filled_only_when_missing(self):
        assert parse_target("h").with_default_path("/a").path == "/a"
        assert parse_target("h:/b").with_default_path("/a").path == "/b"

    def test_username_override(self):
        t = parse_target("alice@h").with_username("bob")
        assert t.username == "bob"
        assert parse_target("alice@h").with_username(None).username == "alice"

    def test_immutable(self):
        t = parse_target("h")
        with pytest.raises(AttributeError):
            t.host = "other"  # type: ignore[misc]

    def test_str(self):
        assert str(parse_target("u@h:/p")) == "u@h:/p"
        assert str(parse_target("h")) == "h"
