"""Tests for RemotePath and the prefix/escaping helpers."""

from __future__ import annotations

import pytest

from pixelfs._errors import InvalidPath
from pixelfs._path import RemotePath, build_prefix, escape_path, strip_prefix


class TestRemotePathNormalization:
    def test_immutable_setattr(self) -> None:
        p = RemotePath("a/b")
        with pytest.raises(AttributeError, match="immutable"):
            p.x = 1  # type: ignore[attr-defined]

    def test_backslash_to_forward_slash(self) -> None:
        assert str(RemotePath("a\\b\\c")) == "a/b/c"

    def test_strip_leading_trailing_slashes(self) -> None:
        assert str(RemotePath("/a/b/")) == "a/b"

    def test_collapse_consecutive_slashes(self) -> None:
        assert str(RemotePath("a///b")) == "a/b"

    def test_dot_segment_removal(self) -> None:
        assert str(RemotePath("./a/./b/.")) == "a/b"

    @pytest.mark.parametrize("raw", ["foo/../bar", "../bar", "..", "", "/", ".", "a/b\0c"])
    def test_invalid_rejected(self, raw: str) -> None:
        with pytest.raises(InvalidPath):
            RemotePath(raw)


class TestRemotePathProperties:
    def test_parts(self) -> None:
        assert RemotePath("a/b/c").parts == ("a", "b", "c")

    def test_absolute(self) -> None:
        assert RemotePath("a/b").absolute == "/a/b"

    def test_equality_and_hash(self) -> None:
        assert RemotePath("a/b") == RemotePath("a//b")
        assert hash(RemotePath("a/b")) == hash(RemotePath("a//b"))
        assert RemotePath("a/b") != "a/b"


class TestStripPrefix:
    def test_matching_prefix_removed(self) -> None:
        assert strip_prefix("/u/123/a/b/c.txt", "/u/123") == "/a/b/c.txt"

    def test_prefix_itself_becomes_empty(self) -> None:
        assert strip_prefix("/u/123", "/u/123") == ""

    def test_non_matching_unchanged(self) -> None:
        assert strip_prefix("/other/a.txt", "/u/123") == "/other/a.txt"

    def test_partial_component_unchanged(self) -> None:
        assert strip_prefix("/meta/a.txt", "/me") == "/meta/a.txt"

    def test_ancestor_of_prefix_unchanged(self) -> None:
        assert strip_prefix("/me", "/me/photos") == "/me"

    def test_trailing_slash_on_prefix(self) -> None:
        assert strip_prefix("/me/a", "/me/") == "/a"

    def test_empty_prefix_is_noop(self) -> None:
        assert strip_prefix("/me/a", "") == "/me/a"

    @pytest.mark.parametrize("path", ["/me/a/b.txt", "/me", "/meta", "/x/y"])
    def test_idempotent(self, path: str) -> None:
        once = strip_prefix(path, "/me")
        assert strip_prefix(once, "/me") == once


class TestEscapePath:
    def test_slashes_escaped(self) -> None:
        assert escape_path("/me/a/b.txt") == "%2Fme%2Fa%2Fb.txt"

    def test_single_unit(self) -> None:
        assert escape_path("/me/a b/c.txt") == "%2Fme%2Fa%20b%2Fc.txt"

    def test_reserved_characters_escaped(self) -> None:
        assert escape_path("/me/a b?#%;,.txt") == "%2Fme%2Fa%20b%3F%23%25%3B%2C.txt"

    def test_segment_safe_characters_kept(self) -> None:
        assert escape_path("/me/$&+:=@-_.~") == "%2Fme%2F$&+:=@-_.~"

    def test_non_ascii(self) -> None:
        assert escape_path("/me/你好") == "%2Fme%2F%E4%BD%A0%E5%A5%BD"

    def test_whole_string_escaped_once(self) -> None:
        assert escape_path("/me/50%/x") == "%2Fme%2F50%25%2Fx"


class TestBuildPrefix:
    def test_root_folder_only(self) -> None:
        assert build_prefix("me") == "/me"

    def test_with_root(self) -> None:
        assert build_prefix("me", "photos/2024/") == "/me/photos/2024"

    def test_shared_directory_id(self) -> None:
        assert build_prefix("/abc123/") == "/abc123"

    def test_empty_root_folder_rejected(self) -> None:
        with pytest.raises(InvalidPath):
            build_prefix("")

    def test_unsafe_root_rejected(self) -> None:
        with pytest.raises(InvalidPath):
            build_prefix("me", "../escape")
