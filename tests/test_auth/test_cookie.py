"""Tests for the cookie-file credential cache."""

from __future__ import annotations

import base64
import threading
from pathlib import Path

import pytest

from nbxclient.auth.base import Credential
from nbxclient.auth.cookie import CookieAuth, encode_basic
from nbxclient.exceptions import CredentialUnavailable


def _basic(secret: str) -> str:
    return "Basic " + base64.b64encode(secret.encode("ascii")).decode("ascii")


class TestEncodeBasic:
    def test_encodes_whole_cookie(self) -> None:
        assert encode_basic("__cookie__:abc") == _basic("__cookie__:abc")

    def test_content_is_not_trimmed(self) -> None:
        assert encode_basic("user:pw\n") == _basic("user:pw\n")


class TestCredential:
    def test_headers(self) -> None:
        cred = Credential(authorization="Basic abc=")
        assert cred.headers == {"Authorization": "Basic abc="}

    def test_is_frozen(self) -> None:
        cred = Credential(authorization="Basic abc=")
        with pytest.raises(Exception):
            cred.authorization = "Basic other="  # type: ignore[misc]


class TestCookieAuth:
    @pytest.mark.parametrize("content", [b"__cookie__:ab\r\n", b"__cookie__:ab\r", b"__cookie__:ab\n"])
    def test_line_endings_are_kept(self, tmp_path: Path, content: bytes) -> None:
        path = tmp_path / ".cookie"
        path.write_bytes(content)
        expected = "Basic " + base64.b64encode(content).decode("ascii")
        assert CookieAuth(path).refresh().authorization == expected

    def test_current_loads_lazily(self, cookie_file: Path, cookie_secret: str) -> None:
        auth = CookieAuth(cookie_file)
        assert auth.current().authorization == _basic(cookie_secret)

    def test_current_uses_cache(self, cookie_file: Path) -> None:
        auth = CookieAuth(cookie_file)
        first = auth.current()
        cookie_file.write_text("__cookie__:rotated", encoding="ascii")
        assert auth.current() is first

    def test_refresh_rereads_file(self, cookie_file: Path) -> None:
        auth = CookieAuth(cookie_file)
        auth.current()
        cookie_file.write_text("__cookie__:rotated", encoding="ascii")
        refreshed = auth.refresh()
        assert refreshed.authorization == _basic("__cookie__:rotated")
        assert auth.current() is refreshed

    def test_missing_file(self, tmp_path: Path) -> None:
        auth = CookieAuth(tmp_path / "nope" / ".cookie")
        with pytest.raises(CredentialUnavailable, match="not found") as exc_info:
            auth.current()
        assert exc_info.value.path == str(tmp_path / "nope" / ".cookie")

    def test_directory_instead_of_file(self, tmp_path: Path) -> None:
        auth = CookieAuth(tmp_path)
        with pytest.raises(CredentialUnavailable):
            auth.refresh()

    def test_non_ascii_content(self, tmp_path: Path) -> None:
        path = tmp_path / ".cookie"
        path.write_bytes("__cookie__:café".encode("utf-8"))
        with pytest.raises(CredentialUnavailable, match="Cannot read"):
            CookieAuth(path).refresh()

    def test_failed_refresh_keeps_previous_value(self, cookie_file: Path) -> None:
        auth = CookieAuth(cookie_file)
        before = auth.current()
        cookie_file.unlink()
        with pytest.raises(CredentialUnavailable):
            auth.refresh()
        assert auth.current() is before

    def test_set_source_refreshes_immediately(self, cookie_file: Path, tmp_path: Path) -> None:
        other = tmp_path / "other.cookie"
        other.write_text("__cookie__:other", encoding="ascii")
        auth = CookieAuth(cookie_file)
        auth.current()

        cred = auth.set_source(other)
        assert cred.authorization == _basic("__cookie__:other")
        assert auth.path == other
        assert auth.current() is cred

    def test_set_source_surfaces_errors(self, cookie_file: Path, tmp_path: Path) -> None:
        auth = CookieAuth(cookie_file)
        with pytest.raises(CredentialUnavailable):
            auth.set_source(tmp_path / "missing.cookie")

    def test_expands_user(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("HOME", str(tmp_path))
        auth = CookieAuth("~/.cookie")
        assert auth.path == tmp_path / ".cookie"

    def test_invalidate(self, cookie_file: Path) -> None:
        auth = CookieAuth(cookie_file)
        first = auth.current()
        auth.invalidate()
        assert auth.current() is not first

    def test_concurrent_readers_never_see_torn_values(self, tmp_path: Path) -> None:
        first = tmp_path / "first.cookie"
        second = tmp_path / "second.cookie"
        first.write_text("__cookie__:" + "a" * 40, encoding="ascii")
        second.write_text("__cookie__:" + "b" * 40, encoding="ascii")
        valid = {_basic("__cookie__:" + "a" * 40), _basic("__cookie__:" + "b" * 40)}
        auth = CookieAuth(first)
        seen: list[str] = []
        stop = threading.Event()

        def reader() -> None:
            while True:
                seen.append(auth.current().authorization)
                if stop.is_set():
                    break

        def writer() -> None:
            try:
                for i in range(200):
                    auth.set_source(second if i % 2 else first)
                    auth.refresh()
            finally:
                stop.set()

        threads = [threading.Thread(target=reader) for _ in range(4)]
        threads.append(threading.Thread(target=writer))
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        assert seen
        assert set(seen) <= valid
