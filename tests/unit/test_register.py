"""Unit tests for URL scheme registration."""

from __future__ import annotations

import importlib
import subprocess
import sys
from typing import TYPE_CHECKING, Any

import pytest

from discord_rpc.register import register, url_scheme

if TYPE_CHECKING:
    from pathlib import Path

# The package re-exports the ``register`` function, which shadows the submodule
# attribute, so fetch the module object itself.
register_module = importlib.import_module("discord_rpc.register")

pytestmark = pytest.mark.unit

linux_only = pytest.mark.skipif(
    not sys.platform.startswith("linux"),
    reason="desktop entries are a freedesktop mechanism",
)


def test_url_scheme() -> None:
    assert url_scheme("1234") == "discord-1234"


@pytest.mark.parametrize("client_id", ["", "abc", "12 34"])
def test_non_numeric_client_id_rejected(client_id: str) -> None:
    with pytest.raises(ValueError, match="client_id"):
        register(client_id)


@linux_only
def test_linux_writes_desktop_entry_and_sets_default(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    calls: list[list[str]] = []

    def fake_run(args: list[str], **kwargs: Any) -> subprocess.CompletedProcess[bytes]:
        calls.append(args)
        return subprocess.CompletedProcess(args, 0, b"", b"")

    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path))
    monkeypatch.setattr(register_module.shutil, "which", lambda name: f"/usr/bin/{name}")
    monkeypatch.setattr(register_module.subprocess, "run", fake_run)

    assert register("1234", command="/opt/game/run") == "discord-1234"

    entry = (tmp_path / "applications" / "discord-1234.desktop").read_text(encoding="utf-8")
    assert "Exec=/opt/game/run %u" in entry
    assert "MimeType=x-scheme-handler/discord-1234;" in entry
    assert calls == [
        ["/usr/bin/xdg-mime", "default", "discord-1234.desktop", "x-scheme-handler/discord-1234"]
    ]


@linux_only
def test_linux_without_xdg_mime_still_writes_entry(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    caplog: pytest.LogCaptureFixture,
) -> None:
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path))
    monkeypatch.setattr(register_module.shutil, "which", lambda name: None)

    register("1234", command="/opt/game/run")

    assert (tmp_path / "applications" / "discord-1234.desktop").exists()
    assert "xdg-mime not found" in caplog.text


def test_other_platforms_are_a_no_op(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(register_module.sys, "platform", "darwin")
    monkeypatch.setattr(
        register_module,
        "_register_linux",
        lambda *args: pytest.fail("linux registration on darwin"),
    )
    assert register("1234") == "discord-1234"
