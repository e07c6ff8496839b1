"""URL scheme registration so the host can launch the application for joins."""

from __future__ import annotations

import logging
import shlex
import shutil
import subprocess
import sys
from pathlib import Path

from platformdirs import user_data_dir

from discord_rpc.config import atomic_write

logger = logging.getLogger(__name__)


def url_scheme(client_id: str) -> str:
    return f"discord-{client_id}"


def _launch_command(command: str | None) -> str:
    if command:
        return command
    executable = sys.argv[0] if sys.argv and sys.argv[0] else sys.executable
    return shlex.join([sys.executable, executable]) if executable.endswith(".py") else executable


def _register_linux(client_id: str, command: str) -> None:
    scheme = url_scheme(client_id)
    desktop_file = f"{scheme}.desktop"
    applications_dir = Path(user_data_dir("applications", appauthor=False, roaming=False))
    entry = "\n".join(
        [
            "[Desktop Entry]",
            f"Name=Discord application {client_id}",
            f"Exec={command} %u",
            "Type=Application",
            "NoDisplay=true",
            "Categories=Discord;Games;",
            f"MimeType=x-scheme-handler/{scheme};",
            "",
        ]
    )
    atomic_write(applications_dir / desktop_file, entry)
    logger.info("Wrote %s", applications_dir / desktop_file)

    xdg_mime = shutil.which("xdg-mime")
    if xdg_mime is None:
        logger.warning("xdg-mime not found; %s handler written but not set as default", scheme)
        return
    try:
        subprocess.run(
            [xdg_mime, "default", desktop_file, f"x-scheme-handler/{scheme}"],
            check=True,
            capture_output=True,
            timeout=10,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        logger.warning("xdg-mime failed to register %s: %s", scheme, exc)


def _register_windows(client_id: str, command: str) -> None:
    import winreg

    scheme = url_scheme(client_id)
    base = rf"Software\Classes\{scheme}"
    with winreg.CreateKey(winreg.HKEY_CURRENT_USER, base) as key:
        winreg.SetValueEx(key, None, 0, winreg.REG_SZ, f"URL:Run game {client_id} protocol")
        winreg.SetValueEx(key, "URL Protocol", 0, winreg.REG_SZ, "")
    with winreg.CreateKey(winreg.HKEY_CURRENT_USER, rf"{base}\DefaultIcon") as key:
        winreg.SetValueEx(key, None, 0, winreg.REG_SZ, command)
    with winreg.CreateKey(winreg.HKEY_CURRENT_USER, rf"{base}\shell\open\command") as key:
        winreg.SetValueEx(key, None, 0, winreg.REG_SZ, f'"{command}" "%1"')
    logger.info("Registered %s under HKCU", scheme)


def register(client_id: str, *, command: str | None = None) -> str:
    """Register the ``discord-<client_id>`` URL scheme for this application.

    Idempotent.  On macOS the host application owns scheme registration, so
    only the scheme is returned.

    Returns:
        The registered URL scheme.
    """
    if not client_id or not client_id.isdigit():
        msg = f"client_id must be a numeric snowflake, got {client_id!r}"
        raise ValueError(msg)

    launch = _launch_command(command)
    if sys.platform == "win32":
        _register_windows(client_id, launch)
    elif sys.platform.startswith("linux"):
        _register_linux(client_id, launch)
    else:
        logger.debug("Scheme registration is handled by the host on %s", sys.platform)
    return url_scheme(client_id)


__all__ = ["register", "url_scheme"]
