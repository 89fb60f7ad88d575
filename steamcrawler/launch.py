# steamcrawler/launch.py
from __future__ import annotations

import logging
import subprocess
from typing import List, Optional

from .utils import MACOS, WINDOWS, is_windows, platform_family

logger = logging.getLogger(__name__)

STEAM_RUN_URL = "steam://rungameid/{appid}"


def launch_argv(appid: str, family: Optional[str] = None) -> List[str]:
    """Command that hands the steam:// URL to the OS shell."""
    url = STEAM_RUN_URL.format(appid=appid)
    family = family or platform_family()
    if family == WINDOWS:
        return ["cmd", "/c", "start", url]
    if family == MACOS:
        return ["open", url]
    return ["xdg-open", url]


def _spawn_detached(argv: List[str]) -> None:
    kwargs = {
        "stdin": subprocess.DEVNULL,
        "stdout": subprocess.DEVNULL,
        "stderr": subprocess.DEVNULL,
    }
    if is_windows():
        kwargs["creationflags"] = (getattr(subprocess, "DETACHED_PROCESS", 0)
                                   | getattr(subprocess, "CREATE_NEW_PROCESS_GROUP", 0))
    else:
        kwargs["start_new_session"] = True
    subprocess.Popen(argv, **kwargs)


def launch_title(appid: str, family: Optional[str] = None) -> bool:
    """
    Ask Steam to run a title. Fire-and-forget: True only means the OS accepted
    the spawn request, not that the game is running.
    """
    appid = str(appid).strip()
    if not (appid.isascii() and appid.isdigit()):
        logger.warning("Refusing to launch invalid appid %r", appid)
        return False

    argv = launch_argv(appid, family)
    logger.info("Launching game with Steam URL: %s", argv[-1])
    try:
        _spawn_detached(argv)
    except (OSError, ValueError) as e:
        logger.error("Error launching %s: %s", appid, e)
        return False
    return True
