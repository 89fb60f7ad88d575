import ntpath
import os
import posixpath
import sys
from pathlib import Path
from typing import Iterable, List, Optional, Union

WINDOWS = "windows"
MACOS = "macos"
LINUX = "linux"


def is_windows() -> bool:
    return os.name == "nt"


def platform_family(platform: Optional[str] = None) -> Optional[str]:
    p = platform if platform is not None else sys.platform
    if p in ("win32", "cygwin"):
        return WINDOWS
    if p == "darwin":
        return MACOS
    if p.startswith("linux"):
        return LINUX
    return None


def parse_uint(value: Optional[str]) -> Optional[int]:
    """Plain non-negative decimal integer, or None for anything else."""
    if not isinstance(value, str):
        return None
    s = value.strip()
    if not s or not (s.isascii() and s.isdigit()):
        return None
    return int(s)


def normalize_path(raw: str, windows: Optional[bool] = None) -> str:
    """Make a path string read from a Steam file usable on this host.

    The string arrives already unescaped by the VDF reader, so a leading
    double backslash is a UNC share and must survive. Only separators are
    flipped to the host's convention.
    """
    windows = is_windows() if windows is None else windows
    s = raw.strip()
    if windows:
        return ntpath.normpath(s.replace("/", "\\"))
    return posixpath.normpath(s.replace("\\", "/"))


def path_key(path: Union[str, Path], resolve: bool = False) -> str:
    p = os.path.realpath(str(path)) if resolve else os.path.abspath(str(path))
    return os.path.normcase(p)


def unique_paths(paths: Iterable[Union[str, Path]], resolve: bool = False) -> List[Path]:
    """Drop repeats (by normalized absolute path), keeping first-seen order."""
    seen = set()
    result: List[Path] = []
    for p in paths:
        key = path_key(p, resolve=resolve)
        if key in seen:
            continue
        seen.add(key)
        result.append(Path(p))
    return result
