import logging
import os
from pathlib import Path, PureWindowsPath
from typing import Iterable, List, Mapping, Optional, Union

from .utils import LINUX, MACOS, WINDOWS, platform_family, unique_paths

logger = logging.getLogger(__name__)


def candidate_roots(family: Optional[str], env: Optional[Mapping[str, str]] = None,
                    home: Optional[Union[str, Path]] = None) -> List[Path]:
    """Places a Steam client is normally installed for an OS family."""
    env = os.environ if env is None else env
    home = Path.home() if home is None else Path(home)

    if family == WINDOWS:
        program_files = env.get("PROGRAMFILES") or r"C:\Program Files"
        program_files_x86 = env.get("PROGRAMFILES(X86)") or r"C:\Program Files (x86)"
        return [Path(str(PureWindowsPath(program_files) / "Steam")),
                Path(str(PureWindowsPath(program_files_x86) / "Steam"))]
    if family == MACOS:
        return [home / "Library" / "Application Support" / "Steam"]
    if family == LINUX:
        return [home / ".steam" / "steam", home / ".local" / "share" / "Steam"]
    return []


def find_install_roots(family: Optional[str] = None, env: Optional[Mapping[str, str]] = None,
                       home: Optional[Union[str, Path]] = None,
                       extra_roots: Iterable[Union[str, Path]] = ()) -> List[Path]:
    """Existing installation roots, in candidate order, without repeats.

    ~/.steam/steam is usually a symlink to ~/.local/share/Steam, so repeats
    are detected on the resolved path.
    """
    family = family or platform_family()
    candidates = candidate_roots(family, env, home)
    candidates += [Path(p).expanduser() for p in extra_roots]

    found = [p for p in candidates if p.is_dir()]
    roots = unique_paths(found, resolve=True)
    if roots:
        logger.info("Found Steam installations at: %s", ", ".join(str(r) for r in roots))
    else:
        logger.info("No Steam installations found (platform family %s)", family)
    return roots
