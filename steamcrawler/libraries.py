import logging
from pathlib import Path
from typing import List, Union

from .keyvalues import ConfigNode, DuplicateKeyPolicy, read_config
from .utils import normalize_path, unique_paths

logger = logging.getLogger(__name__)

STEAMAPPS = "steamapps"
LIBRARY_FOLDERS_FILE = "libraryfolders.vdf"


def primary_library(root: Union[str, Path]) -> Path:
    return Path(root) / STEAMAPPS


def declared_library_paths(descriptor: ConfigNode) -> List[str]:
    """Raw path strings listed in a libraryfolders.vdf document.

    Entries are keyed "0", "1", ...; old clients store the path as the value,
    newer ones nest it under "path". Other keys (ContentStatsID etc.) are not
    libraries.
    """
    folders = descriptor.get_node("libraryfolders")
    if folders is None:
        return []
    paths: List[str] = []
    for key, value in folders.items():
        if not key.isdigit():
            continue
        if isinstance(value, ConfigNode):
            value = value.get_text("path")
        if isinstance(value, str) and value.strip():
            paths.append(value)
    return paths


def resolve_libraries(root: Union[str, Path],
                      policy: DuplicateKeyPolicy = DuplicateKeyPolicy.LAST) -> List[Path]:
    """Every steamapps directory an installation root knows about.

    The root's own steamapps always comes first. A missing or broken
    libraryfolders.vdf just means no extra libraries.
    """
    primary = primary_library(root)
    libraries = [primary]

    descriptor = read_config(primary / LIBRARY_FOLDERS_FILE, policy)
    if descriptor is None:
        return libraries

    for raw in declared_library_paths(descriptor):
        folder = Path(normalize_path(raw))
        if not folder.is_dir():
            logger.info("Library folder %s does not exist, skipping", folder)
            continue
        libraries.append(folder / STEAMAPPS)

    libraries = unique_paths(libraries, resolve=True)
    logger.debug("Libraries for %s: %s", root, [str(p) for p in libraries])
    return libraries
