import logging
from pathlib import Path
from typing import Dict, List, Union

from .keyvalues import ConfigNode, DuplicateKeyPolicy, read_config
from .models import UserPlaytimeMap
from .utils import parse_uint

logger = logging.getLogger(__name__)

USERDATA = "userdata"
LOCAL_CONFIG = Path("config") / "localconfig.vdf"
APPS_SECTION = ("UserLocalConfigStore", "Software", "Valve", "Steam", "apps")


def list_user_ids(root: Union[str, Path]) -> List[str]:
    """Numeric profile directory names under <root>/userdata."""
    userdata = Path(root) / USERDATA
    if not userdata.is_dir():
        return []
    try:
        entries = list(userdata.iterdir())
    except OSError as e:
        logger.warning("Error reading userdata directory %s: %s", userdata, e)
        return []
    ids = [p.name for p in entries if p.name.isascii() and p.name.isdigit() and p.is_dir()]
    return sorted(ids, key=int)


def read_user_playtime(user_dir: Union[str, Path],
                       policy: DuplicateKeyPolicy = DuplicateKeyPolicy.LAST) -> UserPlaytimeMap:
    """appid -> minutes played, from one profile's localconfig.vdf.

    Only strictly positive values are kept. Anything missing along the way
    yields an empty map; one user's bad file never affects another's.
    """
    path = Path(user_dir) / LOCAL_CONFIG
    config = read_config(path, policy)
    if config is None:
        return {}

    apps = config.find(*APPS_SECTION)
    if apps is None:
        logger.debug("%s has no %s section", path, "/".join(APPS_SECTION))
        return {}

    playtimes: UserPlaytimeMap = {}
    for appid, entry in apps.items():
        if not isinstance(entry, ConfigNode):
            continue
        minutes = parse_uint(entry.get_text("Playtime")) or 0
        if minutes > 0:
            playtimes[appid] = minutes

    logger.info("Found playtime data for %d games in %s", len(playtimes), path)
    return playtimes


def collect_playtimes(root: Union[str, Path],
                      policy: DuplicateKeyPolicy = DuplicateKeyPolicy.LAST) -> Dict[str, UserPlaytimeMap]:
    """Playtime maps for every profile under an installation root, by user id."""
    userdata = Path(root) / USERDATA
    return {uid: read_user_playtime(userdata / uid, policy) for uid in list_user_ids(root)}
