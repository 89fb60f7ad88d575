import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import replace
from typing import Dict, Iterable, Optional, Tuple

import requests

from .models import CatalogEntry

logger = logging.getLogger(__name__)

APPDETAILS_URL = "https://store.steampowered.com/api/appdetails"
DEFAULT_TIMEOUT = 5.0


def fetch_thumbnail(appid: str, session=None, timeout: float = DEFAULT_TIMEOUT) -> Optional[str]:
    """Header image URL from the store API, or None. Never raises.

    One request, no retry. ``session`` only needs a requests-style ``get``.
    """
    http = session or requests
    try:
        resp = http.get(APPDETAILS_URL, params={"appids": appid}, timeout=timeout)
        resp.raise_for_status()
        payload = resp.json()
    except requests.RequestException as e:
        logger.info("Failed to fetch thumbnail for %s: %s", appid, e)
        return None
    except ValueError as e:
        logger.info("Bad appdetails payload for %s: %s", appid, e)
        return None

    try:
        details = payload[str(appid)]
        if not details.get("success"):
            logger.debug("Store has no details for %s", appid)
            return None
        image = details["data"]["header_image"]
    except (KeyError, TypeError, AttributeError):
        logger.debug("Unexpected appdetails shape for %s", appid)
        return None
    return image if isinstance(image, str) and image else None


def lookup_thumbnails(appids: Iterable[str], session=None, timeout: float = DEFAULT_TIMEOUT,
                      max_workers: int = 8) -> Dict[str, Optional[str]]:
    """One lookup per distinct appid; each result is kept under its own appid."""
    unique = list(dict.fromkeys(str(a) for a in appids))
    if not unique:
        return {}
    if max_workers <= 1:
        return {appid: fetch_thumbnail(appid, session, timeout) for appid in unique}

    results: Dict[str, Optional[str]] = {}
    with ThreadPoolExecutor(max_workers=min(max_workers, len(unique))) as pool:
        futures = {pool.submit(fetch_thumbnail, appid, session, timeout): appid for appid in unique}
        for future in as_completed(futures):
            appid = futures[future]
            try:
                results[appid] = future.result()
            except Exception:
                logger.exception("Thumbnail worker for %s crashed", appid)
                results[appid] = None
    return results


def enrich(entries: Iterable[CatalogEntry], lookup: Dict[str, Optional[str]]) -> Tuple[CatalogEntry, ...]:
    return tuple(replace(e, thumbnail=lookup.get(e.appid)) for e in entries)
