import logging
import time
from dataclasses import replace
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Set

from .classify import rejection_reason
from .keyvalues import ConfigNode, DuplicateKeyPolicy, ParseError, load_file
from .libraries import resolve_libraries
from .locate import find_install_roots
from .models import (
    NEVER_PLAYED,
    Catalog,
    CatalogEntry,
    Playtime,
    PlaytimeSource,
    RawManifestRecord,
    UserPlaytimeMap,
)
from .settings import Settings
from .thumbnails import enrich, lookup_thumbnails
from .users import collect_playtimes
from .utils import parse_uint, path_key

logger = logging.getLogger(__name__)

MANIFEST_PREFIX = "appmanifest_"
MANIFEST_SUFFIX = ".acf"
FULLY_INSTALLED = 4
SECONDS_PER_DAY = 24 * 60 * 60


class CatalogError(RuntimeError):
    """The catalog could not be built at all."""


def iter_manifest_files(library: Path) -> List[Path]:
    if not library.is_dir():
        logger.info("Library does not exist: %s", library)
        return []
    try:
        entries = list(library.iterdir())
    except OSError as e:
        logger.warning("Cannot list library %s: %s", library, e)
        return []
    manifests = [
        p for p in entries
        if p.name.lower().startswith(MANIFEST_PREFIX) and p.name.lower().endswith(MANIFEST_SUFFIX)
        and p.is_file()
    ]
    return sorted(manifests, key=lambda p: p.name.lower())


def record_from_section(state: ConfigNode, source: Path) -> Optional[RawManifestRecord]:
    appid = (state.get_text("appid") or "").strip()
    if not appid:
        return None
    return RawManifestRecord(
        appid=appid,
        name=state.get_text("name", "") or "",
        installdir=state.get_text("installdir", "") or "",
        state_flags=parse_uint(state.get_text("StateFlags")) or 0,
        playtime_forever=parse_uint(state.get_text("PlaytimeForever")),
        last_updated=parse_uint(state.get_text("LastUpdated")),
        app_type=state.get_text("type"),
        source=source,
        fields=state,
    )


def read_manifest(path: Path,
                  policy: DuplicateKeyPolicy = DuplicateKeyPolicy.LAST) -> Optional[RawManifestRecord]:
    """Parse one appmanifest; None (logged) if it is unusable."""
    try:
        doc = load_file(path, policy)
    except ParseError as e:
        logger.warning("Failed to parse %s", e)
        return None
    state = doc.get_node("AppState")
    if state is None:
        logger.info("Invalid manifest (no AppState): %s", path.name)
        return None
    record = record_from_section(state, path)
    if record is None:
        logger.info("No appid found in manifest: %s", path.name)
    return record


def is_fully_installed(record: RawManifestRecord) -> bool:
    return record.state_flags & FULLY_INSTALLED == FULLY_INSTALLED


def merge_playtime(appid: str, user_maps: Iterable[UserPlaytimeMap], record: RawManifestRecord,
                   now: Optional[float] = None, recent_days: int = 30) -> Playtime:
    """Minutes played for one title.

    Highest value across profiles, else the manifest's own PlaytimeForever,
    else 1 minute flagged RECENT_UNTRACKED when the manifest was updated less
    than ``recent_days`` ago, else never played.
    """
    minutes = max((m.get(appid, 0) for m in user_maps), default=0)
    if minutes > 0:
        return Playtime(minutes, PlaytimeSource.USER_CONFIG)

    if record.playtime_forever:
        logger.debug("Using fallback playtime for %s: %d minutes", record.name, record.playtime_forever)
        return Playtime(record.playtime_forever, PlaytimeSource.MANIFEST)

    if record.last_updated:
        now = time.time() if now is None else now
        if now - record.last_updated < recent_days * SECONDS_PER_DAY:
            return Playtime(1, PlaytimeSource.RECENT_UNTRACKED)

    return NEVER_PLAYED


def entry_from_record(record: RawManifestRecord, library: Path, playtime: Playtime) -> CatalogEntry:
    return CatalogEntry(
        appid=record.appid,
        title=record.name.strip(),
        install_path=library / "common" / record.installdir,
        playtime=playtime,
        library=library,
        raw=record.fields,
    )


def scan_library(library: Path, user_maps: Sequence[UserPlaytimeMap], settings: Settings,
                 now: Optional[float] = None) -> List[CatalogEntry]:
    """Catalog entries for every installed game in one steamapps directory."""
    manifests = iter_manifest_files(library)
    logger.info("Processing library %s (%d manifests)", library, len(manifests))

    entries: List[CatalogEntry] = []
    for path in manifests:
        record = read_manifest(path, settings.duplicate_policy)
        if record is None:
            continue
        if not is_fully_installed(record):
            logger.info("Skipping %s (%s): not fully installed", record.name, record.appid)
            continue
        reason = rejection_reason(record)
        if reason:
            logger.info("Filtered out non-game %s (%s): %s", record.name, record.appid, reason)
            continue
        playtime = merge_playtime(record.appid, user_maps, record, now, settings.recent_days)
        entries.append(entry_from_record(record, library, playtime))
    return entries


def build_catalog(roots: Optional[Sequence[Path]] = None, settings: Optional[Settings] = None,
                  now: Optional[float] = None) -> Catalog:
    """The local part of the pipeline: no network access.

    A library reachable from several roots is scanned once, and an appid seen
    in an earlier library is not emitted again.
    """
    settings = settings or Settings()
    policy = settings.duplicate_policy
    if roots is None:
        roots = find_install_roots(extra_roots=settings.extra_roots)
    roots = [Path(r) for r in roots]

    entries: List[CatalogEntry] = []
    seen_libraries: Set[str] = set()
    seen_appids: Set[str] = set()
    for root in roots:
        logger.info("Processing Steam installation: %s", root)
        user_maps = list(collect_playtimes(root, policy).values())
        for library in resolve_libraries(root, policy):
            key = path_key(library, resolve=True)
            if key in seen_libraries:
                continue
            seen_libraries.add(key)
            for entry in scan_library(library, user_maps, settings, now):
                if entry.appid in seen_appids:
                    logger.debug("Duplicate appid %s in %s ignored", entry.appid, library)
                    continue
                seen_appids.add(entry.appid)
                entries.append(entry)

    logger.info("Total fully installed games found: %d", len(entries))
    return Catalog(entries=tuple(entries), roots=tuple(roots))


def get_catalog(settings: Optional[Settings] = None, session=None,
                roots: Optional[Sequence[Path]] = None, now: Optional[float] = None) -> Catalog:
    """Build the full catalog, thumbnails included.

    No installation is an empty catalog. Anything that stops the build as a
    whole is raised as a single CatalogError.
    """
    settings = settings or Settings()
    try:
        catalog = build_catalog(roots, settings, now)
        if settings.fetch_thumbnails and catalog.entries:
            lookup = lookup_thumbnails(
                (e.appid for e in catalog.entries),
                session=session,
                timeout=settings.thumbnail_timeout,
                max_workers=settings.thumbnail_workers,
            )
            catalog = replace(catalog, entries=enrich(catalog.entries, lookup))
    except Exception as e:
        logger.exception("Catalog build failed")
        raise CatalogError(f"could not build catalog: {e}") from e
    return catalog


def filter_entries(entries: Iterable[CatalogEntry], query: str) -> List[CatalogEntry]:
    term = (query or "").strip().casefold()
    return [e for e in entries if term in e.title.casefold()]


def sort_entries(entries: Iterable[CatalogEntry], key: str = "name") -> List[CatalogEntry]:
    by_name = sorted(entries, key=lambda e: e.title.casefold())
    if key == "playtime":
        return sorted(by_name, key=lambda e: e.playtime.minutes, reverse=True)
    return by_name
