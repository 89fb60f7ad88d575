import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Tuple

from .keyvalues import ConfigNode

# appid -> minutes played, for one user profile
UserPlaytimeMap = Dict[str, int]


class PlaytimeSource(enum.Enum):
    USER_CONFIG = "user"                # max over every profile's localconfig.vdf
    MANIFEST = "manifest"               # appmanifest PlaytimeForever
    RECENT_UNTRACKED = "recent"         # no record, but updated recently
    NEVER = "never"


@dataclass(frozen=True)
class Playtime:
    minutes: int
    source: PlaytimeSource

    @property
    def measured(self) -> bool:
        return self.source in (PlaytimeSource.USER_CONFIG, PlaytimeSource.MANIFEST)

    def label(self) -> str:
        if self.source is PlaytimeSource.RECENT_UNTRACKED:
            return "Recently installed"
        if not self.minutes:
            return "Never played"
        hours, rest = divmod(self.minutes, 60)
        if hours == 0:
            return f"{self.minutes}m"
        if hours < 10:
            return f"{hours}h {rest}m"
        return f"{hours}h"


NEVER_PLAYED = Playtime(0, PlaytimeSource.NEVER)


@dataclass(frozen=True)
class RawManifestRecord:
    appid: str
    name: str
    installdir: str
    state_flags: int
    playtime_forever: Optional[int]
    last_updated: Optional[int]         # unix seconds
    app_type: Optional[str]
    source: Path
    fields: ConfigNode = field(default_factory=ConfigNode, compare=False, repr=False)


@dataclass(frozen=True)
class CatalogEntry:
    appid: str
    title: str
    install_path: Path
    playtime: Playtime
    library: Path
    thumbnail: Optional[str] = None
    raw: ConfigNode = field(default_factory=ConfigNode, compare=False, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "appid": self.appid,
            "title": self.title,
            "installDir": str(self.install_path),
            "library": str(self.library),
            "playtime": self.playtime.minutes,
            "playtimeSource": self.playtime.source.value,
            "playtimeLabel": self.playtime.label(),
            "thumbnail": self.thumbnail,
            "raw": self.raw.to_dict(),
        }


@dataclass(frozen=True)
class Catalog:
    entries: Tuple[CatalogEntry, ...] = ()
    roots: Tuple[Path, ...] = ()        # installation roots that were scanned

    def __iter__(self) -> Iterator[CatalogEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def by_appid(self) -> Dict[str, CatalogEntry]:
        return {e.appid: e for e in self.entries}
