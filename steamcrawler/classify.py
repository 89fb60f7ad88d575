"""Tell real games apart from the tooling Steam installs as apps.

Every check is a row in :data:`RULES`; a record is a game when no row
matches it. Matching is plain substring/set membership on lower-cased text,
so it is deliberately blunt: "Demolition Squad" contains "demo" and is
rejected like any demo would be.
"""
from typing import Callable, NamedTuple, Optional

from .models import RawManifestRecord

# Steamworks redistributables, Steam Linux Runtime, Proton builds
NON_GAME_APPIDS = frozenset({
    "228980",   # Steamworks Common Redistributables
    "1070560", "1391110", "1628350",    # Steam Linux Runtime
    "323370", "858280", "996510", "1054830", "1113280",
    "1245040", "1420170", "1887720", "2180100",     # Proton and friends
})

NAME_PATTERNS = (
    "steamworks",
    "redistributable",
    "redist",
    "vcredist",
    "directx",
    "runtime",
    "proton",
    "steam linux runtime",
    "common redistributables",
    "spacewar",
    "steam controller",
    "steam link",
    "benchmark",
    "demo",
    "beta",
    "test",
    "development",
    "sdk",
    "toolkit",
    "editor",
    "launcher",
    "updater",
)

INSTALLDIR_PATTERNS = (
    "steamworks",
    "redist",
    "runtime",
    "proton",
    "common_redist",
)

TOOL_TYPES = frozenset({"tool", "config", "application"})


class Rule(NamedTuple):
    field: str                      # RawManifestRecord attribute
    matcher: Callable[[str], bool]  # True means "not a game"
    reason: str


def _contains(pattern: str) -> Callable[[str], bool]:
    return lambda value: pattern in value.lower()


RULES = (
    Rule("appid", NON_GAME_APPIDS.__contains__, "known non-game appid"),
    *(Rule("name", _contains(p), f"name contains {p!r}") for p in NAME_PATTERNS),
    *(Rule("installdir", _contains(p), f"install dir contains {p!r}") for p in INSTALLDIR_PATTERNS),
    Rule("name", lambda value: not value.strip(), "empty name"),
    Rule("app_type", lambda value: value.strip().lower() in TOOL_TYPES, "tool/config/application type"),
)


def rejection_reason(record: RawManifestRecord) -> Optional[str]:
    """Reason of the first rule that matches, or None for a game."""
    for rule in RULES:
        value = getattr(record, rule.field) or ""
        if rule.matcher(value):
            return rule.reason
    return None


def is_actual_game(record: RawManifestRecord) -> bool:
    return rejection_reason(record) is None
