"""Parser for _NT_SYMBOL_PATH style search path strings.

Format examples:
- srv*C:\\symbols*https://msdl.microsoft.com/download/symbols
    server tier with a local mirror followed by an HTTP mirror
- cache*C:\\cache
    global cache applied to every following tier
- C:\\local\\symbols
    plain directory tier
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

CACHE_PREFIX = "cache*"
SERVER_PREFIX = "srv*"


class TierKind(Enum):
    DIRECTORY = "directory"
    SYMBOL_SERVER = "srv"


def is_http_location(location: str) -> bool:
    lowered = location.lower()
    return lowered.startswith("http:") or lowered.startswith("https:")


@dataclass(frozen=True)
class PathTier:
    """One segment of the search path."""
    kind: TierKind
    locations: Tuple[str, ...]
    cache_dir: Optional[str] = None

    @property
    def location(self) -> str:
        """Directory of a DIRECTORY tier (first mirror for a server tier)."""
        return self.locations[0] if self.locations else ""

    @property
    def is_server(self) -> bool:
        return self.kind is TierKind.SYMBOL_SERVER

    def __str__(self) -> str:
        if self.is_server:
            return SERVER_PREFIX + "*".join(self.locations)
        return self.location


@dataclass(frozen=True)
class SearchPathSpec:
    """Parsed search path: ordered tiers plus the last global cache seen."""
    tiers: Tuple[PathTier, ...]
    cache_dir: Optional[str] = None

    def __iter__(self):
        return iter(self.tiers)

    def __len__(self) -> int:
        return len(self.tiers)

    def __str__(self) -> str:
        # Re-emit cache directives where they changed so the result re-parses
        # to an equal spec.
        segments = []
        active_cache = None
        for tier in self.tiers:
            if tier.cache_dir != active_cache:
                segments.append(CACHE_PREFIX + (tier.cache_dir or ""))
            active_cache = tier.cache_dir
            segments.append(str(tier))
        if self.cache_dir != active_cache:
            segments.append(CACHE_PREFIX + (self.cache_dir or ""))
        return ";".join(segments)


def parse_symbol_path(spec: str) -> SearchPathSpec:
    """
    Parse a symbol path string into a SearchPathSpec.

    Unknown segment shapes become directory tiers; nothing here raises.
    """
    tiers = []
    current_cache: Optional[str] = None

    for segment in (spec or "").split(";"):
        segment = segment.strip()
        if not segment:
            continue

        lowered = segment.lower()
        if lowered.startswith(CACHE_PREFIX):
            current_cache = segment[len(CACHE_PREFIX):] or None
            continue

        if lowered.startswith(SERVER_PREFIX):
            mirrors = tuple(m for m in segment[len(SERVER_PREFIX):].split("*") if m)
            tiers.append(PathTier(TierKind.SYMBOL_SERVER, mirrors, current_cache))
        else:
            tiers.append(PathTier(TierKind.DIRECTORY, (segment,), current_cache))

    return SearchPathSpec(tuple(tiers), current_cache)
