"""Resolution of a single search-path tier."""
from __future__ import annotations

import os
import tempfile
from typing import List, Optional, Sequence

from .console import VerboseLogger
from .errors import ResolutionCancelled
from .identity import SymbolIdentity, build_symbol_path
from .monitor import TaskMonitor
from .result import Lookup
from .store import cascade_into, store_path
from .symbol_path import PathTier, is_http_location
from .transport import HttpFetcher


def server_mirrors(tier: PathTier) -> List[str]:
    """
    Mirrors of a server tier in lookup order.

    A global cache, when set, is consulted before the tier's own mirrors so
    anything downloaded earlier is served locally.
    """
    mirrors = list(tier.locations)
    if tier.cache_dir and not any(_same_path(tier.cache_dir, m) for m in mirrors):
        mirrors.insert(0, tier.cache_dir)
    return mirrors


def writable_roots(tier: PathTier) -> List[str]:
    """Filesystem locations of a tier that may receive cascaded copies."""
    if tier.is_server:
        return [m for m in server_mirrors(tier) if not is_http_location(m)]
    return [tier.location] if tier.location else []


def _same_path(a: str, b: str) -> bool:
    if is_http_location(a) or is_http_location(b):
        return a.rstrip("/") == b.rstrip("/")
    return os.path.normcase(os.path.abspath(a)) == os.path.normcase(os.path.abspath(b))


class TierResolver(VerboseLogger):
    """
    Looks one tier up for a symbol file.

    One instance serves one resolution request: the temporary directory used
    for downloads from servers with no local mirror is created on first use
    and reused for the rest of the request.
    """

    def __init__(self, fetcher=None, monitor: Optional[TaskMonitor] = None,
                 try_all_candidates: bool = False, verbose: Optional[bool] = None):
        """
        Args:
            fetcher: Object with fetch(url, destination, monitor) -> bool.
            monitor: Cancellation/progress monitor for this request.
            try_all_candidates: Try every candidate name in directory tiers
                instead of only the first one.
            verbose: Override the class-level VERBOSE flag.
        """
        self.fetcher = fetcher or HttpFetcher()
        self.monitor = monitor or TaskMonitor()
        self.try_all_candidates = try_all_candidates
        self.verbose = verbose
        self.downloads = 0
        self.cascade_writes = 0
        self._scratch_dir: Optional[str] = None

    def resolve(self, tier: PathTier, candidates: Sequence[str], identity: SymbolIdentity,
                write_through_dir: Optional[str] = None) -> Lookup:
        """
        Resolve one tier.

        Args:
            tier: Tier to search.
            candidates: Acceptable file names, most preferred first.
            identity: Expected GUID/age; selects the store subdirectory.
            write_through_dir: Where HTTP downloads land when the tier has no
                earlier filesystem mirror. A temp dir is used if omitted.

        Returns:
            HIT, MISS or CANCELLED lookup.
        """
        if not candidates:
            return Lookup.miss()
        if tier.is_server:
            return self._resolve_server(tier, candidates, identity, write_through_dir)

        names = candidates if self.try_all_candidates else candidates[:1]
        return self._resolve_directory(tier.location, names, identity)

    def _resolve_directory(self, location: str, names: Sequence[str],
                           identity: SymbolIdentity) -> Lookup:
        if not location:
            return Lookup.miss()
        for name in names:
            relative = build_symbol_path(name, identity)
            path = store_path(location, relative)
            if os.path.isfile(path):
                self._log(f"+ Found {relative} in {location}")
                return Lookup.hit(path, relative)
            self._log(f"  Not in {location}: {relative}")
        return Lookup.miss()

    def _resolve_server(self, tier: PathTier, candidates: Sequence[str],
                        identity: SymbolIdentity, write_through_dir: Optional[str]) -> Lookup:
        mirrors = server_mirrors(tier)
        cascade_targets = []
        download_target = write_through_dir
        lookup = Lookup.miss()

        for index, mirror in enumerate(mirrors, 1):
            if self.monitor.cancelled:
                return Lookup.cancelled()
            self.monitor.report_progress(f"Trying {mirror}", index, len(mirrors))

            if is_http_location(mirror):
                try:
                    lookup = self._fetch(mirror, candidates, identity,
                                         download_target or self._get_scratch_dir())
                except ResolutionCancelled:
                    return Lookup.cancelled()
            else:
                lookup = self._resolve_directory(mirror, candidates, identity)

            if lookup.is_hit:
                break

            if not is_http_location(mirror):
                cascade_targets.append(mirror)
                # Later downloads land in the last physical mirror tried
                download_target = mirror

        if not lookup.is_hit:
            return lookup

        self.cascade_writes += cascade_into(lookup.result, cascade_targets)
        return lookup

    def _fetch(self, server: str, candidates: Sequence[str], identity: SymbolIdentity,
               target_root: str) -> Lookup:
        for name in candidates:
            relative = build_symbol_path(name, identity)
            url = f"{server.rstrip('/')}/{relative}"
            destination = store_path(target_root, relative)
            self._log(f"  Fetching {url}")
            if self.fetcher.fetch(url, destination, self.monitor):
                self.downloads += 1
                self._log(f"+ Downloaded {name} into {target_root}")
                return Lookup.hit(destination, relative)
            self._log(f"  Not on {server}: {relative}")
        return Lookup.miss()

    def _get_scratch_dir(self) -> str:
        if self._scratch_dir is None:
            self._scratch_dir = tempfile.mkdtemp(prefix="symbols_")
        return self._scratch_dir
