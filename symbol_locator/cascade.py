"""Ordered multi-tier lookup with write-back into missed tiers."""
from __future__ import annotations

from typing import List, Optional, Sequence

from .console import VerboseLogger
from .identity import SymbolIdentity
from .monitor import TaskMonitor
from .result import Lookup
from .store import cascade_into
from .symbol_path import PathTier, SearchPathSpec
from .tiers import TierResolver, writable_roots


class CascadeCoordinator(VerboseLogger):
    """
    Walks the tiers of a search path in order and stops at the first hit.

    Every tier tried before the hit receives a copy of the resolved file in
    each of its filesystem locations, so the next lookup for the same
    symbol is answered by the first tier. Tiers after the hit are never
    touched.
    """

    def __init__(self, tier_resolver: Optional[TierResolver] = None,
                 monitor: Optional[TaskMonitor] = None, verbose: Optional[bool] = None):
        self.monitor = monitor or (tier_resolver.monitor if tier_resolver else TaskMonitor())
        self.tier_resolver = tier_resolver or TierResolver(monitor=self.monitor, verbose=verbose)
        self.verbose = verbose
        self.cascade_writes = 0

    def locate(self, spec: SearchPathSpec, candidates: Sequence[str],
               identity: SymbolIdentity) -> Lookup:
        missed: List[PathTier] = []
        total = len(spec.tiers)

        for index, tier in enumerate(spec.tiers, 1):
            if self.monitor.cancelled:
                self._log("Cancelled before " + str(tier))
                return Lookup.cancelled()
            self.monitor.report_progress(f"Searching {tier}", index - 1, total)

            lookup = self.tier_resolver.resolve(tier, candidates, identity)
            if lookup.is_cancelled:
                return lookup
            if lookup.is_hit:
                self._log(f"+ Tier {index}/{total} hit: {lookup.result.file}")
                self._write_back(lookup, missed)
                return lookup

            self._log(f"  Tier {index}/{total} miss: {tier}")
            missed.append(tier)

        return Lookup.miss()

    def _write_back(self, lookup: Lookup, missed: List[PathTier]):
        roots = []
        for tier in missed:
            for root in writable_roots(tier):
                if root not in roots:
                    roots.append(root)
        written = cascade_into(lookup.result, roots)
        if written:
            self._log(f"+ Cached {lookup.result.relative_path} in {written} earlier tier(s)")
        self.cascade_writes += written
