"""Symbol resolution facade.

Finds the PDB for a module: the linker-recorded path first, then the
configured symbol path, with every located file verified against the
module's GUID and age before it is handed back.
"""
from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Dict, List, Optional, Sequence, Union

from .cascade import CascadeCoordinator
from .config import SymbolSettings
from .console import PREFIX, VerboseLogger, safe_print, warn
from .errors import ResolutionCancelled, SymbolParseError
from .identity import SymbolIdentity
from .monitor import TaskMonitor
from .result import PdbResult
from .symbol_path import SearchPathSpec, parse_symbol_path
from .tiers import TierResolver
from .transport import HttpFetcher
from .validator import CandidateValidator


class SymbolResolver(VerboseLogger):
    """
    Resolves and verifies PDB files for modules.

    Holds only configuration and counters; every resolve call parses its
    own search path and uses its own scratch directory, so one instance can
    serve several threads.
    """

    def __init__(self, settings: Optional[SymbolSettings] = None,
                 symbol_path: Optional[str] = None,
                 fetcher=None, reader=None, verbose: Optional[bool] = None,
                 quiet: bool = False):
        """
        Initialize the symbol resolver.

        Args:
            settings: Defaults to SymbolSettings.from_env().
            symbol_path: Overrides settings.symbol_path.
            fetcher: Network fetch capability. Defaults to HttpFetcher.
            reader: Symbol-format reader. Defaults to PdbReader.
            verbose: Overrides settings.verbose.
            quiet: Suppress the per-module found/unavailable lines.
                Warnings are still printed.
        """
        self.settings = settings or SymbolSettings.from_env()
        self.symbol_path = symbol_path if symbol_path is not None else self.settings.symbol_path
        self.fetcher = fetcher or HttpFetcher(timeout=self.settings.timeout)
        self.validator = CandidateValidator(reader)
        self.verbose = self.settings.verbose if verbose is None else verbose
        self.quiet = quiet
        self._stats_lock = threading.Lock()

        # Statistics
        self.stats = {
            'symbols_declared': 0,
            'symbols_located': 0,
            'symbols_downloaded': 0,
            'symbols_failed': 0,
            'cascade_writes': 0,
        }

    def _count(self, key: str, amount: int = 1):
        with self._stats_lock:
            self.stats[key] += amount

    def resolve_symbol_file(self, identity: SymbolIdentity, candidates: Sequence[str],
                            declared_path: Optional[str] = None,
                            symbol_path: Union[str, SearchPathSpec, None] = None,
                            monitor: Optional[TaskMonitor] = None) -> Optional[PdbResult]:
        """
        Locate and verify the symbol file for one module.

        Args:
            identity: Expected GUID and age.
            candidates: Acceptable PDB file names, most preferred first.
            declared_path: Path recorded in the module; tried before searching.
            symbol_path: Search path string or parsed spec. Defaults to the
                resolver's configured path.
            monitor: Cancellation/progress monitor.

        Returns:
            PdbResult, or None when the symbols are unavailable.

        Raises:
            SymbolParseError: The located file is not a readable PDB.
            ResolutionCancelled: The monitor was cancelled.
        """
        monitor = monitor or TaskMonitor()
        candidates = list(candidates)
        label = candidates[0] if candidates else "(unnamed)"

        if declared_path:
            result = self._check_declared(declared_path, identity)
            if result:
                return result

        if not candidates:
            self._log(f"- No candidate file names for {identity}")
            self._count('symbols_failed')
            return None

        spec = symbol_path if isinstance(symbol_path, SearchPathSpec) \
            else parse_symbol_path(symbol_path if symbol_path is not None else self.symbol_path)

        tier_resolver = TierResolver(fetcher=self.fetcher, monitor=monitor,
                                     try_all_candidates=self.settings.try_all_candidates,
                                     verbose=self.verbose)
        coordinator = CascadeCoordinator(tier_resolver, monitor=monitor, verbose=self.verbose)

        self._log(f"Searching {label} ({identity}) in {spec}")
        try:
            lookup = coordinator.locate(spec, candidates, identity)
        finally:
            self._count('symbols_downloaded', tier_resolver.downloads)
            self._count('cascade_writes', coordinator.cascade_writes + tier_resolver.cascade_writes)

        if lookup.is_cancelled:
            raise ResolutionCancelled(f"Symbol resolution cancelled for {label}")
        if not lookup.is_hit:
            self._status(f"- Symbols unavailable for {label}")
            self._count('symbols_failed')
            return None

        located = lookup.result
        parsed = self.validator.validate(located.file, identity, require_match=True)
        if parsed is None:
            warn(f"{located.file} does not match {identity}")
            self._count('symbols_failed')
            return None

        self._status(f"+ {label} -> {located.file}")
        self._count('symbols_located')
        return PdbResult(file=located.file, symbol_file=parsed, relative_path=located.relative_path)

    def _status(self, message: str):
        if not self.quiet:
            safe_print(f"{PREFIX} {message}")

    def _check_declared(self, declared_path: str, identity: SymbolIdentity) -> Optional[PdbResult]:
        try:
            parsed = self.validator.validate(declared_path, identity, require_match=True)
        except SymbolParseError as e:
            warn(f"Ignoring declared PDB: {e}")
            return None
        if parsed is None:
            self._log(f"  Declared PDB unusable: {declared_path}")
            return None

        self._log(f"+ Using declared PDB {declared_path}")
        self._count('symbols_declared')
        return PdbResult(file=parsed.path, symbol_file=parsed)

    def resolve_module(self, metadata, symbol_path: Union[str, SearchPathSpec, None] = None,
                       monitor: Optional[TaskMonitor] = None) -> Optional[PdbResult]:
        """Resolve symbols for anything implementing the metadata provider methods."""
        return self.resolve_symbol_file(
            metadata.expected_identity(),
            metadata.candidate_filenames(),
            declared_path=metadata.declared_path(),
            symbol_path=symbol_path,
            monitor=monitor,
        )

    def resolve_many(self, modules: List[Any], max_workers: int = 4,
                     monitor: Optional[TaskMonitor] = None) -> Dict[str, Optional[PdbResult]]:
        """
        Resolve symbols for several modules in parallel.

        Each module is an independent request; a parse error for one module
        is reported and recorded as None without stopping the others.

        Returns:
            Dictionary mapping module names to results (None if unavailable).

        Raises:
            ResolutionCancelled: The monitor was cancelled.
        """
        monitor = monitor or TaskMonitor()
        results: Dict[str, Optional[PdbResult]] = {}
        if not modules:
            return results

        total = len(modules)
        completed = 0
        spec = parse_symbol_path(self.symbol_path)
        monitor.report_progress(f"Resolving symbols for {total} modules...", 0, total)

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            future_to_mod = {
                executor.submit(self.resolve_module, mod, spec, monitor): mod
                for mod in modules
            }
            for future in as_completed(future_to_mod):
                mod = future_to_mod[future]
                try:
                    results[mod.module_name] = future.result()
                except SymbolParseError as e:
                    warn(str(e))
                    results[mod.module_name] = None

                completed += 1
                monitor.report_progress(f"Resolved {completed}/{total}: {mod.module_name}",
                                        completed, total)

        monitor.check_cancelled()
        return results

    def get_statistics(self) -> Dict[str, int]:
        with self._stats_lock:
            return dict(self.stats)
