"""Symbol Locator package.

This package finds debug symbols (PDB files) for Windows modules:
- Parsing of _NT_SYMBOL_PATH style search paths (srv*, cache*, directories)
- Ordered lookup across local directories, network shares and HTTP symbol servers
- Write-back of resolved files into every cache tier that missed
- GUID/age verification of candidates with a built-in PDB header reader
- CodeView identity extraction from PE images and minidumps
"""
from .cascade import CascadeCoordinator
from .config import SymbolSettings
from .errors import (
    SymbolLocatorError,
    SymbolParseError,
    ResolutionCancelled,
    TransportError,
)
from .identity import SymbolIdentity, build_symbol_path
from .metadata import ModuleDebugInfo, read_pe_debug_info, read_minidump_modules
from .monitor import TaskMonitor
from .pdb_reader import PdbReader, ParsedSymbolFile
from .resolver import SymbolResolver
from .result import Lookup, LookupStatus, PdbResult, ResolutionResult
from .symbol_path import PathTier, SearchPathSpec, TierKind, parse_symbol_path
from .tiers import TierResolver
from .transport import HttpFetcher
from .validator import CandidateValidator

__all__ = [
    # Search path
    "PathTier",
    "SearchPathSpec",
    "TierKind",
    "parse_symbol_path",
    # Resolution
    "SymbolResolver",
    "CascadeCoordinator",
    "TierResolver",
    "CandidateValidator",
    "HttpFetcher",
    "TaskMonitor",
    "SymbolSettings",
    # Values
    "SymbolIdentity",
    "build_symbol_path",
    "Lookup",
    "LookupStatus",
    "PdbResult",
    "ResolutionResult",
    "ParsedSymbolFile",
    "PdbReader",
    # Module metadata
    "ModuleDebugInfo",
    "read_pe_debug_info",
    "read_minidump_modules",
    # Errors
    "SymbolLocatorError",
    "SymbolParseError",
    "ResolutionCancelled",
    "TransportError",
]

__version__ = "1.0.0"
