"""Result values passed between tiers, the cascade and the facade."""
from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .pdb_reader import ParsedSymbolFile


@dataclass(frozen=True)
class ResolutionResult:
    """A located file plus the symbol-store relative path it was found under."""
    file: str
    relative_path: str

    def __post_init__(self):
        object.__setattr__(self, "file", os.path.abspath(self.file))


class LookupStatus(Enum):
    HIT = "hit"
    MISS = "miss"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Lookup:
    """Outcome of one tier, mirror or cascade attempt."""
    status: LookupStatus
    result: Optional[ResolutionResult] = None

    @classmethod
    def hit(cls, file, relative_path: str) -> "Lookup":
        return cls(LookupStatus.HIT, ResolutionResult(str(file), relative_path))

    @classmethod
    def miss(cls) -> "Lookup":
        return cls(LookupStatus.MISS)

    @classmethod
    def cancelled(cls) -> "Lookup":
        return cls(LookupStatus.CANCELLED)

    @property
    def is_hit(self) -> bool:
        return self.status is LookupStatus.HIT

    @property
    def is_cancelled(self) -> bool:
        return self.status is LookupStatus.CANCELLED


@dataclass
class PdbResult:
    """Final answer handed back to callers: located file and parsed PDB."""
    file: str
    symbol_file: ParsedSymbolFile
    relative_path: Optional[str] = None  # None when found at the declared path
