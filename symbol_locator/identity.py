"""Symbol identity (GUID + age) and symbol-store path layout."""
from __future__ import annotations

import re
import uuid
from dataclasses import dataclass

_HEX_GUID = re.compile(r"^[0-9A-F]{32}$")


def normalize_guid(guid) -> str:
    """
    Normalize a GUID to 32 uppercase hex digits without braces or dashes.

    Accepts uuid.UUID objects, "{XXXXXXXX-XXXX-...}" registry style strings
    and bare hex strings.
    """
    if isinstance(guid, uuid.UUID):
        return guid.hex.upper()
    text = str(guid).strip().strip("{}").replace("-", "").upper()
    if not _HEX_GUID.match(text):
        raise ValueError(f"Not a GUID: {guid!r}")
    return text


@dataclass(frozen=True)
class SymbolIdentity:
    """Exact version of a module's debug information."""
    guid: str
    age: int

    def __post_init__(self):
        object.__setattr__(self, "guid", normalize_guid(self.guid))
        object.__setattr__(self, "age", int(self.age))

    @property
    def signature(self) -> str:
        """
        Symbol store key: GUID followed by the age in hex.

        Example: 1234567890ABCDEF1234567890ABCDEF1
        """
        return f"{self.guid}{self.age:X}"

    def matches(self, guid, age: int) -> bool:
        try:
            return normalize_guid(guid) == self.guid and int(age) == self.age
        except ValueError:
            return False

    def __str__(self) -> str:
        return f"GUID={self.guid}, age={self.age}"


def build_symbol_path(name: str, identity: SymbolIdentity) -> str:
    """
    Build the symbol store relative path for a symbol file.

    Symbol server format: {name}/{GUID}{age}/{name}
    Example: ntdll.pdb/1234567890ABCDEF1234567890ABCDEF1/ntdll.pdb
    """
    return f"{name}/{identity.signature}/{name}"
