"""Candidate validation against an expected symbol identity."""
from __future__ import annotations

import os
from typing import Optional

from .identity import SymbolIdentity
from .pdb_reader import ParsedSymbolFile, PdbReader


class CandidateValidator:
    """
    Opens a candidate symbol file and checks it belongs to the module.

    The reader is anything with a parse(path) -> ParsedSymbolFile method that
    raises SymbolParseError on malformed input.
    """

    def __init__(self, reader=None):
        self.reader = reader or PdbReader()

    def validate(self, path, expected: SymbolIdentity,
                 require_match: bool = True) -> Optional[ParsedSymbolFile]:
        """
        Parse a candidate and compare its GUID/age with the expected identity.

        Returns:
            The parsed file, or None when the file is missing or, with
            require_match, when GUID or age differ.

        Raises:
            SymbolParseError: The file exists but is not a readable PDB.
        """
        if not path or not os.path.isfile(path):
            return None

        parsed = self.reader.parse(path)
        if require_match and not expected.matches(parsed.guid, parsed.age):
            return None
        return parsed
