"""Tests for the PDB identity reader."""
import pytest

from conftest import GUID, make_pdb
from symbol_locator.errors import SymbolParseError
from symbol_locator.pdb_reader import MSF2_MAGIC, PdbReader


def test_reads_guid_and_age(tmp_path):
    pdb = tmp_path / "game.pdb"
    pdb.write_bytes(make_pdb(GUID, 3))

    parsed = PdbReader().parse(pdb)
    assert parsed.guid == GUID
    assert parsed.age == 3
    assert parsed.version == 20000404
    assert parsed.stream_count == 4
    assert parsed.path == str(pdb)


def test_dbi_age_wins_over_info_age(tmp_path):
    pdb = tmp_path / "game.pdb"
    pdb.write_bytes(make_pdb(GUID, 5, info_age=9))
    assert PdbReader().parse(pdb).age == 5


def test_info_age_used_without_dbi(tmp_path):
    pdb = tmp_path / "game.pdb"
    pdb.write_bytes(make_pdb(GUID, 5, info_age=9, with_dbi=False))
    assert PdbReader().parse(pdb).age == 9


def test_not_a_pdb(tmp_path):
    bogus = tmp_path / "bogus.pdb"
    bogus.write_bytes(b"this is not a pdb file at all" * 10)
    with pytest.raises(SymbolParseError):
        PdbReader().parse(bogus)


def test_pdb20_rejected(tmp_path):
    old = tmp_path / "old.pdb"
    old.write_bytes(MSF2_MAGIC + bytes(512))
    with pytest.raises(SymbolParseError, match="2.00"):
        PdbReader().parse(old)


def test_truncated_pdb(tmp_path):
    pdb = tmp_path / "cut.pdb"
    pdb.write_bytes(make_pdb()[:700])
    with pytest.raises(SymbolParseError):
        PdbReader().parse(pdb)


def test_missing_file(tmp_path):
    with pytest.raises(SymbolParseError):
        PdbReader().parse(tmp_path / "nope.pdb")
