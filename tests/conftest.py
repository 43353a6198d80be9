"""Shared fixtures: synthetic PDB, PE and minidump files plus a fake fetcher."""
import os
import struct
import sys
import uuid

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from symbol_locator.identity import SymbolIdentity, build_symbol_path
from symbol_locator.store import store_path

GUID = "1234567890ABCDEF1234567890ABCDEF"
OTHER_GUID = "FEDCBA0987654321FEDCBA0987654321"
AGE = 3

MSF7_MAGIC = b"Microsoft C/C++ MSF 7.00\r\n\x1aDS\x00\x00\x00"
BLOCK_SIZE = 512


def make_pdb(guid: str = GUID, age: int = AGE, info_age=None, with_dbi: bool = True) -> bytes:
    """
    Build a minimal MSF 7.00 container.

    Blocks: 0 superblock, 1-2 free page maps, 3 info stream, 4 DBI stream,
    5 stream directory, 6 block map.
    """
    info = struct.pack("<III", 20000404, 0x5F000000, age if info_age is None else info_age)
    info += uuid.UUID(hex=guid).bytes_le
    dbi = struct.pack("<iII", -1, 19990903, age).ljust(64, b"\x00")

    sizes = [0, len(info), 0, len(dbi) if with_dbi else 0xFFFFFFFF]
    directory = struct.pack("<I", len(sizes)) + struct.pack(f"<{len(sizes)}I", *sizes)
    directory += struct.pack("<I", 3)
    if with_dbi:
        directory += struct.pack("<I", 4)

    num_blocks = 7
    superblock = MSF7_MAGIC + struct.pack("<6I", BLOCK_SIZE, 1, num_blocks, len(directory), 0, 6)
    blocks = [
        superblock,
        b"",
        b"",
        info,
        dbi if with_dbi else b"",
        directory,
        struct.pack("<I", 5),
    ]
    return b"".join(block.ljust(BLOCK_SIZE, b"\x00") for block in blocks)


def rsds_record(guid: str = GUID, age: int = AGE, pdb_path: str = r"C:\build\game.pdb") -> bytes:
    return b"RSDS" + uuid.UUID(hex=guid).bytes_le + struct.pack("<I", age) + pdb_path.encode() + b"\x00"


def make_pe(guid: str = GUID, age: int = AGE, pdb_path: str = r"C:\build\game.pdb") -> bytes:
    """PE32+ image with one section holding a CodeView debug directory."""
    cv = rsds_record(guid, age, pdb_path)

    dos = bytearray(0x40)
    dos[0:2] = b"MZ"
    struct.pack_into("<I", dos, 0x3C, 0x40)

    file_header = struct.pack("<HHIIIHH", 0x8664, 1, 0, 0, 0, 240, 0x22)

    optional = bytearray(240)
    struct.pack_into("<H", optional, 0, 0x20B)
    struct.pack_into("<II", optional, 112 + 8 * 6, 0x1000, 28)

    section = b".rdata\x00\x00" + struct.pack("<IIII", 0x200, 0x1000, 0x200, 0x200) + bytes(16)

    headers = bytes(dos) + b"PE\x00\x00" + file_header + bytes(optional) + section
    headers = headers.ljust(0x200, b"\x00")

    debug_entry = struct.pack("<IIHHIIII", 0, 0, 0, 0, 2, len(cv), 0x1000 + 28, 0x200 + 28)
    body = (debug_entry + cv).ljust(0x200, b"\x00")
    return headers + body


def make_minidump(modules) -> bytes:
    """
    Minidump holding only a module list.

    modules: list of (name, base, size, cv_bytes or None)
    """
    header_size = 32
    dir_rva = header_size
    list_rva = dir_rva + 12
    list_size = 4 + 108 * len(modules)

    tail = bytearray()
    tail_rva = list_rva + list_size
    entries = b""
    for name, base, size, cv in modules:
        encoded = name.encode("utf-16-le")
        name_rva = tail_rva + len(tail)
        tail += struct.pack("<I", len(encoded)) + encoded + b"\x00\x00"
        cv_rva = cv_size = 0
        if cv:
            cv_rva = tail_rva + len(tail)
            cv_size = len(cv)
            tail += cv
        entries += struct.pack("<QIIII", base, size, 0, 0, name_rva)
        entries += bytes(52)
        entries += struct.pack("<II", cv_size, cv_rva)
        entries += bytes(8 + 16)

    header = struct.pack("<4sIIIIIQ", b"MDMP", 0xA793, 1, dir_rva, 0, 0, 0)
    directory = struct.pack("<III", 4, list_size, list_rva)
    module_list = struct.pack("<I", len(modules)) + entries
    return header + directory + module_list + bytes(tail)


def place_pdb(root, name: str = "game.pdb", identity=None, data: bytes = None) -> str:
    """Put a PDB into a symbol store directory; returns its path."""
    identity = identity or SymbolIdentity(GUID, AGE)
    path = store_path(str(root), build_symbol_path(name, identity))
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "wb") as f:
        f.write(make_pdb(identity.guid, identity.age) if data is None else data)
    return path


class FakeFetcher:
    """Serves URL -> bytes from a dict and records every request."""

    def __init__(self, files=None):
        self.files = dict(files or {})
        self.calls = []

    def fetch(self, url, destination, monitor=None):
        self.calls.append(url)
        if url not in self.files:
            return False
        os.makedirs(os.path.dirname(str(destination)), exist_ok=True)
        with open(destination, "wb") as f:
            f.write(self.files[url])
        return True


@pytest.fixture
def identity():
    return SymbolIdentity(GUID, AGE)


@pytest.fixture
def relative(identity):
    return build_symbol_path("game.pdb", identity)
