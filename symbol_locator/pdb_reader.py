"""
Minimal PDB (MSF 7.00) reader.

Only reads what identity validation needs: the PDB info stream (stream 1)
and the DBI stream header (stream 3). Symbol records are not parsed.
"""
from __future__ import annotations

import os
import struct
import uuid
from dataclasses import dataclass
from typing import List

from .errors import SymbolParseError

MSF7_MAGIC = b"Microsoft C/C++ MSF 7.00\r\n\x1aDS\x00\x00\x00"
MSF2_MAGIC = b"Microsoft C/C++ program database 2.00\r\n\x1aJG\x00\x00"

PDB_INFO_STREAM = 1
DBI_STREAM = 3
NIL_STREAM_SIZE = 0xFFFFFFFF

VALID_BLOCK_SIZES = (512, 1024, 2048, 4096)


@dataclass
class ParsedSymbolFile:
    """Identity data read from a PDB."""
    path: str
    guid: str
    age: int
    version: int = 0
    signature: int = 0  # Timestamp written by the linker
    stream_count: int = 0


class PdbReader:
    """Reads GUID and age out of a PDB file."""

    def parse(self, path) -> ParsedSymbolFile:
        path = str(path)
        try:
            with open(path, "rb") as f:
                data = f.read()
        except OSError as e:
            raise SymbolParseError(path, f"unreadable: {e}")

        if data.startswith(MSF2_MAGIC):
            raise SymbolParseError(path, "PDB 2.00 files carry no GUID")
        if not data.startswith(MSF7_MAGIC):
            raise SymbolParseError(path, "missing MSF 7.00 signature")

        try:
            return self._parse_msf7(path, data)
        except struct.error as e:
            raise SymbolParseError(path, f"truncated: {e}")

    def _parse_msf7(self, path: str, data: bytes) -> ParsedSymbolFile:
        # Superblock follows the 32 byte magic
        block_size, _free_map, num_blocks, dir_bytes, _unknown, block_map_addr = \
            struct.unpack_from("<6I", data, len(MSF7_MAGIC))

        if block_size not in VALID_BLOCK_SIZES:
            raise SymbolParseError(path, f"bad block size {block_size}")
        if num_blocks * block_size > len(data):
            raise SymbolParseError(path, "file shorter than its block count")

        def read_block(index: int) -> bytes:
            if index >= num_blocks:
                raise SymbolParseError(path, f"block {index} out of range")
            start = index * block_size
            return data[start:start + block_size]

        def read_blocks(indices: List[int], size: int) -> bytes:
            return b"".join(read_block(i) for i in indices)[:size]

        # The block map lists the blocks holding the stream directory
        dir_block_count = _blocks_needed(dir_bytes, block_size)
        dir_blocks = list(struct.unpack_from(f"<{dir_block_count}I",
                                             read_block(block_map_addr)))
        directory = read_blocks(dir_blocks, dir_bytes)

        num_streams = struct.unpack_from("<I", directory, 0)[0]
        sizes = struct.unpack_from(f"<{num_streams}I", directory, 4)
        offset = 4 + 4 * num_streams
        stream_blocks = []
        for size in sizes:
            count = 0 if size == NIL_STREAM_SIZE else _blocks_needed(size, block_size)
            stream_blocks.append(list(struct.unpack_from(f"<{count}I", directory, offset)))
            offset += 4 * count

        def read_stream(index: int) -> bytes:
            if index >= num_streams or sizes[index] == NIL_STREAM_SIZE:
                return b""
            return read_blocks(stream_blocks[index], sizes[index])

        info = read_stream(PDB_INFO_STREAM)
        if len(info) < 28:
            raise SymbolParseError(path, "PDB info stream too short")
        version, signature, info_age = struct.unpack_from("<III", info, 0)
        guid = uuid.UUID(bytes_le=info[12:28]).hex.upper()

        # The DBI age is the one the linker stamps into the image
        age = info_age
        dbi = read_stream(DBI_STREAM)
        if len(dbi) >= 12:
            age = struct.unpack_from("<I", dbi, 8)[0]

        return ParsedSymbolFile(
            path=os.path.abspath(path),
            guid=guid,
            age=age,
            version=version,
            signature=signature,
            stream_count=num_streams,
        )


def _blocks_needed(size: int, block_size: int) -> int:
    return (size + block_size - 1) // block_size
