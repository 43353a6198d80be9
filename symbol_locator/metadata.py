"""
Module metadata: expected symbol identity and candidate PDB names.

Reads the CodeView (RSDS) debug record either from a PE image on disk or
from the module list of a Windows minidump.
"""
from __future__ import annotations

import ntpath
import os
import struct
import uuid
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .identity import SymbolIdentity

RSDS_SIGNATURE = b"RSDS"
IMAGE_DEBUG_TYPE_CODEVIEW = 2
MINIDUMP_SIGNATURE = b"MDMP"
MODULE_LIST_STREAM = 4
MINIDUMP_MODULE_SIZE = 108


@dataclass
class ModuleDebugInfo:
    """Debug information for one module; implements the metadata provider."""
    module_name: str
    pdb_path: str  # PDB path as recorded by the linker
    guid: str
    age: int
    base_address: int = 0
    size: int = 0
    extra_candidates: List[str] = field(default_factory=list)

    def expected_identity(self) -> SymbolIdentity:
        return SymbolIdentity(self.guid, self.age)

    def candidate_filenames(self) -> List[str]:
        """PDB basename, its lowercase form, then <module stem>.pdb."""
        names = []
        pdb_name = ntpath.basename(self.pdb_path) if self.pdb_path else ""
        if pdb_name:
            names.append(pdb_name)
            names.append(pdb_name.lower())
        stem = os.path.splitext(ntpath.basename(self.module_name))[0]
        if stem:
            names.append(stem + ".pdb")
        names.extend(self.extra_candidates)

        unique = []
        for name in names:
            if name and name not in unique:
                unique.append(name)
        return unique

    def declared_path(self) -> Optional[str]:
        """The linker-recorded PDB path, if it exists on this machine."""
        if self.pdb_path and os.path.isfile(self.pdb_path):
            return self.pdb_path
        return None


def parse_rsds(cv_data: bytes) -> Optional[Tuple[str, str, int]]:
    """Parse a CodeView RSDS record into (pdb_path, guid, age)."""
    # DWORD Signature ('RSDS'), GUID Guid, DWORD Age, char PdbFileName[]
    if len(cv_data) < 24 or cv_data[:4] != RSDS_SIGNATURE:
        return None
    guid = uuid.UUID(bytes_le=cv_data[4:20]).hex.upper()
    age = struct.unpack_from("<I", cv_data, 20)[0]
    pdb_path = cv_data[24:].split(b"\x00", 1)[0].decode("utf-8", errors="ignore")
    return (pdb_path, guid, age)


def read_pe_debug_info(pe_path: str) -> Optional[ModuleDebugInfo]:
    """Extract PDB info from a PE file's CodeView (RSDS) debug record."""
    if not pe_path or not os.path.isfile(pe_path):
        return None

    with open(pe_path, "rb") as f:
        data = f.read()

    try:
        rsds = _find_pe_rsds(data)
    except struct.error:
        return None
    if not rsds:
        return None

    pdb_path, guid, age = rsds
    return ModuleDebugInfo(module_name=pe_path, pdb_path=pdb_path, guid=guid, age=age)


def _find_pe_rsds(data: bytes) -> Optional[Tuple[str, str, int]]:
    """
    Walk a PE image to its first usable CodeView debug entry.

    Follows e_lfanew to the optional header, takes the debug data directory,
    maps its RVA through the section table, then scans the debug entries for
    one whose payload is an RSDS record. Any offset that runs past the end of
    the image ends the walk with None.
    """
    if len(data) < 0x40 or data[:2] != b"MZ":
        return None

    e_lfanew = struct.unpack_from("<I", data, 0x3C)[0]
    if e_lfanew <= 0 or e_lfanew + 4 > len(data):
        return None
    if data[e_lfanew:e_lfanew + 4] != b"PE\x00\x00":
        return None

    file_header_off = e_lfanew + 4
    _, num_sections, _, _, _, size_opt_header, _ = struct.unpack_from("<HHIIIHH", data, file_header_off)

    opt_off = file_header_off + 20
    if opt_off + size_opt_header > len(data):
        return None

    magic = struct.unpack_from("<H", data, opt_off)[0]
    data_dir_off = opt_off + (112 if magic == 0x20B else 96)
    if data_dir_off + 8 * 7 > len(data):
        return None

    # IMAGE_DIRECTORY_ENTRY_DEBUG = index 6
    debug_rva, debug_size = struct.unpack_from("<II", data, data_dir_off + 8 * 6)
    if debug_rva == 0 or debug_size == 0:
        return None

    sections = []
    sections_off = opt_off + size_opt_header
    for i in range(num_sections):
        sec_off = sections_off + i * 40
        if sec_off + 40 > len(data):
            break
        virtual_size, virtual_address, size_raw, ptr_raw = struct.unpack_from("<IIII", data, sec_off + 8)
        sections.append((virtual_address, max(virtual_size, size_raw), ptr_raw, size_raw))

    def rva_to_file_offset(rva: int) -> Optional[int]:
        for va, vsz, ptr, rawsz in sections:
            if va <= rva < va + vsz and rva - va < rawsz:
                return ptr + (rva - va)
        return None

    debug_off = rva_to_file_offset(debug_rva)
    if debug_off is None:
        return None

    # Characteristics, TimeDateStamp, Major/MinorVersion, Type, SizeOfData,
    # AddressOfRawData, PointerToRawData
    for i in range(debug_size // 28):
        off = debug_off + i * 28
        if off + 28 > len(data):
            break
        _, _, _, _, debug_type, size_of_data, addr_raw, ptr_raw = struct.unpack_from("<IIHHIIII", data, off)
        if debug_type != IMAGE_DEBUG_TYPE_CODEVIEW:
            continue
        cv_off = ptr_raw if ptr_raw != 0 else rva_to_file_offset(addr_raw)
        if cv_off is None:
            continue
        rsds = parse_rsds(data[cv_off:cv_off + size_of_data])
        if rsds:
            return rsds
    return None


def read_minidump_modules(dump_path: str) -> List[ModuleDebugInfo]:
    """
    List the modules of a minidump that carry an RSDS record.

    Modules without CodeView data are skipped; they can't be looked up on a
    symbol server anyway.
    """
    if not dump_path or not os.path.isfile(dump_path):
        return []

    with open(dump_path, "rb") as f:
        data = f.read()

    if len(data) < 32 or data[:4] != MINIDUMP_SIGNATURE:
        return []

    try:
        return _parse_minidump_modules(data)
    except struct.error:
        return []


def _parse_minidump_modules(data: bytes) -> List[ModuleDebugInfo]:
    # MINIDUMP_HEADER: Signature, Version, NumberOfStreams, StreamDirectoryRva, ...
    _, _, num_streams, dir_rva = struct.unpack_from("<4I", data, 0)

    module_rva = module_size = 0
    for i in range(num_streams):
        stream_type, data_size, rva = struct.unpack_from("<III", data, dir_rva + i * 12)
        if stream_type == MODULE_LIST_STREAM:
            module_rva, module_size = rva, data_size
            break
    if not module_rva or module_size < 4:
        return []

    modules = []
    num_modules = struct.unpack_from("<I", data, module_rva)[0]
    offset = module_rva + 4
    for _ in range(min(num_modules, 2000)):
        if offset + MINIDUMP_MODULE_SIZE > len(data):
            break
        base_addr, size, _checksum, _timestamp, name_rva = struct.unpack_from("<QIIII", data, offset)
        # CvRecord location descriptor sits after the 52 byte VS_FIXEDFILEINFO
        cv_size, cv_rva = struct.unpack_from("<II", data, offset + 76)
        offset += MINIDUMP_MODULE_SIZE

        rsds = parse_rsds(data[cv_rva:cv_rva + cv_size]) if cv_rva and cv_size else None
        if not rsds:
            continue
        pdb_path, guid, age = rsds
        modules.append(ModuleDebugInfo(
            module_name=_read_minidump_string(data, name_rva),
            pdb_path=pdb_path,
            guid=guid,
            age=age,
            base_address=base_addr,
            size=size,
        ))
    return modules


def _read_minidump_string(data: bytes, rva: int) -> str:
    """MINIDUMP_STRING: ULONG32 byte length followed by UTF-16LE text."""
    if not rva or rva + 4 > len(data):
        return ""
    length = struct.unpack_from("<I", data, rva)[0]
    raw = data[rva + 4:rva + 4 + length]
    return raw.decode("utf-16-le", errors="replace")
