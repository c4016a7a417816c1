# -*- coding: utf-8 -*-
"""
Compound Binary File (CFB / OLE2) reader, read-only.

- 헤더 파싱 (섹터 크기 shift, mini cutoff, 디렉터리/MiniFAT/DIFAT 시작 섹터)
- DIFAT -> FAT 체인 구성, MiniFAT 체인 구성
- 디렉터리 엔트리 (128 bytes) 나열, 이름으로 선형 검색
- 스트림 구체화: 크기에 따라 MiniStream / 일반 섹터 중 하나에서 읽기

모든 파생 구조는 입력 버퍼 하나에서 파싱 시점에 한 번 만들어지고 이후 변하지 않는다.
디렉터리의 red-black tree (left/right/child) 는 메타데이터로만 보관하고 탐색에 쓰지 않는다.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional

from .errors import (
    InvalidFormatError,
    MissingRootEntryError,
    MissingStreamError,
    TruncatedDataError,
)
from .sector_reader import SectorReader, hexdump, take

log = logging.getLogger("cfb")

CFB_MAGIC = b"\xD0\xCF\x11\xE0\xA1\xB1\x1A\xE1"
CFB_MAGIC_LEGACY = b"\x0E\x11\xFC\x0D\xD0\xCF\x11\xE0"

# Sector ID 상수
MAXREGSECT = 0xFFFFFFFA
DIFSECT = 0xFFFFFFFC
FATSECT = 0xFFFFFFFD
ENDOFCHAIN = 0xFFFFFFFE
FREESECT = 0xFFFFFFFF
NOSTREAM = 0xFFFFFFFF

HEADER_SIZE = 512
HEADER_DIFAT_SLOTS = 109
DIRENTRY_SIZE = 128
MINI_CUTOFF_DEFAULT = 4096

STGTY_EMPTY = 0x00
STGTY_STORAGE = 0x01
STGTY_STREAM = 0x02
STGTY_ROOT = 0x05

ROOT_ENTRY_NAME = "Root Entry"


@dataclass(frozen=True)
class DirectoryEntry:
    index: int
    name: str
    entry_type: int
    color: int
    left: int
    right: int
    child: int
    start: int
    size: int

    @property
    def is_stream(self) -> bool:
        return self.entry_type == STGTY_STREAM


class CfbContainer:
    """Parsed view of one CFB buffer.

    Use ``CfbContainer.parse(data)`` (or the constructor); parsing is eager and
    raises a ``ParseError`` subclass on the first structural problem.
    """

    def __init__(self, data: bytes):
        self.data = bytes(data)

        # header 기본값 (v3)
        self.little_endian = True
        self.sector_shift = 9
        self.mini_sector_shift = 6
        self.mini_stream_cutoff = MINI_CUTOFF_DEFAULT
        self.dir_first_sector = ENDOFCHAIN
        self.minifat_first_sector = ENDOFCHAIN
        self.difat_first_sector = ENDOFCHAIN
        self.num_difat_sectors = 0

        self.difat: List[int] = []
        self.fat: List[int] = []
        self.minifat: List[int] = []
        self.entries: List[DirectoryEntry] = []
        self.root_index = -1
        self.mini_stream = b""

        self._read_header()
        self._load_difat()
        self._load_fat()
        self._load_minifat()
        self._load_directory()
        self._load_ministream()

    @classmethod
    def parse(cls, data: bytes) -> "CfbContainer":
        return cls(data)

    # ---------- geometry ----------
    @property
    def sector_size(self) -> int:
        return 1 << self.sector_shift

    @property
    def mini_sector_size(self) -> int:
        return 1 << self.mini_sector_shift

    def _sector(self, sid: int) -> bytes:
        # 섹터 0 은 헤더(1 섹터 크기) 바로 뒤에서 시작
        return take(self.data, (sid + 1) << self.sector_shift, self.sector_size)

    def _sector_u32s(self, sid: int) -> List[int]:
        reader = SectorReader(self._sector(sid), self.little_endian)
        return reader.u32_array(0, self.sector_size)

    # ---------- header ----------
    def _read_header(self) -> None:
        magic = self.data[:8]
        if magic not in (CFB_MAGIC, CFB_MAGIC_LEGACY):
            log.debug("bad magic: %s", hexdump(magic) or "<empty>")
            raise InvalidFormatError("not a Compound Binary File (invalid magic bytes)")
        if len(self.data) < HEADER_SIZE:
            raise TruncatedDataError(
                f"CFB header needs {HEADER_SIZE} bytes, buffer has {len(self.data)}"
            )

        # FE FF = little-endian 표식, FF FE 만 big-endian 으로 취급
        self.little_endian = self.data[0x1C:0x1E] != b"\xFF\xFE"
        r = SectorReader(self.data, self.little_endian)

        # shift 값은 어떤 오프셋 계산보다 먼저 읽고 검증
        self.sector_shift = r.u16(0x1E)
        self.mini_sector_shift = r.u16(0x20)
        if not 7 <= self.sector_shift <= 16:
            raise InvalidFormatError(f"implausible sector shift {self.sector_shift}")
        if not 0 < self.mini_sector_shift < self.sector_shift:
            raise InvalidFormatError(f"implausible mini sector shift {self.mini_sector_shift}")

        self.dir_first_sector = r.u32(0x30)
        self.mini_stream_cutoff = r.u32(0x38)
        self.minifat_first_sector = r.u32(0x3C)
        self.difat_first_sector = r.u32(0x44)
        self.num_difat_sectors = r.u32(0x48)
        self.difat = r.u32_array(0x4C, HEADER_DIFAT_SLOTS * 4)

        log.debug(
            "CFB header: sector=%d mini=%d cutoff=%d dir=%d minifat=%d difat=%d(x%d) %s",
            self.sector_size, self.mini_sector_size, self.mini_stream_cutoff,
            self.dir_first_sector, self.minifat_first_sector,
            self.difat_first_sector, self.num_difat_sectors,
            "LE" if self.little_endian else "BE",
        )

    # ---------- DIFAT / FAT ----------
    def _load_difat(self) -> None:
        # overflow 섹터: 마지막 4 bytes 가 다음 DIFAT 섹터
        per_sector = self.sector_size // 4 - 1
        sid = self.difat_first_sector
        consumed = 0
        seen = set()
        while sid <= MAXREGSECT and consumed < self.num_difat_sectors:
            if sid in seen:
                log.warning("DIFAT chain revisits sector %d, stopping", sid)
                break
            seen.add(sid)
            entries = self._sector_u32s(sid)
            self.difat.extend(entries[:per_sector])
            sid = entries[per_sector]
            consumed += 1
        if consumed == self.num_difat_sectors and consumed and sid <= MAXREGSECT:
            log.warning("DIFAT chain continues past the declared %d sectors", consumed)

        while self.difat and self.difat[-1] == FREESECT:
            self.difat.pop()

    def _load_fat(self) -> None:
        fat: List[int] = []
        for sid in self.difat:
            fat.extend(self._sector_u32s(sid))
        self.fat = fat
        log.debug("FAT: %d sectors, %d entries", len(self.difat), len(fat))

    @staticmethod
    def _walk(start: int, chain: List[int]) -> Iterator[int]:
        """Yield sector ids of a chain.

        An id outside `chain` counts as ENDOFCHAIN. A revisited id ends the walk,
        so at most len(chain) ids are produced.
        """
        seen = set()
        sid = start
        while sid <= MAXREGSECT:
            if sid in seen:
                log.warning("sector chain revisits sector %d, stopping", sid)
                return
            seen.add(sid)
            yield sid
            sid = chain[sid] if sid < len(chain) else ENDOFCHAIN

    def _load_minifat(self) -> None:
        minifat: List[int] = []
        for sid in self._walk(self.minifat_first_sector, self.fat):
            minifat.extend(self._sector_u32s(sid))
        self.minifat = minifat

    # ---------- directory ----------
    def _load_directory(self) -> None:
        raw = b"".join(self._sector(sid) for sid in self._walk(self.dir_first_sector, self.fat))
        entries: List[DirectoryEntry] = []
        for off in range(0, len(raw) - DIRENTRY_SIZE + 1, DIRENTRY_SIZE):
            entries.append(self._parse_entry(len(entries), raw[off:off + DIRENTRY_SIZE]))

        while entries and entries[-1].entry_type == STGTY_EMPTY:
            entries.pop()
        self.entries = entries
        log.debug("directory: %d entries", len(entries))

    def _parse_entry(self, index: int, rec: bytes) -> DirectoryEntry:
        r = SectorReader(rec, self.little_endian)
        name_len = min(r.u16(0x40), 64)
        encoding = "utf-16le" if self.little_endian else "utf-16be"
        name = rec[:name_len].decode(encoding, errors="ignore").replace("\x00", "").strip()
        # v3 (512-byte sector) 파일은 size 상위 32bit 가 정의되지 않음
        size = r.u32(0x78) if self.sector_shift == 9 else r.u64(0x78)
        return DirectoryEntry(
            index=index,
            name=name,
            entry_type=r.u8(0x42),
            color=r.u8(0x43),
            left=r.u32(0x44),
            right=r.u32(0x48),
            child=r.u32(0x4C),
            start=r.u32(0x74),
            size=size,
        )

    def _load_ministream(self) -> None:
        root = self.find_stream_id(ROOT_ENTRY_NAME)
        if root is None:
            raise MissingRootEntryError("Root Entry not found in CFB directory")
        if self.entries[root].entry_type != STGTY_ROOT:
            log.warning("'%s' has entry type %d", ROOT_ENTRY_NAME, self.entries[root].entry_type)
        self.root_index = root
        self.mini_stream = self.read_stream(root, is_root=True)

    # ---------- public API ----------
    def find_stream_id(self, name: str, search_from: int = 0) -> Optional[int]:
        for i in range(max(0, search_from), len(self.entries)):
            if self.entries[i].name == name:
                return i
        return None

    def exists(self, name: str) -> bool:
        return self.find_stream_id(name) is not None

    def list_streams(self) -> List[str]:
        return [e.name for e in self.entries if e.is_stream]

    def read_stream(self, index: int, is_root: bool = False) -> bytes:
        """Materialize the stream of directory entry `index`.

        Streams below the mini cutoff live in the mini-stream, except the root
        entry, which defines the mini-stream and is always read from the FAT.
        """
        if not 0 <= index < len(self.entries):
            raise MissingStreamError(f"directory entry {index} does not exist")
        entry = self.entries[index]
        if entry.size == 0:
            return b""

        if entry.size < self.mini_stream_cutoff and not is_root:
            return self._materialize(entry, self.minifat, self.mini_stream,
                                     self.mini_sector_shift, 0)
        return self._materialize(entry, self.fat, self.data,
                                 self.sector_shift, self.sector_size)

    def open_stream(self, name: str) -> bytes:
        index = self.find_stream_id(name)
        if index is None:
            raise MissingStreamError(f"stream not found: {name}")
        return self.read_stream(index)

    def _materialize(self, entry: DirectoryEntry, chain: List[int], backing: bytes,
                     shift: int, base: int) -> bytes:
        unit = 1 << shift
        out = bytearray()
        for sid in self._walk(entry.start, chain):
            off = base + (sid << shift)
            if off >= len(backing):
                raise TruncatedDataError(
                    f"stream {entry.name!r}: sector {sid} at offset {off} is outside the buffer"
                )
            # 남은 길이만큼만 요구: 잘린 마지막 섹터는 허용, 중간 섹터가 짧으면 오류
            out += take(backing, off, min(unit, entry.size - len(out)))
            if len(out) >= entry.size:
                break

        if len(out) < entry.size:
            raise TruncatedDataError(
                f"stream {entry.name!r} declares {entry.size} bytes, chain holds {len(out)}"
            )
        return bytes(out[:entry.size])
