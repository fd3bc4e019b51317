"""
Data model for the decoded members of a GZip archive.

All the classes here are inert, immutable data containers. Optional fields whose presence is controlled by the
member's flags are `None` when absent, which is distinct from them being present but empty.
"""

from dataclasses import dataclass, asdict
from enum import Enum, IntEnum
from typing import Optional, Tuple, Dict, Any

from atmfjstc.lib.iso_timestamp import ISOTimestamp


GZIP_MAGIC = b'\x1f\x8b'

DEFLATE_COMPRESSION_METHOD = 8


class GZFlagBits(IntEnum):
    IS_TEXT = 0
    HAS_HEADER_CRC = 1
    HAS_EXTRA = 2
    HAS_NAME = 3
    HAS_COMMENT = 4


class GZHostOS(Enum):
    FAT = 0
    AMIGA = 1
    VMS = 2
    UNIX = 3
    VM_CMS = 4
    ATARI_TOS = 5
    HPFS = 6
    MACINTOSH = 7
    Z_SYSTEM = 8
    CPM = 9
    TOPS20 = 10
    NTFS = 11
    QDOS = 12
    ACORN_RISCOS = 13
    UNKNOWN = 255  # Declared as such by the archiver, as opposed to UNRECOGNIZED

    UNRECOGNIZED = None

    @classmethod
    def from_raw(cls, raw_value: int) -> 'GZHostOS':
        return _from_raw(cls, raw_value)


class GZCompressionLevelHint(Enum):
    DEFAULT = 0
    BEST_COMPRESSION = 2
    FASTEST = 4

    UNRECOGNIZED = None

    @classmethod
    def from_raw(cls, raw_value: int) -> 'GZCompressionLevelHint':
        return _from_raw(cls, raw_value)


def _from_raw(enum, raw_value: int):
    try:
        return enum(raw_value)
    except ValueError:
        return enum.UNRECOGNIZED


@dataclass(frozen=True)
class GZRawHeader:
    """
    The fields of the 10-byte fixed header of a member, exactly as encoded.
    """

    id1: int
    id2: int
    compression_method: int
    flags: int
    mtime: int
    extra_flags: int
    os: int


@dataclass(frozen=True)
class GZMemberFlags:
    is_text: bool = False
    has_header_crc: bool = False
    has_extra: bool = False
    has_name: bool = False
    has_comment: bool = False

    @staticmethod
    def from_raw(flag_byte: int) -> 'GZMemberFlags':
        # Bits 5-7 are reserved and ignored
        return GZMemberFlags(*(bool(flag_byte & (1 << bit)) for bit in GZFlagBits))


@dataclass(frozen=True)
class GZExtraSubfield:
    """
    A sub-field of the EXTRA block of a member.

    Attributes:
        identifier: The two identifier bytes, as a two-character string (one character per byte)
        payload: The raw data of the sub-field
    """

    identifier: str
    payload: bytes

    @property
    def si1(self) -> int:
        return ord(self.identifier[0])

    @property
    def si2(self) -> int:
        return ord(self.identifier[1])


@dataclass(frozen=True)
class GZMember:
    """
    The full structure of a member of a GZip archive.

    Attributes:
        raw_header: The fixed header fields, verbatim
        flags: The five defined flags of the member
        os: The operating system on which the member was created, or `GZHostOS.UNRECOGNIZED`
        compression_level_hint: The compression level advertised in the header, or
            `GZCompressionLevelHint.UNRECOGNIZED`
        decoded_data: The entire decompressed content of the member
        trailer_crc32: The CRC-32 declared in the trailer. It is not checked against the actual content.
        uncompressed_size: The size declared in the trailer (modulo 2^32). It is not checked against the actual
            content.
        member_offset: The offset at which the member starts in the archive
        payload_offset: The offset at which the compressed data starts in the archive
        compressed_size: The size of the compressed data, in bytes
        modification_time: [Optional] The modification time as a UTC ISO timestamp; absent if the raw time is 0
        extra_fields: [Optional] The sub-fields of the EXTRA block, in order
        name: [Optional] The original file name
        comment: [Optional] The member comment
        header_crc16: [Optional] The header CRC, as declared. It is not verified.
    """

    raw_header: GZRawHeader
    flags: GZMemberFlags
    os: GZHostOS
    compression_level_hint: GZCompressionLevelHint

    decoded_data: bytes
    trailer_crc32: int
    uncompressed_size: int

    member_offset: int
    payload_offset: int
    compressed_size: int

    modification_time: Optional[ISOTimestamp] = None
    extra_fields: Optional[Tuple[GZExtraSubfield, ...]] = None
    name: Optional[str] = None
    comment: Optional[str] = None
    header_crc16: Optional[int] = None

    @property
    def decoded_text(self) -> str:
        return self.decoded_data.decode('utf-8', errors='replace')

    @property
    def is_deflate(self) -> bool:
        return self.raw_header.compression_method == DEFLATE_COMPRESSION_METHOD

    @property
    def total_size(self) -> int:
        return self.payload_offset - self.member_offset + self.compressed_size + 8

    def as_dict(self) -> Dict[str, Any]:
        """
        Renders the member as a tree of plain dicts, lists, strings and ints, suitable for dumping.

        Optional fields that are absent are omitted entirely. Enums are rendered by name.
        """

        result = dict(
            raw_header=asdict(self.raw_header),
            flags=asdict(self.flags),
            os=self.os.name,
            compression_level_hint=self.compression_level_hint.name,
            decoded_text=self.decoded_text,
            trailer_crc32=self.trailer_crc32,
            uncompressed_size=self.uncompressed_size,
            member_offset=self.member_offset,
            payload_offset=self.payload_offset,
            compressed_size=self.compressed_size,
        )

        for field in ('modification_time', 'name', 'comment', 'header_crc16'):
            value = getattr(self, field)
            if value is not None:
                result[field] = value

        if self.extra_fields is not None:
            result['extra_fields'] = [
                dict(identifier=subfield.identifier, payload=subfield.payload)
                for subfield in self.extra_fields
            ]

        return result
