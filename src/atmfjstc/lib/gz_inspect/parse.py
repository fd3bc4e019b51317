import struct
import logging

from typing import Tuple, Optional

from atmfjstc.lib.binary_utils.BinaryReader import BinaryReader
from atmfjstc.lib.iso_timestamp import iso_from_unix_time

from .cursor import GZByteCursor
from .errors import GZBadSignatureError, GZExtraFieldOverrunError
from .member import GZMember, GZRawHeader, GZMemberFlags, GZHostOS, GZCompressionLevelHint, GZExtraSubfield, \
    GZIP_MAGIC, DEFLATE_COMPRESSION_METHOD
from .payload import locate_payload, DEFAULT_BUFFER_SIZE


LOG = logging.getLogger(__name__)


FIXED_HEADER_FORMAT = '<BBIBB'  # Everything after the magic
FIXED_HEADER_SIZE = struct.calcsize(FIXED_HEADER_FORMAT)

EXTRA_SUBFIELD_HEADER_SIZE = 4


def parse_member(
    cursor: GZByteCursor, member_index: int = 0, buffer_size: int = DEFAULT_BUFFER_SIZE,
    string_safety_limit: Optional[int] = None
) -> GZMember:
    """
    Decodes a complete GZip member, starting at the cursor's current position.

    On return, the cursor is positioned right after the member's trailer.

    Args:
        cursor: The cursor to read from.
        member_index: The index of this member in the archive, used in error messages.
        buffer_size: The size of the chunks in which compressed data is fed to the inflater.
        string_safety_limit: If not None, the maximum length of the name and comment fields, including the null
            terminator.

    Returns:
        A `GZMember` containing every structural field of the member, plus its decompressed content.

    Raises:
        GZEndOfStreamError: If the data ends before the member is complete.
        GZFormatViolationError: If the member signature is wrong or the EXTRA field is inconsistent.
        GZPayloadDecodeError: If the compressed data is corrupt.
    """

    cursor.member_index = member_index
    member_offset = cursor.tell()

    magic = cursor.read_exact(len(GZIP_MAGIC), 'signature')
    if magic != GZIP_MAGIC:
        raise GZBadSignatureError(member_offset, magic, member_index=member_index, source_name=cursor.name())

    compression_method, flag_byte, mtime, extra_flags, host_os = \
        struct.unpack(FIXED_HEADER_FORMAT, cursor.read_exact(FIXED_HEADER_SIZE, 'fixed header'))

    raw_header = GZRawHeader(
        id1=magic[0],
        id2=magic[1],
        compression_method=compression_method,
        flags=flag_byte,
        mtime=mtime,
        extra_flags=extra_flags,
        os=host_os,
    )
    flags = GZMemberFlags.from_raw(flag_byte)

    LOG.debug("Member #%d at offset %d: flags %s", member_index, member_offset, flags)

    if compression_method != DEFLATE_COMPRESSION_METHOD:
        LOG.debug("Member #%d has non-standard compression method %d", member_index, compression_method)
    if flag_byte & 0xe0:
        LOG.debug("Member #%d has reserved flag bits set: %08b", member_index, flag_byte)

    extra_fields = None
    name = None
    comment = None
    header_crc16 = None

    if flags.has_extra:
        extra_length = cursor.read_uint(2, 'extra field length')
        raw_extra = cursor.read_exact(extra_length, 'extra field')
        extra_fields = _parse_extra_subfields(raw_extra, cursor)
    if flags.has_name:
        name = cursor.read_until_zero('name', safety_limit=string_safety_limit)
    if flags.has_comment:
        comment = cursor.read_until_zero('comment', safety_limit=string_safety_limit)
    if flags.has_header_crc:
        header_crc16 = cursor.read_uint(2, 'header CRC16')

    payload = locate_payload(cursor, buffer_size)

    LOG.debug(
        "Member #%d: %d bytes of compressed data at offset %d, %d bytes decoded",
        member_index, payload.compressed_size, payload.offset, len(payload.data)
    )

    trailer_crc32 = cursor.read_uint(4, 'trailer CRC32')
    uncompressed_size = cursor.read_uint(4, 'uncompressed size')

    return GZMember(
        raw_header=raw_header,
        flags=flags,
        os=GZHostOS.from_raw(host_os),
        compression_level_hint=GZCompressionLevelHint.from_raw(extra_flags),
        decoded_data=payload.data,
        trailer_crc32=trailer_crc32,
        uncompressed_size=uncompressed_size,
        member_offset=member_offset,
        payload_offset=payload.offset,
        compressed_size=payload.compressed_size,
        modification_time=iso_from_unix_time(mtime) if mtime != 0 else None,
        extra_fields=extra_fields,
        name=name,
        comment=comment,
        header_crc16=header_crc16,
    )


def _parse_extra_subfields(raw_extra: bytes, cursor: GZByteCursor) -> Tuple[GZExtraSubfield, ...]:
    reader = BinaryReader(raw_extra, big_endian=False)
    subfields = []

    while reader.tell() < len(raw_extra):
        offset = reader.tell()
        available = len(raw_extra) - offset

        if available < EXTRA_SUBFIELD_HEADER_SIZE:
            raise _overrun(offset, EXTRA_SUBFIELD_HEADER_SIZE, raw_extra, cursor)

        identifier, length = reader.read_struct('2sH', 'extra sub-field header')

        if EXTRA_SUBFIELD_HEADER_SIZE + length > available:
            raise _overrun(offset, EXTRA_SUBFIELD_HEADER_SIZE + length, raw_extra, cursor)

        subfields.append(GZExtraSubfield(
            identifier=identifier.decode('latin-1'),
            payload=reader.read_amount(length, 'extra sub-field data'),
        ))

    return tuple(subfields)


def _overrun(offset: int, declared_length: int, raw_extra: bytes, cursor: GZByteCursor) -> GZExtraFieldOverrunError:
    return GZExtraFieldOverrunError(
        offset, declared_length, len(raw_extra) - offset, raw_extra,
        member_index=cursor.member_index, source_name=cursor.name()
    )
