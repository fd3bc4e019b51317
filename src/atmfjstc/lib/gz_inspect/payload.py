"""
Locating the end of the compressed data in a GZip member.

The GZip format does not store the length of the compressed data, so the only way to find where it ends (and the
trailer begins) is to actually decompress it. The inflater may read past the end of the compressed block, so we rely
on the number of bytes it reports as consumed, and then rewind the cursor to land exactly on the trailer.
"""

import zlib

from dataclasses import dataclass
from typing import Tuple

from .cursor import GZByteCursor
from .errors import GZPayloadDecodeError, GZPayloadTruncatedError


DEFAULT_BUFFER_SIZE = 65536


@dataclass(frozen=True)
class LocatedPayload:
    data: bytes
    offset: int
    compressed_size: int


def inflate_raw(cursor: GZByteCursor, buffer_size: int = DEFAULT_BUFFER_SIZE) -> Tuple[bytes, int]:
    """
    Decompresses a raw DEFLATE stream (no zlib/gzip framing) starting at the cursor's current position.

    Args:
        cursor: The cursor to read compressed data from. It will generally be left past the end of the compressed
            data, by up to `buffer_size` bytes.
        buffer_size: The size of the chunks in which compressed data is fed to the inflater.

    Returns:
        A tuple of the decompressed data and the exact number of compressed bytes the DEFLATE stream occupies.

    Raises:
        GZPayloadDecodeError: If the compressed data is corrupt.
        GZPayloadTruncatedError: If the data ends before the DEFLATE stream does.
    """

    if buffer_size < 1:
        raise ValueError(f"buffer_size must be strictly positive! (is: {buffer_size})")

    start_pos = cursor.tell()

    decompressor = zlib.decompressobj(-zlib.MAX_WBITS)

    parts = []
    total_fed = 0

    while not decompressor.eof:
        compressed_data = cursor.read_at_most(buffer_size)
        if len(compressed_data) == 0:
            raise GZPayloadTruncatedError(start_pos, member_index=cursor.member_index, source_name=cursor.name())

        total_fed += len(compressed_data)

        try:
            parts.append(decompressor.decompress(compressed_data))
        except zlib.error as e:
            raise GZPayloadDecodeError(
                start_pos, str(e), member_index=cursor.member_index, source_name=cursor.name()
            ) from e

    return b''.join(parts), total_fed - len(decompressor.unused_data)


def locate_payload(cursor: GZByteCursor, buffer_size: int = DEFAULT_BUFFER_SIZE) -> LocatedPayload:
    """
    Decompresses the payload of a member and leaves the cursor positioned exactly at the start of the trailer.
    """

    offset = cursor.tell()

    cursor.mark()
    data, consumed = inflate_raw(cursor, buffer_size)
    cursor.reset_to_mark()
    cursor.skip(consumed, 'compressed data')

    return LocatedPayload(data=data, offset=offset, compressed_size=consumed)
