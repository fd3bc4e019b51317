"""
This package provides a diagnostic decoder for the container structure of GZip files.

Unlike the built-in `gzip` module, the aim here is not to extract the content, but to show everything that is stored
in the file, member by member:

- Multi-member support (i.e. multiple ``.gz`` files concatenated in one, which is allowed by the standard)
- Every field of the fixed header, exactly as encoded, as well as its decoded interpretation
- The seldom used optional fields: EXTRA sub-fields, file name, comment and header CRC
- The trailer CRC and size, recorded as-is (they are deliberately not verified)

The main entry point is `inspect_gz_archive`::

    for member in inspect_gz_archive('path/to/file.gz'):
        print(member.name, member.os, member.decoded_text)

Decoding is permissive: non-standard compression methods, unknown OS codes and reserved flag bits are reported rather
than rejected. Structural errors, however, abort the decoding of the whole archive with a `GZInspectError`.

Note that the GZip format does not record the length of the compressed data, so every member must be fully
decompressed in order to find the next one. The decompressed content of each member is kept in memory.
"""

import logging

from typing import Iterator, Optional, Tuple

from .cursor import GZByteCursor, GZSource
from .errors import GZInspectError, GZEndOfStreamError, GZFormatViolationError, GZBadSignatureError, \
    GZExtraFieldOverrunError, GZStringTooLongError, GZEmptyArchiveError, GZPayloadDecodeError, GZPayloadTruncatedError
from .member import GZMember, GZRawHeader, GZMemberFlags, GZExtraSubfield, GZHostOS, GZCompressionLevelHint
from .parse import parse_member
from .payload import DEFAULT_BUFFER_SIZE


__version__ = '0.1.0'


LOG = logging.getLogger(__name__)


def iter_gz_members(
    source: GZSource, buffer_size: int = DEFAULT_BUFFER_SIZE, string_safety_limit: Optional[int] = None
) -> Iterator[GZMember]:
    """
    Decodes the members of a GZip archive one by one, in the order in which they occur.

    Members must follow each other directly, with no padding in between. Decoding stops once the data is exhausted
    right after a member.

    Args:
        source: Either a path to a file, a bytes-like object with the archive data, or a binary file object. A file
            object is read from its current position and is not closed afterwards.
        buffer_size: The size of the chunks in which compressed data is fed to the inflater.
        string_safety_limit: If not None, the maximum length of the name and comment fields, including the null
            terminator. Longer strings are treated as a format error.

    Raises:
        GZEmptyArchiveError: If there is no data at all.
        GZEndOfStreamError: If the data ends in the middle of a member.
        GZFormatViolationError: If a member is structurally invalid.
        GZPayloadDecodeError: If the compressed data of a member is corrupt.
    """

    with GZByteCursor(source) as cursor:
        if cursor.is_exhausted():
            raise GZEmptyArchiveError(cursor.name())

        member_index = 0

        while True:
            yield parse_member(
                cursor, member_index, buffer_size=buffer_size, string_safety_limit=string_safety_limit
            )

            if cursor.is_exhausted():
                break

            member_index += 1

        LOG.debug("Decoded %d member(s) from %s", member_index + 1, cursor.name() or '<data>')


def inspect_gz_archive(
    source: GZSource, buffer_size: int = DEFAULT_BUFFER_SIZE, string_safety_limit: Optional[int] = None
) -> Tuple[GZMember, ...]:
    """
    Decodes all the members of a GZip archive.

    This is like `iter_gz_members`, except that the decoding completes (or fails) before anything is returned, so no
    partial results are ever seen. See `iter_gz_members` for the arguments and exceptions.

    Returns:
        A tuple of `GZMember` objects, in the order in which they occur in the archive.
    """

    return tuple(iter_gz_members(source, buffer_size=buffer_size, string_safety_limit=string_safety_limit))
