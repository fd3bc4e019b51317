"""
This module contains the `GZByteCursor` class, a forward-only reader over the bytes of a GZip archive that supports
exact reads, null-terminated strings and a single mark/rewind checkpoint.
"""

import logging

from typing import Union, BinaryIO, Optional
from io import BytesIO, IOBase
from os import SEEK_SET, fspath

from atmfjstc.lib.binary_utils.BinaryReader import BinaryReader, BinaryReaderMissingDataError, \
    BinaryReaderReadPastEndError, BinaryReaderNullStrReadPastEndError, BinaryReaderNullStrTooLongError
from atmfjstc.lib.file_utils import PathType

from .errors import GZEndOfStreamError, GZStringTooLongError


LOG = logging.getLogger(__name__)


GZSource = Union[PathType, bytes, bytearray, memoryview, BinaryIO]


class GZByteCursor:
    """
    A bounded, forward-only cursor over a GZip archive.

    All reads either return exactly what was asked for, or raise a `GZEndOfStreamError` naming the field that was
    being read. Partial results are never returned, except by `read_at_most`, which exists for feeding decompressors.

    The cursor allows returning to a previously marked position (see `mark` and `reset_to_mark`). The re-read window is
    unbounded: seekable inputs are simply seeked, while non-seekable inputs are read into memory in their entirety
    when the cursor is created.

    Attributes:
        member_index: The index of the member currently being decoded. It is attached to any errors raised by the
            cursor, and is maintained by the member parser.
    """

    member_index: Optional[int] = None

    _reader: BinaryReader
    _fileobj: BinaryIO
    _fileobj_owned: bool = False
    _source_name: Optional[str] = None
    _mark: Optional[int] = None

    def __init__(self, source: GZSource):
        """
        Creates a cursor over a GZip archive.

        Args:
            source: Either a path to a file, a bytes-like object with the archive data, or a binary file object. File
                objects are read from their current position and are not closed by the cursor; files opened from a
                path are closed by `close`.
        """

        if isinstance(source, (bytes, bytearray, memoryview)):
            self._fileobj = BytesIO(bytes(source))
        elif isinstance(source, IOBase):
            self._fileobj = source
            self._source_name = _name_of(source)

            if not source.seekable():
                LOG.debug("Source %s is not seekable, buffering it in memory", self._source_name or '<stream>')
                self._fileobj = BytesIO(source.read())
        else:
            self._fileobj = open(fspath(source), 'rb')
            self._fileobj_owned = True
            self._source_name = _name_of(self._fileobj)

        self._reader = BinaryReader(self._fileobj, big_endian=False)

    def name(self) -> Optional[str]:
        return self._source_name

    def tell(self) -> int:
        return self._reader.tell()

    def is_exhausted(self) -> bool:
        """
        Checks whether there is no more data from which to begin a new member.
        """
        return self._reader.bytes_remaining() == 0

    def read_exact(self, n_bytes: int, meaning: str) -> bytes:
        """
        Reads exactly `n_bytes` from the archive.

        Args:
            n_bytes: The number of bytes to read.
            meaning: The name of the field being read (e.g. "fixed header"), used in error messages.

        Raises:
            GZEndOfStreamError: If fewer than `n_bytes` remain.
        """

        position = self.tell()

        try:
            return self._reader.read_amount(n_bytes, meaning)
        except (BinaryReaderMissingDataError, BinaryReaderReadPastEndError) as e:
            raise self._end_of_stream(position, meaning) from e

    def read_uint(self, n_bytes: int, meaning: str) -> int:
        return int.from_bytes(self.read_exact(n_bytes, meaning), byteorder='little', signed=False)

    def read_until_zero(self, meaning: str, safety_limit: Optional[int] = None) -> str:
        """
        Reads a null-terminated string and decodes it as LATIN-1, i.e. one character per byte.

        The null terminator is consumed but not included in the result.

        Args:
            meaning: The name of the field being read (e.g. "name"), used in error messages.
            safety_limit: If not None, the maximum length of the string, including the terminator.

        Raises:
            GZEndOfStreamError: If the data ends before the terminator is found.
            GZStringTooLongError: If the string exceeds `safety_limit`.
        """

        position = self.tell()

        try:
            data = self._reader.read_null_terminated_bytes(meaning, safety_limit=safety_limit)
        except (BinaryReaderMissingDataError, BinaryReaderNullStrReadPastEndError) as e:
            raise self._end_of_stream(position, meaning) from e
        except BinaryReaderNullStrTooLongError as e:
            raise GZStringTooLongError(
                position, meaning, safety_limit, member_index=self.member_index, source_name=self._source_name
            ) from e

        if (safety_limit is not None) and (len(data) + 1 > safety_limit):
            raise GZStringTooLongError(
                position, meaning, safety_limit, member_index=self.member_index, source_name=self._source_name
            )

        return data.decode('latin-1')

    def read_at_most(self, n_bytes: int) -> bytes:
        """
        Reads up to `n_bytes`, returning fewer only if the data is exhausted. Never raises an end-of-stream error.
        """
        return self._reader.read_at_most(n_bytes)

    def skip(self, n_bytes: int, meaning: str):
        """
        Advances over exactly `n_bytes` without returning them.

        Raises:
            GZEndOfStreamError: If fewer than `n_bytes` remain.
        """

        position = self.tell()

        try:
            self._reader.skip_bytes(n_bytes, meaning)
        except (BinaryReaderMissingDataError, BinaryReaderReadPastEndError) as e:
            raise self._end_of_stream(position, meaning) from e

    def mark(self):
        """
        Records the current position so that it can be returned to by `reset_to_mark`.
        """
        self._mark = self.tell()

    def reset_to_mark(self):
        """
        Returns to the position recorded by the last `mark` call. The mark is consumed.
        """

        if self._mark is None:
            raise ValueError("Cannot reset the cursor, no position has been marked")

        self._reader.seek(self._mark, SEEK_SET)
        self._mark = None

    def close(self):
        """
        Closes the underlying file, if it was opened by the cursor itself.
        """

        if self._fileobj_owned and not self._fileobj.closed:
            self._fileobj.close()

    def __enter__(self) -> 'GZByteCursor':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def _end_of_stream(self, position: int, meaning: str) -> GZEndOfStreamError:
        return GZEndOfStreamError(position, meaning, member_index=self.member_index, source_name=self._source_name)


def _name_of(fileobj: IOBase) -> Optional[str]:
    name = getattr(fileobj, 'name', None)

    if (name is None) or isinstance(name, int) or (name in ('', b'')):
        return None

    return name.decode('utf-8', errors='replace') if isinstance(name, bytes) else str(name)
