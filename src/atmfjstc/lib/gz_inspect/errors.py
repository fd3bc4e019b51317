from typing import Optional


class GZInspectError(Exception):
    """
    Base class for all exceptions raised while inspecting a GZip archive.

    All errors are fatal to the decoding of the whole archive; no attempt is made to resume after a bad member.

    Attributes:
        member_index: The 0-based index of the member being decoded when the error occurred, if known
        source_name: The name of the file being inspected, if available
    """

    member_index: Optional[int] = None
    source_name: Optional[str] = None

    def __init__(self, message: str, member_index: Optional[int] = None, source_name: Optional[str] = None):
        self.member_index = member_index
        self.source_name = source_name

        context = []
        if source_name is not None:
            context.append(f"'{source_name}'")
        if member_index is not None:
            context.append(f"member #{member_index}")

        super().__init__(f"In {', '.join(context)}: {message}" if len(context) > 0 else message)


class GZEndOfStreamError(GZInspectError):
    """
    Raised when the data ends before a complete field could be read.
    """

    position: int
    field: str

    def __init__(
        self, position: int, field: str, member_index: Optional[int] = None, source_name: Optional[str] = None
    ):
        self.position = position
        self.field = field

        super().__init__(
            f"At position {position}, data ends while reading {field}",
            member_index=member_index, source_name=source_name
        )


class GZFormatViolationError(GZInspectError):
    """
    Base class for errors signalling that a structural invariant of the format is broken.
    """


class GZBadSignatureError(GZFormatViolationError):
    position: int
    found: bytes

    def __init__(
        self, position: int, found: bytes, member_index: Optional[int] = None, source_name: Optional[str] = None
    ):
        self.position = position
        self.found = found

        super().__init__(
            f"At position {position}, expected GZip signature 0x1f8b, but found 0x{found.hex()}",
            member_index=member_index, source_name=source_name
        )


class GZExtraFieldOverrunError(GZFormatViolationError):
    """
    Raised when a sub-field in the EXTRA block declares more data than the block actually holds.

    Attributes:
        offset: The offset of the offending sub-field within the EXTRA block
        declared_length: The number of bytes the sub-field (header included) requires
        available_length: The number of bytes left in the EXTRA block at that offset
        raw_extra: The entire raw EXTRA block
    """

    offset: int
    declared_length: int
    available_length: int
    raw_extra: bytes

    def __init__(
        self, offset: int, declared_length: int, available_length: int, raw_extra: bytes,
        member_index: Optional[int] = None, source_name: Optional[str] = None
    ):
        self.offset = offset
        self.declared_length = declared_length
        self.available_length = available_length
        self.raw_extra = raw_extra

        super().__init__(
            f"Extra sub-field at offset {offset} needs {declared_length} bytes, but only {available_length} remain "
            f"in the {len(raw_extra)}-byte extra field",
            member_index=member_index, source_name=source_name
        )


class GZStringTooLongError(GZFormatViolationError):
    position: int
    field: str
    max_length: int

    def __init__(
        self, position: int, field: str, max_length: int,
        member_index: Optional[int] = None, source_name: Optional[str] = None
    ):
        self.position = position
        self.field = field
        self.max_length = max_length

        super().__init__(
            f"At position {position}, {field} exceeds the maximum length of {max_length}",
            member_index=member_index, source_name=source_name
        )


class GZEmptyArchiveError(GZFormatViolationError):
    def __init__(self, source_name: Optional[str] = None):
        super().__init__("The archive is empty, expected at least one member", source_name=source_name)


class GZPayloadDecodeError(GZInspectError):
    """
    Raised when the compressed data of a member cannot be inflated.

    The underlying `zlib.error`, if any, is available as the ``__cause__``.
    """

    position: int

    def __init__(
        self, position: int, reason: str, member_index: Optional[int] = None, source_name: Optional[str] = None
    ):
        self.position = position

        super().__init__(
            f"Compressed data starting at position {position} could not be decoded: {reason}",
            member_index=member_index, source_name=source_name
        )


class GZPayloadTruncatedError(GZPayloadDecodeError, GZEndOfStreamError):
    """
    Raised when the data ends in the middle of a compressed block.

    This is both a payload decoding failure and an end-of-stream condition, and can be caught as either.
    """

    def __init__(self, position: int, member_index: Optional[int] = None, source_name: Optional[str] = None):
        self.position = position
        self.field = 'compressed data'

        GZInspectError.__init__(
            self,
            f"Data ends in the middle of the compressed block starting at position {position}",
            member_index=member_index, source_name=source_name
        )
