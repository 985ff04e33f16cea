from typing import Optional


class GeometryError(ValueError):
    """Raised for a malformed geometry descriptor or an unsupported padding window."""


class XformError(Exception):
    """
    Base class for every unrecoverable per-record failure.
    Context (record index, mate, segment) is attached as the error travels
    up from the resolver/codec to the stream transformer.
    """

    kind = "XformError"

    def __init__(self, message: str, record_index: Optional[int] = None,
                 mate: Optional[int] = None, segment_index: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.record_index = record_index
        self.mate = mate
        self.segment_index = segment_index

    def add_context(self, record_index: Optional[int] = None, mate: Optional[int] = None,
                    segment_index: Optional[int] = None):
        if record_index is not None:
            self.record_index = record_index
        if mate is not None:
            self.mate = mate
        if segment_index is not None:
            self.segment_index = segment_index
        return self

    def __str__(self):
        context = []
        if self.record_index is not None:
            context.append(f"record {self.record_index:,}")
        if self.mate is not None:
            context.append(f"mate {self.mate}")
        if self.segment_index is not None:
            context.append(f"segment {self.segment_index}")
        if context:
            return f"{self.kind} ({', '.join(context)}): {self.message}"
        return f"{self.kind}: {self.message}"


class TruncatedRead(XformError):
    kind = "TruncatedRead"


class GeometryMismatch(XformError):
    kind = "GeometryMismatch"


class AnchorNotFound(XformError):
    kind = "AnchorNotFound"


class DesyncError(XformError):
    kind = "DesyncError"


class LengthOutOfWindow(XformError):
    """Internal invariant violation: a length reached the codec without a padding entry."""

    kind = "LengthOutOfWindow"
