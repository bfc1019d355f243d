"""Exceptions raised while decoding OLS capture files."""

from __future__ import annotations

from typing import Optional

from .models import MAX_CHANNELS

_PREVIEW_LENGTH = 40


def _preview(text: str) -> str:
    if len(text) <= _PREVIEW_LENGTH:
        return repr(text)
    return f"{text[:_PREVIEW_LENGTH]!r}... ({len(text)} chars)"


class DecodeError(ValueError):
    """Base class for every terminal failure of a single decode call."""


class EmptyDataError(DecodeError):
    def __init__(self) -> None:
        super().__init__("Data file does not contain any sample data!")


class UnsupportedFormatError(DecodeError):
    def __init__(self) -> None:
        super().__init__(
            "Uncompressed data file found! Uncompressed OLS files are not supported."
        )


class SizeMismatchError(DecodeError):
    def __init__(self, declared: int, observed: int) -> None:
        self.declared = declared
        self.observed = observed
        super().__init__(
            "Data file is corrupt?! Data size does not match sample count! "
            f"(declared {declared}, found {observed})"
        )


class MissingFieldError(DecodeError):
    def __init__(self, field_name: str, description: str) -> None:
        self.field_name = field_name
        super().__init__(f"Data file is corrupt?! {description} is not provided!")


class InvalidChannelCountError(DecodeError):
    def __init__(self, channel_count: Optional[int], max_channels: int = MAX_CHANNELS) -> None:
        self.channel_count = channel_count
        self.max_channels = max_channels
        if channel_count is None:
            detail = "Channel count is not provided!"
        else:
            detail = f"Channel count {channel_count} is outside 1..{max_channels}!"
        super().__init__(f"Data file is corrupt?! {detail}")


class InvalidInstructionError(DecodeError):
    """An instruction line carried a value that does not parse for its key."""

    def __init__(self, key: str, value: str, reason: str) -> None:
        self.key = key
        self.value = value
        super().__init__(
            f"Invalid value for instruction '{key}': {_preview(value)} ({reason})"
        )


class NumericDecodeError(DecodeError):
    """A sample line could not be converted to a (value, timestamp) entry."""

    def __init__(self, index: int, raw: str, reason: str) -> None:
        self.index = index
        self.raw = raw
        super().__init__(
            f"Invalid data encountered at sample {index}: {_preview(raw)} ({reason})"
        )


class TextEncodingError(DecodeError):
    """The file bytes are not valid in the configured text encoding."""

    def __init__(self, encoding: str, offset: int, reason: str) -> None:
        self.encoding = encoding
        self.offset = offset
        super().__init__(
            f"Data file is not valid {encoding} text at byte {offset} ({reason})"
        )


__all__ = [
    "DecodeError",
    "EmptyDataError",
    "UnsupportedFormatError",
    "SizeMismatchError",
    "MissingFieldError",
    "InvalidChannelCountError",
    "InvalidInstructionError",
    "NumericDecodeError",
    "TextEncodingError",
]
