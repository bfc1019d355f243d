"""Core data model, error taxonomy and line classification for OLS files."""

from .errors import (
    DecodeError,
    EmptyDataError,
    InvalidChannelCountError,
    InvalidInstructionError,
    MissingFieldError,
    NumericDecodeError,
    SizeMismatchError,
    TextEncodingError,
    UnsupportedFormatError,
)
from .line_reader import DataPair, Ignored, Instruction, classify_line, iter_lines
from .models import AcquisitionResult, ParseState

__all__ = [
    "AcquisitionResult",
    "DataPair",
    "DecodeError",
    "EmptyDataError",
    "Ignored",
    "Instruction",
    "InvalidChannelCountError",
    "InvalidInstructionError",
    "MissingFieldError",
    "NumericDecodeError",
    "ParseState",
    "SizeMismatchError",
    "TextEncodingError",
    "UnsupportedFormatError",
    "classify_line",
    "iter_lines",
]
