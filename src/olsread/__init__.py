"""Reader for OpenBench LogicSniffer (.ols) capture files."""

from .config import ReaderConfig, load_config
from .core import (
    AcquisitionResult,
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
from .dataio import decode, decodes, load_ols

__version__ = "0.1.0"

__all__ = [
    "AcquisitionResult",
    "DecodeError",
    "EmptyDataError",
    "InvalidChannelCountError",
    "InvalidInstructionError",
    "MissingFieldError",
    "NumericDecodeError",
    "ReaderConfig",
    "SizeMismatchError",
    "TextEncodingError",
    "UnsupportedFormatError",
    "decode",
    "decodes",
    "load_config",
    "load_ols",
]
