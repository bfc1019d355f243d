"""Decode OLS capture files into :class:`AcquisitionResult` objects."""

from __future__ import annotations

import io
import logging
import re
from pathlib import Path
from typing import Callable, Dict, Iterable, Optional, Tuple

import numpy as np

from ..config.runtime import ReaderConfig
from ..core.errors import (
    EmptyDataError,
    InvalidChannelCountError,
    InvalidInstructionError,
    MissingFieldError,
    NumericDecodeError,
    SizeMismatchError,
    TextEncodingError,
    UnsupportedFormatError,
)
from ..core.line_reader import DataPair, Ignored, Instruction, iter_lines
from ..core.models import ALL_CHANNELS_ENABLED, AcquisitionResult, ParseState
from ..tools.debug import time_block

logger = logging.getLogger(__name__)

INT32_MIN, INT32_MAX = -(1 << 31), (1 << 31) - 1
INT64_MIN, INT64_MAX = -(1 << 63), (1 << 63) - 1
TIMESTAMP_MASK = INT64_MAX

_DECIMAL_PATTERN = re.compile(r"[+-]?[0-9]+")
INT64_DECIMAL_DIGITS = len(str(INT64_MAX))
INT64_HEX_DIGITS = 16


# --------------------------------------------------------------------------- # numbers
def _strip_leading_zeros(text: str) -> str:
    """Drop redundant leading zeros, keeping the sign and at least one digit."""
    sign = text[:1] if text[:1] in ("+", "-") else ""
    return sign + (text[len(sign):].lstrip("0") or "0")


def _digit_count(text: str) -> int:
    return len(text.lstrip("+-"))


def _parse_decimal(key: str, value: str, low: int, high: int) -> int:
    if _DECIMAL_PATTERN.fullmatch(value) is None:
        raise InvalidInstructionError(key, value, "not a decimal integer")
    digits = _strip_leading_zeros(value)
    if _digit_count(digits) > INT64_DECIMAL_DIGITS:
        raise InvalidInstructionError(key, value, f"outside {low}..{high}")
    number = int(digits)
    if not low <= number <= high:
        raise InvalidInstructionError(key, value, f"outside {low}..{high}")
    return number


def _parse_int32(key: str, value: str) -> int:
    return _parse_decimal(key, value, INT32_MIN, INT32_MAX)


def _parse_int64(key: str, value: str) -> int:
    return _parse_decimal(key, value, INT64_MIN, INT64_MAX)


def _parse_bool(value: str) -> bool:
    return value.lower() == "true"


def _narrow_to_int32(number: int) -> int:
    """Keep the low 32 bits of ``number`` as a two's complement integer."""
    number &= 0xFFFFFFFF
    return number - (1 << 32) if number > INT32_MAX else number


def _decode_pair(index: int, pair: DataPair) -> Tuple[int, int]:
    try:
        hex_digits = _strip_leading_zeros(pair.hex_value)
        if _digit_count(hex_digits) > INT64_HEX_DIGITS:
            raise OverflowError(f"hex value exceeds {INT64_MAX:#x}")
        value = int(hex_digits, 16)
        if value > INT64_MAX:
            raise OverflowError(f"hex value exceeds {INT64_MAX:#x}")
        timestamp_digits = _strip_leading_zeros(pair.timestamp)
        if _digit_count(timestamp_digits) > INT64_DECIMAL_DIGITS:
            raise OverflowError(f"timestamp exceeds {INT64_MAX}")
        timestamp = int(timestamp_digits, 10)
        if timestamp > INT64_MAX:
            raise OverflowError(f"timestamp exceeds {INT64_MAX}")
    except (ValueError, OverflowError) as exc:
        raw = f"{pair.hex_value}@{pair.timestamp}"
        raise NumericDecodeError(index, raw, str(exc)) from exc
    return _narrow_to_int32(value), timestamp & TIMESTAMP_MASK


# --------------------------------------------------------------------------- # instructions
def _set_size(state: ParseState, key: str, value: str) -> None:
    size = _parse_int32(key, value)
    # Older writers emitted "-1" when the size was unknown.
    state.size = size if size >= 0 else None


def _set_rate(state: ParseState, key: str, value: str) -> None:
    state.sample_rate = _parse_int32(key, value)


def _set_channels(state: ParseState, key: str, value: str) -> None:
    state.channel_count = _parse_int32(key, value)


def _set_trigger_position(state: ParseState, key: str, value: str) -> None:
    state.trigger_position = _parse_int64(key, value)


def _set_enabled_channels(state: ParseState, key: str, value: str) -> None:
    state.enabled_channel_mask = _parse_int32(key, value)


def _set_compressed(state: ParseState, key: str, value: str) -> None:
    state.compressed = _parse_bool(value)


def _set_absolute_length(state: ParseState, key: str, value: str) -> None:
    state.absolute_length = _parse_int64(key, value)


def _ignore(state: ParseState, key: str, value: str) -> None:
    logger.debug("Ignoring legacy instruction %s=%r", key, value)


InstructionHandler = Callable[[ParseState, str, str], None]

INSTRUCTION_HANDLERS: Dict[str, InstructionHandler] = {
    "Size": _set_size,
    "Rate": _set_rate,
    "Channels": _set_channels,
    "TriggerPosition": _set_trigger_position,
    "EnabledChannels": _set_enabled_channels,
    "CursorEnabled": _ignore,
    "Compressed": _set_compressed,
    "AbsoluteLength": _set_absolute_length,
}


def apply_instruction(state: ParseState, instruction: Instruction) -> None:
    """Update ``state`` from one instruction line; unknown keys are ignored."""
    key, value = instruction
    handler = INSTRUCTION_HANDLERS.get(key)
    if handler is None:
        if key.startswith("Cursor"):
            handler = _ignore
        else:
            logger.debug("Skipping unknown instruction %s=%r", key, value)
            return
    handler(state, key, value)


# --------------------------------------------------------------------------- # scan/validate
def scan(stream: Iterable[str], config: Optional[ReaderConfig] = None) -> ParseState:
    """Consume ``stream`` completely and return the accumulated state."""
    cfg = config or ReaderConfig()
    state = ParseState()
    for line in iter_lines(stream):
        if isinstance(line, DataPair):
            state.data_pairs.append(line)
        elif isinstance(line, Instruction):
            apply_instruction(state, line)
        elif cfg.log_ignored_lines and isinstance(line, Ignored):
            logger.debug("Ignoring unrecognized line: %r", line.text)
    return state


def validate(state: ParseState, config: Optional[ReaderConfig] = None) -> None:
    """
    Check the scanned fields for consistency, filling in defaults.

    Checks run in a fixed order so the first violated rule is always the one
    reported.
    """
    cfg = (config or ReaderConfig()).sanitized()
    observed = len(state.data_pairs)

    if observed == 0:
        raise EmptyDataError()
    if not state.compressed:
        raise UnsupportedFormatError()
    if state.size is None:
        state.size = observed
    if state.size != observed:
        raise SizeMismatchError(state.size, observed)
    if state.sample_rate is None:
        raise MissingFieldError("Rate", "Sample rate")
    channels = state.channel_count
    if channels is None or not 1 <= channels <= cfg.max_channels:
        raise InvalidChannelCountError(channels, cfg.max_channels)
    if state.enabled_channel_mask is None:
        state.enabled_channel_mask = ALL_CHANNELS_ENABLED


def build_result(state: ParseState) -> AcquisitionResult:
    """Decode the collected sample pairs of a validated ``state``."""
    size = state.size if state.size is not None else len(state.data_pairs)
    values = np.empty(size, dtype=np.int32)
    timestamps = np.empty(size, dtype=np.int64)
    for index in range(size):
        values[index], timestamps[index] = _decode_pair(index, state.data_pairs[index])

    return AcquisitionResult(
        values=values,
        timestamps=timestamps,
        trigger_position=state.trigger_position,
        sample_rate=state.sample_rate,
        channel_count=state.channel_count,
        enabled_channel_mask=state.enabled_channel_mask,
        absolute_length=state.absolute_length,
    )


# --------------------------------------------------------------------------- # public API
def decode(stream: Iterable[str], *, config: Optional[ReaderConfig] = None) -> AcquisitionResult:
    """
    Decode an OLS capture from a line-oriented text stream.

    Parameters
    ----------
    stream:
        Any iterable of text lines, e.g. an open file or :class:`io.StringIO`.
        Read errors raised by the stream propagate unchanged.
    config:
        Optional reader settings; defaults to :class:`ReaderConfig`.

    Raises
    ------
    DecodeError
        One of its subclasses when the content is not a valid capture.
    """
    with time_block("olsread.decode"):
        state = scan(stream, config)
        validate(state, config)
        result = build_result(state)

    logger.info(
        "Decoded %d samples (%d channels @ %d Hz)",
        result.size,
        result.channel_count,
        result.sample_rate,
    )
    return result


def decodes(text: str, *, config: Optional[ReaderConfig] = None) -> AcquisitionResult:
    """Decode an OLS capture held in a string."""
    return decode(io.StringIO(text), config=config)


def load_ols(path: Path | str, *, config: Optional[ReaderConfig] = None) -> AcquisitionResult:
    """Open ``path`` with the configured encoding and decode it."""
    cfg = config or ReaderConfig()
    path = Path(path)
    try:
        with path.open("r", encoding=cfg.encoding, errors=cfg.errors, newline="") as fh:
            return decode(fh, config=cfg)
    except UnicodeDecodeError as exc:
        raise TextEncodingError(cfg.encoding, exc.start, exc.reason) from exc


__all__ = [
    "INSTRUCTION_HANDLERS",
    "apply_instruction",
    "build_result",
    "decode",
    "decodes",
    "load_ols",
    "scan",
    "validate",
]
