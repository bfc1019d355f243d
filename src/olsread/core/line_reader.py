"""
Line classification for the OLS text container.

Every line of an ``.ols`` file is either an instruction (``;Key: Value``), a
compressed sample (``HEX@DECIMAL``) or noise that readers skip silently.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from typing import NamedTuple, Union

from .models import DataPair

_DATA_PATTERN = re.compile(r"([0-9a-fA-F]+)@([0-9]+)")
_INSTRUCTION_PATTERN = re.compile(r";([^:]+):\s+([^\r\n]+)", re.ASCII)
_TERMINATORS = "\r\n"


class Instruction(NamedTuple):
    key: str
    value: str


class Ignored(NamedTuple):
    text: str


LineKind = Union[Instruction, DataPair, Ignored]


def classify_line(text: str) -> LineKind:
    """Classify a single line (without its terminator).

    Sample lines are tested first; the two patterns cannot both match, since
    an instruction always starts with ``;``.
    """
    match = _DATA_PATTERN.fullmatch(text)
    if match is not None:
        return DataPair(match.group(1), match.group(2))

    match = _INSTRUCTION_PATTERN.fullmatch(text)
    if match is not None:
        return Instruction(match.group(1), match.group(2))

    return Ignored(text)


def iter_lines(stream: Iterable[str]) -> Iterator[LineKind]:
    """Classify each line of ``stream`` in order, stripping line terminators."""
    for raw_line in stream:
        yield classify_line(raw_line.rstrip(_TERMINATORS))


__all__ = [
    "DataPair",
    "Ignored",
    "Instruction",
    "LineKind",
    "classify_line",
    "iter_lines",
]
