"""Shared dataclasses for decoded OLS acquisitions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, NamedTuple, Optional, Tuple

import numpy as np

NO_TRIGGER = -1
UNKNOWN_LENGTH = -1
ALL_CHANNELS_ENABLED = -1  # 0xffffffff as a signed 32-bit integer
MAX_CHANNELS = 32


class DataPair(NamedTuple):
    """Raw ``HEX@DECIMAL`` sample line, kept as text until decoding."""

    hex_value: str
    timestamp: str


@dataclass
class ParseState:
    """Mutable fields accumulated while scanning one input stream."""

    size: Optional[int] = None
    sample_rate: Optional[int] = None
    channel_count: Optional[int] = None
    enabled_channel_mask: Optional[int] = None
    trigger_position: int = NO_TRIGGER
    absolute_length: int = UNKNOWN_LENGTH
    compressed: bool = True
    data_pairs: List[DataPair] = field(default_factory=list)


@dataclass(frozen=True, eq=False)
class AcquisitionResult:
    """
    Decoded capture: index-aligned sample values and timestamps plus metadata.

    ``values`` holds the channel bits of each sample transition as signed
    32-bit integers, ``timestamps`` the sample index at which each transition
    occurs. Both arrays are read-only.
    """

    values: np.ndarray
    timestamps: np.ndarray
    trigger_position: int
    sample_rate: int
    channel_count: int
    enabled_channel_mask: int = ALL_CHANNELS_ENABLED
    absolute_length: int = UNKNOWN_LENGTH

    def __post_init__(self) -> None:
        values = np.array(self.values, dtype=np.int32)
        timestamps = np.array(self.timestamps, dtype=np.int64)
        if values.shape != timestamps.shape or values.ndim != 1:
            raise ValueError(
                f"values and timestamps must be 1-D and equally long, "
                f"got {values.shape} and {timestamps.shape}"
            )
        if timestamps.size and timestamps.min() < 0:
            raise ValueError("timestamps must be non-negative")
        values.setflags(write=False)
        timestamps.setflags(write=False)
        object.__setattr__(self, "values", values)
        object.__setattr__(self, "timestamps", timestamps)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AcquisitionResult):
            return NotImplemented
        return (
            self._scalars() == other._scalars()
            and np.array_equal(self.values, other.values)
            and np.array_equal(self.timestamps, other.timestamps)
        )

    __hash__ = None  # type: ignore[assignment]

    def _scalars(self) -> Tuple[int, int, int, int, int]:
        return (
            self.trigger_position,
            self.sample_rate,
            self.channel_count,
            self.enabled_channel_mask,
            self.absolute_length,
        )

    @property
    def size(self) -> int:
        return int(self.values.shape[0])

    @property
    def has_trigger_data(self) -> bool:
        return self.trigger_position >= 0

    @property
    def has_timing_data(self) -> bool:
        """State-mode captures carry a negative rate and no timing information."""
        return self.sample_rate >= 0

    @property
    def unsigned_enabled_mask(self) -> int:
        return self.enabled_channel_mask & 0xFFFFFFFF

    @property
    def enabled_channels(self) -> Tuple[int, ...]:
        """Indices of channels that are both present and enabled."""
        mask = self.unsigned_enabled_mask
        return tuple(ch for ch in range(self.channel_count) if mask & (1 << ch))
