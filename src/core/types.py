"""
Type definitions for the ClipShift core module.
Provides type aliases and small result records shared by the time-shift components.
"""
from typing import Any, Callable, NamedTuple, Optional
import numpy as np
from numpy.typing import NDArray

from .config import CursorKind

# Audio data types
AudioArray = NDArray[np.float32]  # Shape: (samples,) or (samples, channels)

# Timeline units
Seconds = float
Pixels = float

# Callback types
AudioActiveGuard = Callable[[], bool]
DrawLineFunc = Callable[[Pixels], None]  # draws a vertical guide at x

# Opaque snapshot stored by the undo manager
ProjectSnapshot = Any


class CellRect(NamedTuple):
    """Pixel rectangle of the track cell that received the pointer-down."""
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0


class HitTestPreview(NamedTuple):
    """Tooltip message and cursor shape for hovering over a draggable track."""
    message: str
    cursor: CursorKind


class SnapResults:
    """Result from a snap query."""
    __slots__ = ('out_time', 'out_coord', 'snapped')

    def __init__(
        self,
        out_time: Seconds,
        out_coord: Optional[Pixels] = None,
        snapped: bool = False
    ):
        self.out_time = out_time
        self.out_coord = out_coord
        self.snapped = snapped

    def __repr__(self) -> str:
        return f"SnapResults(out_time={self.out_time!r}, snapped={self.snapped})"
