"""
Per-drag session records: the capture set entries and the mutable state a
time-shift drag carries from pointer-down to pointer-up.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from .types import CellRect, Pixels

if TYPE_CHECKING:
    from .clip import AudioClip
    from .track import Track


@dataclass(eq=False)
class TrackClip:
    """
    One member of the capture set.

    `clip is None` means the whole track moves. `holder` owns the clip while it is
    detached from any track during vertical validation.
    """
    track: "Track"
    clip: Optional["AudioClip"] = None
    orig_track: Optional["Track"] = None
    dst_track: Optional["Track"] = None
    holder: Optional["AudioClip"] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if self.orig_track is None:
            self.orig_track = self.track
        if self.dst_track is None:
            self.dst_track = self.track


@dataclass
class DragSessionState:
    """Everything one drag session reads and mutates. Built fresh at pointer-down."""
    captured_track: Optional["Track"] = None
    captured_clip: Optional["AudioClip"] = None
    captured_clip_is_selection: bool = False
    captured_clip_array: list[TrackClip] = field(default_factory=list)
    track_exclusions: list["Track"] = field(default_factory=list)

    h_slide_amount: float = 0.0 # Cumulative applied delta since the last baseline
    mouse_click_x: Pixels = 0.0
    snap_left: Optional[Pixels] = None
    snap_right: Optional[Pixels] = None
    snap_prefer_right_edge: bool = False
    did_slide_vertically: bool = False
    slide_up_down_only: bool = False
    rect: CellRect = field(default_factory=CellRect)

    def clip_entries(self) -> list[TrackClip]:
        return [entry for entry in self.captured_clip_array if entry.clip is not None]

    def moving_clips(self) -> list["AudioClip"]:
        return [entry.clip for entry in self.captured_clip_array if entry.clip is not None]

    def has_clip(self, clip: "AudioClip") -> bool:
        return any(entry.clip is clip for entry in self.captured_clip_array)

    def is_excluded(self, track: "Track") -> bool:
        return any(t is track for t in self.track_exclusions)

    def clear_snaps(self) -> None:
        self.snap_left = None
        self.snap_right = None
