"""
Magnetic snapping for time-shift drags.

The index holds the edges of everything that stays put during the drag; a moving
edge snaps to the nearest one when it lies within a few pixels of it.
"""
from __future__ import annotations
import bisect
from typing import TYPE_CHECKING, Iterable, Optional

from src.utils.logger import get_logger

from .config import SNAP_CONFIG, TrackKind
from .geometry import ViewInfo, quantize_to_samples
from .shift_state import DragSessionState, TrackClip
from .types import DrawLineFunc, Pixels, Seconds, SnapResults

if TYPE_CHECKING:
    from .track import Track

logger = get_logger("snapping")


class SnapManager:
    """
    Sorted index of stationary edges (clip edges, label/note spans, time zero).

    Candidates are collected once, when the drag starts. Captured clips and
    excluded tracks never contribute, so a group cannot snap against itself.
    """
    def __init__(
        self,
        tracks: Iterable["Track"],
        view: ViewInfo,
        captured: Iterable[TrackClip] = (),
        exclusions: Iterable["Track"] = (),
        pixel_tolerance: int = SNAP_CONFIG.pixel_tolerance,
        snap_to_zero: bool = SNAP_CONFIG.snap_to_zero,
    ):
        self.view = view
        self.pixel_tolerance = pixel_tolerance

        captured = list(captured)
        moving = {entry.clip for entry in captured if entry.clip is not None}
        # Whole-track entries move as a unit too
        excluded = set(exclusions) | {entry.track for entry in captured if entry.clip is None}

        times = [0.0] if snap_to_zero else []
        for track in tracks:
            if track in excluded:
                continue
            if track.supports_clips:
                for clip in track.clips:
                    if clip not in moving:
                        times.extend((clip.start_time, clip.end_time))
            else:
                times.extend((track.start_time, track.end_time))
        self.candidates: list[Seconds] = sorted(set(times))

    def _nearest(self, t: Seconds) -> Optional[Seconds]:
        if not self.candidates:
            return None
        i = bisect.bisect_left(self.candidates, t)
        best = None
        for j in (i - 1, i):
            if 0 <= j < len(self.candidates):
                c = self.candidates[j]
                if best is None or abs(c - t) < abs(best - t):
                    best = c
        return best

    def snap(self, t: Seconds) -> SnapResults:
        """Snaps time t to the nearest candidate within the pixel tolerance."""
        nearest = self._nearest(t)
        if nearest is not None and abs(nearest - t) * self.view.zoom <= self.pixel_tolerance:
            return SnapResults(nearest, self.view.time_to_position(nearest), nearest != t)
        return SnapResults(t, self.view.time_to_position(t), False)

    def draw(self, draw_line: DrawLineFunc, snap_left: Optional[Pixels],
             snap_right: Optional[Pixels]) -> None:
        """Requests a guide line at each active snap position."""
        for x in (snap_left, snap_right):
            if x is not None:
                draw_line(x)


def find_desired_slide_amount(
    view: ViewInfo,
    origin: Pixels,
    x: Pixels,
    snap_manager: Optional[SnapManager],
    state: DragSessionState,
) -> Seconds:
    """
    Raw pointer displacement since the baseline, quantized to the captured
    track's samples and adjusted so at most one captured edge snaps.

    Sets `state.snap_left` / `state.snap_right` (pixel positions) accordingly.
    """
    if state.slide_up_down_only:
        return 0.0

    captured_track = state.captured_track
    desired = view.position_to_time(x) - view.position_to_time(state.mouse_click_x)
    if captured_track.kind is TrackKind.WAVE:
        desired = quantize_to_samples(desired, captured_track.samplerate)

    if snap_manager is None:
        return desired

    if state.captured_clip is not None:
        left = state.captured_clip.start_time + desired
        right = state.captured_clip.end_time + desired
    else:
        left = captured_track.start_time + desired
        right = captured_track.end_time + desired

    new_left = snap_manager.snap(left).out_time
    new_right = snap_manager.snap(right).out_time

    # Only one edge may snap
    if new_left != left and new_right != right:
        if state.snap_prefer_right_edge:
            new_left = left
        else:
            new_right = right

    state.clear_snaps()
    if new_left != left:
        desired += new_left - left
        state.snap_left = view.time_to_position(new_left, origin)
        logger.debug("Left edge snapped to %.6f", new_left)
    elif new_right != right:
        desired += new_right - right
        state.snap_right = view.time_to_position(new_right, origin)
        logger.debug("Right edge snapped to %.6f", new_right)
    return desired
