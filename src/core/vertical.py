"""
Vertical move validator.

Decides where each captured clip would land when the pointer crosses audio-track
rows and checks, with the clips actually lifted out of their tracks, that they fit.
"""
from __future__ import annotations
from typing import TYPE_CHECKING, Sequence

from src.utils.logger import get_logger

from .config import Channel
from .geometry import nth_audio_track, track_position
from .shift_state import DragSessionState, TrackClip

if TYPE_CHECKING:
    from .track import Track

logger = get_logger("vertical")


class TemporaryClipRemover:
    """
    Lifts every captured clip out of its track for the duration of a `with` block.

    On exit each clip goes into its entry's `dst_track`, which becomes the entry's
    track. After `fail()`, or when the block raises, clips go back where they came from.
    """
    def __init__(self, state: DragSessionState):
        self.state = state

    def __enter__(self) -> "TemporaryClipRemover":
        removed: list[TrackClip] = []
        try:
            for entry in self.state.clip_entries():
                entry.holder = entry.track.remove_clip(entry.clip)
                removed.append(entry)
        except Exception:
            for entry in removed:
                entry.track.add_clip(entry.holder)
                entry.holder = None
            raise
        return self

    def fail(self) -> None:
        for entry in self.state.clip_entries():
            entry.dst_track = entry.track

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None:
            self.fail()
        for entry in self.state.clip_entries():
            if entry.holder is None:
                continue
            entry.dst_track.add_clip(entry.holder)
            entry.holder = None
            entry.track = entry.dst_track
        return False


def _reset_destinations(state: DragSessionState) -> None:
    for entry in state.clip_entries():
        entry.dst_track = entry.track


def find_destination_tracks(state: DragSessionState, tracks: Sequence["Track"],
                            pointer_track: "Track") -> bool:
    """
    Assigns `dst_track` for every clip entry, shifted by the pointer's row offset.

    Stereo clips only land on the same channel of a stereo track, mono clips on
    mono tracks. On any mismatch nothing is assigned and False is returned.
    """
    diff = track_position(tracks, pointer_track) - track_position(tracks, state.captured_track)

    for entry in state.clip_entries():
        src = entry.track
        dst = nth_audio_track(tracks, diff + track_position(tracks, src))
        if dst is not None and src.is_stereo and src.channel is Channel.RIGHT:
            dst = dst.partner

        ok = (dst is not None
              and src.is_stereo == dst.is_stereo
              and (not src.is_stereo or src.channel is dst.channel))
        if not ok:
            logger.debug("No compatible destination for %r from %r", entry.clip, src)
            _reset_destinations(state)
            return False
        entry.dst_track = dst
    return True


def _check_insert(entries: list[TrackClip], slide: float, tolerance: float) -> tuple[bool, float]:
    for entry in entries:
        ok, slide, tolerance = entry.dst_track.can_insert_clip(entry.clip, slide, tolerance)
        if not ok:
            return False, slide
    return True, slide


def try_slide_vertically(state: DragSessionState, tracks: Sequence["Track"],
                         pointer_track: "Track", desired: float,
                         tolerance: float) -> tuple[bool, float]:
    """
    Moves the captured clips to the rows under the pointer if they all fit.

    The fit is tested first allowing a nudge of up to `tolerance` seconds, then
    again with no tolerance at the nudged delta. Clips are not offset here.

    Returns:
        (ok, slide): on success the (possibly nudged) delta still to apply; on
        failure every clip is back on its own track and `desired` is returned.
    """
    if not find_destination_tracks(state, tracks, pointer_track):
        return False, desired

    with TemporaryClipRemover(state) as remover:
        entries = state.clip_entries()
        ok, slide = _check_insert(entries, desired, tolerance)
        if ok:
            ok, slide = _check_insert(entries, slide, 0.0)
        if not ok:
            logger.debug("Clips do not fit on the destination tracks")
            remover.fail()
            return False, desired
    return True, slide
