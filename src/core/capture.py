"""
Capture set builder.

Computes the group of clips (and whole tracks) that move together as one rigid
body during a time-shift drag, plus the tracks that must not act as snap targets.
"""
from __future__ import annotations
from typing import TYPE_CHECKING

from src.utils.logger import get_logger

from .config import TrackKind
from .geometry import ViewInfo, find_clip_at_time
from .shift_state import DragSessionState, TrackClip

if TYPE_CHECKING:
    from .project import Project
    from .track import Track

logger = get_logger("capture")


def add_clips_to_captured(state: DragSessionState, track: "Track", t0: float, t1: float) -> None:
    """
    Adds the clips of `track` that intersect [t0, t1].
    A track without clips is added once as a whole-track entry and excluded
    from snapping.
    """
    entries = state.captured_clip_array

    exclude = True
    if track.supports_clips:
        exclude = False
        for clip in track.clips:
            if clip.after_time(t0) or clip.before_time(t1):
                continue
            if not state.has_clip(clip):
                entries.append(TrackClip(track, clip))
    elif not any(entry.track is track for entry in entries):
        # Notes only join when they reach into the window
        if track.kind is TrackKind.NOTE and (track.end_time < t0 or track.start_time > t1):
            return
        entries.append(TrackClip(track))

    if exclude and not state.is_excluded(track):
        state.track_exclusions.append(track)


def add_clips_for_track(state: DragSessionState, view: ViewInfo, track: "Track",
                        within_selection: bool) -> None:
    if within_selection:
        region = view.selected_region
        add_clips_to_captured(state, track, region.t0, region.t1)
    else:
        add_clips_to_captured(state, track, track.start_time, track.end_time)


def capture_whole_track(state: DragSessionState, track: "Track") -> None:
    """Captures a track (and its stereo partner) to move as a whole."""
    state.captured_clip = None
    state.captured_clip_array.clear()
    state.track_exclusions.clear()
    for t in (track, track.partner):
        if t is None:
            continue
        state.captured_clip_array.append(TrackClip(t))
        state.track_exclusions.append(t)


def create_list_of_captured_clips(state: DragSessionState, project: "Project",
                                  captured_track: "Track", click_time: float) -> None:
    """
    Builds the capture set around `state.captured_clip` (or the whole captured
    track when it holds no clips), closed under sync-lock grouping.
    """
    state.captured_clip_array.clear()
    state.track_exclusions.clear()
    view = project.view

    if state.captured_clip_is_selection:
        for track in project.tracks:
            if track.selected:
                add_clips_for_track(state, view, track, True)
    else:
        state.captured_clip_array.append(TrackClip(captured_track, state.captured_clip))

        partner = captured_track.partner
        if state.captured_clip is not None and partner is not None:
            clip = find_clip_at_time(partner, click_time)
            if clip is not None:
                state.captured_clip_array.append(TrackClip(partner, clip))

    if project.sync_locked:
        _expand_sync_locked(state, project)

    logger.debug("Captured %d entries (%d excluded tracks)",
                 len(state.captured_clip_array), len(state.track_exclusions))


def _expand_sync_locked(state: DragSessionState, project: "Project") -> None:
    # The array grows while it is walked, so entries added here are expanded too.
    # Duplicates are never added, which bounds the size.
    entries = state.captured_clip_array
    limit = sum(len(t.clips) for t in project.tracks) + len(project.tracks)

    i = 0
    while i < len(entries):
        if i >= limit:
            logger.warning("Sync-lock expansion stopped after %d entries", limit)
            break
        entry = entries[i]
        if entry.clip is not None:
            for track in project.sync_lock_group(entry.track):
                add_clips_to_captured(state, track, entry.clip.start_time, entry.clip.end_time)
        if entry.track.kind is TrackKind.NOTE:
            source = entry.track
            for track in project.sync_lock_group(source):
                add_clips_to_captured(state, track, source.start_time, source.end_time)
        i += 1
