"""
Drag session controller for time-shifting clips and tracks.

Orchestrates pointer-down / move / up / cancel:
- click: builds the capture set and the snap index
- drag: re-resolves the whole displacement from the baseline on every move
- release: commits one history entry (resampling clips that changed track)
- cancel: rolls the project back to the last history state
"""
from __future__ import annotations
from typing import TYPE_CHECKING, NamedTuple, Optional

from src.utils.logger import get_logger

from .capture import capture_whole_track, create_list_of_captured_clips
from .config import (
    TIME_SHIFT_CONFIG, CursorKind, DragPhase, PushFlags, RefreshCode, ShiftOutcome, TrackKind
)
from .geometry import clip_at_x, track_position
from .shift_state import DragSessionState
from .slide import do_offset, do_slide_horizontal
from .snapping import SnapManager, find_desired_slide_amount
from .types import AudioActiveGuard, CellRect, DrawLineFunc, HitTestPreview, Pixels
from .vertical import try_slide_vertically

if TYPE_CHECKING:
    from .project import Project
    from .track import Track

logger = get_logger("time_shift")


class PointerEvent(NamedTuple):
    """A pointer event already resolved to the track cell under it."""
    x: Pixels
    track: Optional["Track"] = None
    shift_down: bool = False
    cmd_down: bool = False


class TimeShiftHandle:
    """
    Owns one drag session at a time.

    Handlers never raise for rejected moves; they return a RefreshCode and
    record the reason on `last_outcome`. A finished session leaves `phase`
    at IDLE and stores COMMITTED or ROLLED_BACK on `ended_as`.
    """
    def __init__(
        self,
        project: "Project",
        is_audio_active: Optional[AudioActiveGuard] = None,
        multi_tool_mode: bool = False,
    ):
        self.project = project
        self.is_audio_active = is_audio_active or (lambda: False)
        self.multi_tool_mode = multi_tool_mode
        self.phase = DragPhase.IDLE
        self.state = DragSessionState()
        self.ended_as = DragPhase.IDLE
        self.last_outcome = ShiftOutcome.OK
        self._snap_manager: Optional[SnapManager] = None

    @property
    def view(self):
        return self.project.view

    @property
    def is_active(self) -> bool:
        return self.phase in (DragPhase.CAPTURING, DragPhase.DRAGGING)

    def _record(self, outcome: ShiftOutcome) -> None:
        if outcome is not ShiftOutcome.OK:
            logger.debug("Time shift outcome: %s", outcome.name)
        self.last_outcome = outcome

    def _finish(self, terminal: DragPhase) -> None:
        # The handle is reusable once a session ends; `ended_as` keeps how it ended
        logger.debug("Time shift session %s", terminal.name.lower())
        self.ended_as = terminal
        self.phase = DragPhase.IDLE

    # --- Hover ---

    @staticmethod
    def hit_test(x: Pixels, rect: CellRect) -> bool:
        """True if x is over the grip zone at either border of the cell."""
        cfg = TIME_SHIFT_CONFIG
        adjusted = x + cfg.hotspot_offset
        return (adjusted < rect.x + cfg.drag_handle_width
                or adjusted >= rect.x + rect.width - cfg.drag_handle_width)

    def preview(self) -> HitTestPreview:
        cursor = CursorKind.DISABLED if self.is_audio_active() else CursorKind.SLIDE
        return HitTestPreview(TIME_SHIFT_CONFIG.preview_message, cursor)

    # --- Pointer-down ---

    def click(self, event: PointerEvent, rect: CellRect = CellRect()) -> RefreshCode:
        if self.is_audio_active():
            self._record(ShiftOutcome.GUARD_REJECTED)
            return RefreshCode.CANCELLED

        track = event.track
        if track is None:
            self._record(ShiftOutcome.NO_CAPTURE_TARGET)
            return RefreshCode.CANCELLED

        project = self.project
        view = self.view
        if len(project.undo_manager) == 0:
            # A cancel always needs a state to go back to
            project.push_state("Created project", "Created project")

        state = DragSessionState(captured_track=track, rect=rect)
        click_time = view.position_to_time(event.x, rect.x)
        state.captured_clip_is_selection = track.selected and view.selected_region.contains(click_time)

        if track.kind in (TrackKind.WAVE, TrackKind.NOTE) and not event.shift_down:
            if track.kind is TrackKind.WAVE:
                state.captured_clip = clip_at_x(track, event.x, view, rect.x)
                if state.captured_clip is None:
                    self._record(ShiftOutcome.NO_CAPTURE_TARGET)
                    return RefreshCode.CANCELLED
            create_list_of_captured_clips(state, project, track, click_time)
        else:
            # Shift held, or a label track
            capture_whole_track(state, track)

        state.slide_up_down_only = event.cmd_down and not self.multi_tool_mode
        state.mouse_click_x = event.x
        state.clear_snaps()
        clip = state.captured_clip
        state.snap_prefer_right_edge = (
            clip is not None and abs(click_time - clip.end_time) < abs(click_time - clip.start_time)
        )

        self._snap_manager = SnapManager(
            project.tracks, view, state.captured_clip_array, state.track_exclusions
        )
        self.state = state
        self.phase = DragPhase.CAPTURING
        self._record(ShiftOutcome.OK)
        return RefreshCode.NONE

    # --- Pointer-move ---

    def drag(self, event: PointerEvent) -> RefreshCode:
        if not self.is_active:
            return RefreshCode.NONE
        if self.is_audio_active():
            self.cancel()
            self._record(ShiftOutcome.GUARD_REJECTED)
            return RefreshCode.REFRESH_ALL | RefreshCode.CANCELLED

        state = self.state
        view = self.view
        tracks = self.project.tracks

        track = event.track
        if track is None and state.rect.x <= event.x < state.rect.x + state.rect.width:
            track = state.captured_track
        if track is None:
            return RefreshCode.NONE

        self.phase = DragPhase.DRAGGING
        outcome = ShiftOutcome.OK

        # Everything is recomputed from the baseline position
        do_offset(state, -state.h_slide_amount)
        if state.captured_clip_is_selection:
            view.selected_region.move(-state.h_slide_amount)
        state.h_slide_amount = 0.0

        desired = find_desired_slide_amount(view, state.rect.x, event.x, self._snap_manager, state)

        slid_vertically = False
        if (state.captured_clip is not None
                and track is not state.captured_track
                and track.kind is TrackKind.WAVE
                and track_position(tracks, track) != track_position(tracks, state.captured_track)):
            tolerance = view.pixel_time(event.x) * TIME_SHIFT_CONFIG.insert_tolerance_px
            ok, slide = try_slide_vertically(state, tracks, track, desired, tolerance)
            if ok:
                state.captured_track = self._track_of(state.captured_clip) or track
                state.did_slide_vertically = True
                # New baseline
                state.mouse_click_x = event.x
                desired = slide
                slid_vertically = True
            else:
                outcome = ShiftOutcome.VERTICAL_MOVE_REJECTED

        if desired == 0.0:
            self._record(outcome)
            return RefreshCode.REFRESH_ALL

        state.h_slide_amount = desired
        applied = do_slide_horizontal(state)
        if applied != desired and outcome is ShiftOutcome.OK:
            outcome = ShiftOutcome.OVERLAP_REJECTED

        if state.captured_clip_is_selection:
            view.selected_region.move(state.h_slide_amount)

        if slid_vertically:
            state.h_slide_amount = 0.0

        self._record(outcome)
        return RefreshCode.REFRESH_ALL

    def _track_of(self, clip) -> Optional["Track"]:
        for entry in self.state.captured_clip_array:
            if entry.clip is clip:
                return entry.track
        return None

    # --- Pointer-up ---

    def release(self) -> RefreshCode:
        if not self.is_active:
            return RefreshCode.NONE
        if self.is_audio_active():
            result = self.cancel()
            self._record(ShiftOutcome.GUARD_REJECTED)
            return result

        state = self.state
        result = RefreshCode.NONE

        # Drop the guide lines
        if state.snap_left is not None or state.snap_right is not None:
            state.clear_snaps()
            result |= RefreshCode.REFRESH_ALL

        if not state.did_slide_vertically and state.h_slide_amount == 0.0:
            self._finish(DragPhase.COMMITTED)
            return result

        outcome = ShiftOutcome.OK
        for entry in state.clip_entries():
            if entry.track is not entry.orig_track:
                if entry.clip.samplerate != entry.track.samplerate:
                    outcome = ShiftOutcome.RATE_MISMATCH_ON_COMMIT
                # A moved clip takes the rate of the track it landed on
                entry.clip.resample(entry.track.samplerate)
                entry.clip.mark_changed()

        cfg = TIME_SHIFT_CONFIG
        if state.did_slide_vertically:
            message = cfg.moved_tracks_message
            flags = PushFlags.AUTOSAVE
        else:
            template = cfg.shifted_right_message if state.h_slide_amount > 0 else cfg.shifted_left_message
            message = template.format(abs(state.h_slide_amount))
            flags = PushFlags.CONSOLIDATE

        self.project.push_state(message, cfg.history_short_label, flags)
        logger.info(message)

        self._finish(DragPhase.COMMITTED)
        self._record(outcome)
        return result | RefreshCode.FIX_SCROLLBARS

    # --- Abort ---

    def cancel(self) -> RefreshCode:
        """Discards the session's changes. Does nothing without an active session."""
        if not self.is_active:
            return RefreshCode.NONE
        self.project.rollback_state()
        self.state.clear_snaps()
        self._finish(DragPhase.ROLLED_BACK)
        logger.info("Time shift cancelled")
        return RefreshCode.REFRESH_ALL

    # --- Overlay ---

    def draw_extras(self, draw_line: DrawLineFunc) -> None:
        """Requests snap guide lines for the current session."""
        if self._snap_manager is not None:
            self._snap_manager.draw(draw_line, self.state.snap_left, self.state.snap_right)
