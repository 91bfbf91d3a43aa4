"""
Tests for the drag time-shift controller.

The conftest projects draw 100 pixels per second from t=0, so pointer x=300 is 3.0s.
"""
import numpy as np
import pytest

from src.core.clip import AudioClip
from src.core.config import (
    TIME_SHIFT_CONFIG, CursorKind, DragPhase, RefreshCode, ShiftOutcome
)
from src.core.project import Project
from src.core.time_shift import PointerEvent, TimeShiftHandle
from src.core.track import Track
from src.core.types import CellRect


class AudioFlag:
    """Switchable stand-in for the playback engine's is-active check."""
    def __init__(self):
        self.active = False

    def __call__(self):
        return self.active


@pytest.fixture
def audio_flag():
    return AudioFlag()


def _handle(project, audio_flag=None, **kwargs):
    return TimeShiftHandle(project, is_audio_active=audio_flag, **kwargs)


def _drag(handle, start_x, end_x, track, end_track=None):
    handle.click(PointerEvent(start_x, track))
    return handle.drag(PointerEvent(end_x, end_track or track))


class TestHover:

    def test_hit_test_grip_zones(self):
        rect = CellRect(0, 0, 1000, 100)
        assert TimeShiftHandle.hit_test(0, rect)
        assert not TimeShiftHandle.hit_test(500, rect)
        assert TimeShiftHandle.hit_test(990, rect)
        assert not TimeShiftHandle.hit_test(980, rect)

    def test_preview(self, mono_project, audio_flag):
        handle = _handle(mono_project, audio_flag)
        preview = handle.preview()
        assert preview.message == TIME_SHIFT_CONFIG.preview_message
        assert preview.cursor is CursorKind.SLIDE

        audio_flag.active = True
        assert handle.preview().cursor is CursorKind.DISABLED


class TestClick:

    def test_click_captures_clip(self, mono_project):
        handle = _handle(mono_project)
        a = mono_project.tracks[0]

        assert handle.click(PointerEvent(300, a)) == RefreshCode.NONE
        assert handle.phase is DragPhase.CAPTURING
        assert handle.state.captured_clip is a.clips[0]
        assert handle.state.moving_clips() == [a.clips[0]]
        assert handle.last_outcome is ShiftOutcome.OK

    def test_first_click_seeds_history(self, mono_project):
        handle = _handle(mono_project)
        handle.click(PointerEvent(300, mono_project.tracks[0]))
        assert len(mono_project.undo_manager) == 1

        handle.cancel()
        handle.click(PointerEvent(300, mono_project.tracks[0]))
        assert len(mono_project.undo_manager) == 1

    def test_click_while_audio_active(self, mono_project, audio_flag):
        audio_flag.active = True
        handle = _handle(mono_project, audio_flag)

        assert handle.click(PointerEvent(300, mono_project.tracks[0])) == RefreshCode.CANCELLED
        assert handle.last_outcome is ShiftOutcome.GUARD_REJECTED
        assert handle.phase is DragPhase.IDLE

    def test_click_without_track(self, mono_project):
        handle = _handle(mono_project)
        assert handle.click(PointerEvent(300)) == RefreshCode.CANCELLED
        assert handle.last_outcome is ShiftOutcome.NO_CAPTURE_TARGET

    def test_click_on_empty_space(self, mono_project):
        handle = _handle(mono_project)
        assert handle.click(PointerEvent(550, mono_project.tracks[0])) == RefreshCode.CANCELLED
        assert handle.last_outcome is ShiftOutcome.NO_CAPTURE_TARGET
        assert not handle.is_active

    def test_snap_edge_preference(self, mono_project):
        handle = _handle(mono_project)
        a = mono_project.tracks[0]
        handle.click(PointerEvent(450, a))
        assert handle.state.snap_prefer_right_edge
        handle.click(PointerEvent(250, a))
        assert not handle.state.snap_prefer_right_edge

    def test_shift_click_captures_whole_track(self, mono_project):
        handle = _handle(mono_project)
        a = mono_project.tracks[0]
        handle.click(PointerEvent(300, a, shift_down=True))
        assert handle.state.captured_clip is None
        assert handle.state.track_exclusions == [a]


class TestDrag:

    def test_drag_shrinks_to_nearest_legal_position(self, mono_project):
        handle = _handle(mono_project)
        a = mono_project.tracks[0]
        clip = a.clips[0]

        assert _drag(handle, 300, 500, a) == RefreshCode.REFRESH_ALL
        assert handle.phase is DragPhase.DRAGGING
        assert np.isclose(clip.start_time, 3.0)
        assert np.isclose(clip.end_time, 6.0)
        assert handle.last_outcome is ShiftOutcome.OVERLAP_REJECTED
        assert not a.has_overlaps()

    def test_drag_is_resolved_from_the_click(self, mono_project):
        handle = _handle(mono_project)
        a = mono_project.tracks[0]
        clip = a.clips[0]

        _drag(handle, 300, 500, a)
        handle.drag(PointerEvent(350, a))
        assert clip.start_time == 2.5
        assert handle.last_outcome is ShiftOutcome.OK

        handle.drag(PointerEvent(300, a))
        assert clip.start_time == 2.0
        assert handle.state.h_slide_amount == 0.0

    def test_drag_snaps_to_stationary_edge(self, mono_project):
        handle = _handle(mono_project)
        b = mono_project.tracks[1]
        clip = b.clips[0]

        _drag(handle, 1100, 898, b)
        assert np.isclose(clip.start_time, 8.0)
        assert handle.state.snap_left == 800.0

        lines = []
        handle.draw_extras(lines.append)
        assert lines == [800.0]

    def test_drag_without_session(self, mono_project):
        handle = _handle(mono_project)
        assert handle.drag(PointerEvent(500, mono_project.tracks[0])) == RefreshCode.NONE

    def test_pointer_off_track_inside_cell(self, mono_project):
        handle = _handle(mono_project)
        a = mono_project.tracks[0]
        clip = a.clips[0]

        handle.click(PointerEvent(300, a), CellRect(0, 0, 1000, 100))
        handle.drag(PointerEvent(350))
        assert clip.start_time == 2.5

        assert handle.drag(PointerEvent(1200)) == RefreshCode.NONE
        assert clip.start_time == 2.5

    def test_whole_track_drag(self, mono_project):
        handle = _handle(mono_project)
        a = mono_project.tracks[0]

        handle.click(PointerEvent(300, a, shift_down=True))
        handle.drag(PointerEvent(350, a))
        assert [c.start_time for c in a.clips] == [2.5, 6.5]

    def test_whole_stereo_track_drag_moves_partner(self, stereo_project):
        left, right = stereo_project.tracks[:2]
        handle = _handle(stereo_project)

        handle.click(PointerEvent(300, left, shift_down=True))
        handle.drag(PointerEvent(250, left))
        assert left.clips[0].start_time == 1.5
        assert right.clips[0].start_time == 1.5

    def test_label_track_drag(self, make_track):
        labels = Track.label("Labels", 1.0, 2.0)
        project = Project(tracks=[labels, make_track("A", (5.0, 6.0))])
        project.view.zoom = 100.0
        handle = _handle(project)

        _drag(handle, 150, 250, labels)
        assert np.isclose(labels.start_time, 2.0)
        assert np.isclose(labels.end_time, 3.0)

    def test_note_track_drag(self, make_track):
        notes = Track.note("Notes", 4.0, 6.0)
        project = Project(tracks=[notes, make_track("A", (8.0, 9.0))])
        project.view.zoom = 100.0
        handle = _handle(project)

        _drag(handle, 450, 550, notes)
        assert np.isclose(notes.start_time, 5.0)
        assert np.isclose(notes.end_time, 7.0)

    def test_selection_moves_with_clips(self, mono_project):
        a = mono_project.tracks[0]
        a.selected = True
        region = mono_project.view.selected_region
        region.set_times(2.5, 3.5)
        handle = _handle(mono_project)

        _drag(handle, 300, 350, a)
        assert handle.state.captured_clip_is_selection
        assert (region.t0, region.t1) == (3.0, 4.0)

        handle.drag(PointerEvent(400, a))
        assert np.isclose(region.t0, 3.5)
        assert np.isclose(region.t1, 4.5)
        assert np.isclose(a.clips[0].start_time, 3.0)

    def test_sync_locked_group_moves_rigidly(self, sync_project):
        a, b, c, labels = sync_project.tracks
        handle = _handle(sync_project)

        _drag(handle, 300, 500, a)
        assert a.clips[0].start_time == 4.0
        assert [clip.start_time for clip in b.clips] == [6.0, 9.0]
        assert c.clips[0].start_time == 7.5
        assert (labels.start_time, labels.end_time) == (3.0, 4.0)

    def test_sync_locked_group_blocked_as_one(self, sync_project, make_clip):
        a, b, c, labels = sync_project.tracks
        c.add_clip(make_clip(9.0, 10.0))
        handle = _handle(sync_project)

        _drag(handle, 300, 500, a)
        assert np.isclose(a.clips[0].start_time, 3.5)
        assert np.isclose(labels.start_time, 2.5)
        assert not any(t.has_overlaps() for t in sync_project.tracks)
        assert handle.last_outcome is ShiftOutcome.OVERLAP_REJECTED

    def test_audio_starting_mid_drag_cancels(self, mono_project, audio_flag):
        handle = _handle(mono_project, audio_flag)
        a = mono_project.tracks[0]
        clip = a.clips[0]
        _drag(handle, 300, 350, a)

        audio_flag.active = True
        result = handle.drag(PointerEvent(400, a))
        assert result == RefreshCode.REFRESH_ALL | RefreshCode.CANCELLED
        assert clip.start_time == 2.0
        assert handle.phase is DragPhase.IDLE
        assert handle.ended_as is DragPhase.ROLLED_BACK
        assert handle.last_outcome is ShiftOutcome.GUARD_REJECTED


class TestVerticalDrag:

    def test_stereo_to_mono_is_refused(self, stereo_project):
        left, right, mono = stereo_project.tracks[:3]
        handle = _handle(stereo_project)

        _drag(handle, 300, 400, left, mono)
        assert handle.last_outcome is ShiftOutcome.VERTICAL_MOVE_REJECTED
        assert mono.clips == []
        # Horizontal part still applies
        assert left.clips[0].start_time == 3.0
        assert right.clips[0].start_time == 3.0

    def test_stereo_move_resamples_on_release(self, stereo_project):
        left, right, _, left2, right2 = stereo_project.tracks
        clips = [left.clips[0], right.clips[0]]
        handle = _handle(stereo_project)

        _drag(handle, 300, 300, left, left2)
        assert left2.clips == [clips[0]] and right2.clips == [clips[1]]
        assert handle.state.captured_track is left2
        assert handle.state.did_slide_vertically

        result = handle.release()
        assert result & RefreshCode.FIX_SCROLLBARS
        assert handle.last_outcome is ShiftOutcome.RATE_MISMATCH_ON_COMMIT
        for clip in clips:
            assert clip.samplerate == 48000
            assert clip.num_samples == 144000
            assert clip.changed
        assert stereo_project.undo_manager.stack[-1].description == TIME_SHIFT_CONFIG.moved_tracks_message

        stereo_project.undo()
        assert left.clips == [clips[0]] and right.clips == [clips[1]]
        assert clips[0].samplerate == 44100

    def test_cross_rate_move_stays_clear_of_neighbour(self, make_track):
        a = make_track("A")
        clip = a.add_clip(AudioClip(np.zeros(44106, dtype=np.float32), samplerate=44100, offset=2.0))
        b = make_track("B", samplerate=48000)
        neighbour = b.add_clip(AudioClip(np.zeros(48000, dtype=np.float32), samplerate=48000,
                                         offset=clip.end_time))
        project = Project(tracks=[a, b])
        project.view.zoom = 100.0
        handle = _handle(project)

        _drag(handle, 300, 300, a, b)
        assert clip in b.clips
        handle.release()

        assert clip.samplerate == 48000
        assert clip.end_time <= neighbour.start_time
        assert not b.has_overlaps()

    def test_vertical_move_resets_baseline(self, stereo_project):
        left, _, _, left2, _ = stereo_project.tracks
        clip = left.clips[0]
        handle = _handle(stereo_project)

        _drag(handle, 300, 400, left, left2)
        assert clip.start_time == 3.0
        assert handle.state.mouse_click_x == 400
        assert handle.state.h_slide_amount == 0.0

        handle.drag(PointerEvent(400, left2))
        assert clip.start_time == 3.0

        handle.drag(PointerEvent(450, left2))
        assert clip.start_time == 3.5

    def test_small_overlap_nudged(self, make_track, make_clip):
        a = make_track("A", (2.0, 5.0))
        b = make_track("B")
        b.add_clip(make_clip(4.9921875, 6.0))
        project = Project(tracks=[a, b])
        project.view.zoom = 100.0
        clip = a.clips[0]
        handle = _handle(project)

        _drag(handle, 300, 300, a, b)
        assert clip in b.clips
        assert clip.start_time == 1.9921875
        assert not b.has_overlaps()

    def test_overlap_rejects_whole_move(self, make_track):
        a = make_track("A", (2.0, 5.0))
        b = make_track("B", (3.0, 4.0))
        project = Project(tracks=[a, b])
        project.view.zoom = 100.0
        clip = a.clips[0]
        handle = _handle(project)

        _drag(handle, 300, 300, a, b)
        assert a.clips == [clip]
        assert len(b.clips) == 1
        assert clip.start_time == 2.0
        assert handle.last_outcome is ShiftOutcome.VERTICAL_MOVE_REJECTED

    def test_cmd_restricts_to_vertical(self, mono_project):
        a, b = mono_project.tracks
        clip = a.clips[0]
        handle = _handle(mono_project)

        handle.click(PointerEvent(300, a, cmd_down=True))
        handle.drag(PointerEvent(500, a))
        assert clip.start_time == 2.0

        handle.drag(PointerEvent(500, b))
        assert clip in b.clips
        assert clip.start_time == 2.0

    def test_cmd_ignored_in_multi_tool_mode(self, mono_project):
        a = mono_project.tracks[0]
        handle = _handle(mono_project, multi_tool_mode=True)

        handle.click(PointerEvent(300, a, cmd_down=True))
        handle.drag(PointerEvent(350, a))
        assert a.clips[0].start_time == 2.5


class TestRelease:

    def test_release_commits_shift(self, mono_project):
        handle = _handle(mono_project)
        a = mono_project.tracks[0]
        _drag(handle, 700, 650, a)

        assert handle.release() == RefreshCode.FIX_SCROLLBARS
        assert handle.phase is DragPhase.IDLE
        assert handle.ended_as is DragPhase.COMMITTED
        entry = mono_project.undo_manager.stack[-1]
        assert entry.description == "Time shifted tracks/clips left 0.50 seconds"
        assert entry.short_description == TIME_SHIFT_CONFIG.history_short_label

    def test_handle_is_reusable_after_session(self, mono_project):
        handle = _handle(mono_project)
        a = mono_project.tracks[0]
        _drag(handle, 300, 350, a)
        handle.cancel()
        assert not handle.is_active

        assert handle.click(PointerEvent(300, a)) == RefreshCode.NONE
        assert handle.phase is DragPhase.CAPTURING
        handle.drag(PointerEvent(350, a))
        handle.release()
        assert handle.phase is DragPhase.IDLE
        assert handle.ended_as is DragPhase.COMMITTED
        assert a.clips[0].start_time == 2.5

    def test_release_clears_guides(self, mono_project):
        handle = _handle(mono_project)
        _drag(handle, 1100, 898, mono_project.tracks[1])

        result = handle.release()
        assert result == RefreshCode.REFRESH_ALL | RefreshCode.FIX_SCROLLBARS
        assert handle.state.snap_left is None
        lines = []
        handle.draw_extras(lines.append)
        assert lines == []

    def test_release_without_motion_pushes_nothing(self, mono_project):
        handle = _handle(mono_project)
        a = mono_project.tracks[0]
        handle.click(PointerEvent(300, a))
        handle.drag(PointerEvent(300, a))

        assert handle.release() == RefreshCode.NONE
        assert len(mono_project.undo_manager) == 1
        assert handle.phase is DragPhase.IDLE
        assert handle.ended_as is DragPhase.COMMITTED

    def test_consecutive_shifts_consolidate(self, mono_project):
        handle = _handle(mono_project)
        a = mono_project.tracks[0]
        clip = a.clips[1]

        _drag(handle, 700, 650, a)
        handle.release()
        _drag(handle, 650, 600, a)
        handle.release()

        assert clip.start_time == 5.0
        assert len(mono_project.undo_manager) == 2

        mono_project.undo()
        assert clip.start_time == 6.0

    def test_release_while_audio_active_rolls_back(self, mono_project, audio_flag):
        handle = _handle(mono_project, audio_flag)
        a = mono_project.tracks[0]
        _drag(handle, 300, 350, a)

        audio_flag.active = True
        assert handle.release() == RefreshCode.REFRESH_ALL
        assert a.clips[0].start_time == 2.0
        assert len(mono_project.undo_manager) == 1


class TestCancel:

    def test_cancel_restores_project(self, mono_project):
        handle = _handle(mono_project)
        a = mono_project.tracks[0]
        _drag(handle, 300, 350, a)

        assert handle.cancel() == RefreshCode.REFRESH_ALL
        assert a.clips[0].start_time == 2.0
        assert handle.phase is DragPhase.IDLE
        assert handle.ended_as is DragPhase.ROLLED_BACK
        assert len(mono_project.undo_manager) == 1

    def test_cancel_is_idempotent(self, mono_project):
        handle = _handle(mono_project)
        assert handle.cancel() == RefreshCode.NONE

        _drag(handle, 300, 350, mono_project.tracks[0])
        handle.cancel()
        assert handle.cancel() == RefreshCode.NONE
        assert handle.release() == RefreshCode.NONE

    def test_cancel_after_vertical_move(self, stereo_project):
        left, right, _, left2, right2 = stereo_project.tracks
        clips = [left.clips[0], right.clips[0]]
        handle = _handle(stereo_project)

        _drag(handle, 300, 300, left, left2)
        handle.cancel()
        assert left.clips == [clips[0]] and right.clips == [clips[1]]
        assert left2.clips == [] and right2.clips == []
