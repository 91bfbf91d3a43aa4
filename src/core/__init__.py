"""
ClipShift Core Module

This module contains the timeline model and the drag time-shift engine:
- Project / Track / AudioClip: the timeline model
- TimeShiftHandle: drag session controller (click, drag, release, cancel)
- capture, snapping, slide, vertical: the resolvers it orchestrates
- UndoManager: snapshot history

PlaybackController lives in .playback and is imported by the UI directly.
"""
from .clip import AudioClip
from .track import Track
from .project import Project
from .undo_manager import UndoManager
from .time_shift import PointerEvent, TimeShiftHandle
from .shift_state import DragSessionState, TrackClip
from .snapping import SnapManager
from .config import (
    AUDIO_CONFIG,
    VIEW_CONFIG,
    SNAP_CONFIG,
    TIME_SHIFT_CONFIG,
    UNDO_CONFIG,
    Channel,
    DragPhase,
    PlaybackState,
    PushFlags,
    RefreshCode,
    ShiftOutcome,
    TrackKind,
)

__all__ = [
    # Main classes
    'AudioClip',
    'Track',
    'Project',
    'UndoManager',
    'TimeShiftHandle',
    'PointerEvent',
    'DragSessionState',
    'TrackClip',
    'SnapManager',
    # Config
    'AUDIO_CONFIG',
    'VIEW_CONFIG',
    'SNAP_CONFIG',
    'TIME_SHIFT_CONFIG',
    'UNDO_CONFIG',
    'Channel',
    'DragPhase',
    'PlaybackState',
    'PushFlags',
    'RefreshCode',
    'ShiftOutcome',
    'TrackKind',
]
