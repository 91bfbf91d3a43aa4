"""
Centralized configuration for ClipShift.
All magic numbers, default settings and closed enumerations in one place.
"""
from dataclasses import dataclass
from enum import Enum, Flag, auto


class PlaybackState(Enum):
    """Playback state enumeration."""
    STOPPED = auto()
    PLAYING = auto()
    PAUSED = auto()


class TrackKind(Enum):
    """Closed set of track kinds. Only WAVE tracks hold individually movable clips."""
    WAVE = auto()
    LABEL = auto()
    NOTE = auto()


class Channel(Enum):
    """Channel role of a track inside (or outside) a stereo pair."""
    MONO = auto()
    LEFT = auto()
    RIGHT = auto()


class DragPhase(Enum):
    """Lifecycle of a time-shift drag session."""
    IDLE = auto()
    CAPTURING = auto()
    DRAGGING = auto()
    COMMITTED = auto()
    ROLLED_BACK = auto()


class RefreshCode(Flag):
    """Refresh directive returned by pointer handlers."""
    NONE = 0
    REFRESH_CELL = auto()
    REFRESH_ALL = auto()
    FIX_SCROLLBARS = auto()
    CANCELLED = auto()


class PushFlags(Flag):
    """Options for pushing a history state."""
    NONE = 0
    CONSOLIDATE = auto()
    AUTOSAVE = auto()


class ShiftOutcome(Enum):
    """Result of the last handler call. Rejections never raise."""
    OK = auto()
    GUARD_REJECTED = auto()
    NO_CAPTURE_TARGET = auto()
    OVERLAP_REJECTED = auto()
    VERTICAL_MOVE_REJECTED = auto()
    RATE_MISMATCH_ON_COMMIT = auto()


class CursorKind(Enum):
    SLIDE = auto()
    DISABLED = auto()


@dataclass(frozen=True, slots=True)
class AudioConfig:
    """Audio engine configuration."""
    default_samplerate: int = 44100
    playback_blocksize: int = 4096
    playback_channels: int = 2
    playback_end_margin_samples: int = 22050  # ~0.5s buffer at end
    default_gain: float = 1.0


@dataclass(frozen=True, slots=True)
class ViewConfig:
    """Timeline view (zoom/scroll) settings."""
    default_zoom: float = 44100 / 512  # pixels per second
    min_zoom: float = 0.001
    max_zoom: float = 6_000_000.0
    track_height: int = 100
    label_track_height: int = 40


@dataclass(frozen=True, slots=True)
class SnapConfig:
    """Magnetic snapping settings."""
    pixel_tolerance: int = 4
    snap_to_zero: bool = True
    guide_color: tuple[int, int, int] = (255, 255, 0)


@dataclass(frozen=True, slots=True)
class TimeShiftConfig:
    """Drag time-shift behaviour."""
    # Grip zones at the left/right border of a track cell
    drag_handle_width: int = 14
    hotspot_offset: int = 5

    # Vertical moves may nudge a clip by up to one pixel worth of time
    insert_tolerance_px: float = 1.0
    tolerance_shrink: float = 1000.0

    history_short_label: str = "Time-Shift"
    moved_tracks_message: str = "Moved clips to another track"
    shifted_right_message: str = "Time shifted tracks/clips right {:.2f} seconds"
    shifted_left_message: str = "Time shifted tracks/clips left {:.2f} seconds"
    preview_message: str = "Click and drag to move a track in time"


@dataclass(frozen=True, slots=True)
class UndoConfig:
    """Undo/Redo configuration."""
    max_depth: int = 50


# Global config instances (immutable singletons)
AUDIO_CONFIG = AudioConfig()
VIEW_CONFIG = ViewConfig()
SNAP_CONFIG = SnapConfig()
TIME_SHIFT_CONFIG = TimeShiftConfig()
UNDO_CONFIG = UndoConfig()
