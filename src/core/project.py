"""
Project abstraction for ClipShift.
Encapsulates all project state (tracks, view, sync-lock setting, undo history).
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional
import numpy as np

from src.utils.logger import logger

from .config import AUDIO_CONFIG, UNDO_CONFIG, Channel, PushFlags, TrackKind
from .geometry import ViewInfo, time_to_sample
from .types import AudioArray, ProjectSnapshot

if TYPE_CHECKING:
    from .track import Track
    from .undo_manager import UndoManager


@dataclass
class Project:
    """
    Represents a multi-track timeline.
    Contains all tracks, the view/selection state, and undo history.
    """
    name: str = "Untitled Project"
    samplerate: int = field(default_factory=lambda: AUDIO_CONFIG.default_samplerate)
    tracks: list["Track"] = field(default_factory=list)
    view: ViewInfo = field(default_factory=ViewInfo)
    sync_locked: bool = False
    _undo_manager: Optional["UndoManager"] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if self._undo_manager is None:
            from .undo_manager import UndoManager
            self._undo_manager = UndoManager(max_depth=UNDO_CONFIG.max_depth)

    @property
    def undo_manager(self) -> "UndoManager":
        return self._undo_manager

    @property
    def end_time(self) -> float:
        """Latest end time over all tracks, in seconds."""
        return max((t.end_time for t in self.tracks), default=0.0)

    @property
    def duration_samples(self) -> int:
        """Total project duration in samples at the project rate."""
        return time_to_sample(self.end_time, self.samplerate)

    @property
    def duration_seconds(self) -> float:
        return self.end_time

    @property
    def has_solo(self) -> bool:
        """Check if any track is soloed."""
        return any(t.soloed for t in self.tracks)

    def get_active_tracks(self) -> list["Track"]:
        """Get tracks that should be played (respecting solo/mute)."""
        if self.has_solo:
            return [t for t in self.tracks if t.soloed]
        return [t for t in self.tracks if not t.muted]

    def add_track(self, track: "Track") -> int:
        """Add a track and return its index."""
        self.tracks.append(track)
        return len(self.tracks) - 1

    def remove_track(self, index: int) -> Optional["Track"]:
        """Remove track at index and return it."""
        if 0 <= index < len(self.tracks):
            return self.tracks.pop(index)
        return None

    def get_track(self, index: int) -> Optional["Track"]:
        """Get track by index safely."""
        if 0 <= index < len(self.tracks):
            return self.tracks[index]
        return None

    def wave_tracks(self) -> list["Track"]:
        return [t for t in self.tracks if t.kind is TrackKind.WAVE]

    def selected_tracks(self) -> list["Track"]:
        return [t for t in self.tracks if t.selected]

    def sync_lock_group(self, track: "Track") -> list["Track"]:
        """
        Tracks that move together with `track` when sync-lock is on.

        A group is a run of wave/note tracks followed by any label tracks;
        a wave/note track after a label track starts the next group.
        """
        groups: list[list["Track"]] = []
        current: list["Track"] = []
        after_label = False
        for t in self.tracks:
            if t.kind is TrackKind.LABEL:
                after_label = True
            elif after_label:
                groups.append(current)
                current = []
                after_label = False
            current.append(t)
        if current:
            groups.append(current)

        for group in groups:
            if any(t is track for t in group):
                return group
        return [track]

    def mix_down(self) -> Optional[AudioArray]:
        """
        Mix all active wave tracks to a single stereo array at the project rate.
        Clips at another rate are converted on the fly.
        """
        max_len = self.duration_samples
        if not self.tracks or max_len == 0:
            return None

        output = np.zeros((max_len, 2), dtype=np.float32)

        for track in self.get_active_tracks():
            if track.kind is not TrackKind.WAVE:
                continue
            # Right channels only feed the right output, left channels the left
            columns = {Channel.MONO: [0, 1], Channel.LEFT: [0], Channel.RIGHT: [1]}[track.channel]

            for clip in track.clips:
                if clip.samplerate != self.samplerate:
                    clip = clip.copy()
                    clip.resample(self.samplerate)
                data = clip.data if clip.data.ndim == 1 else clip.data.mean(axis=1)
                start = time_to_sample(clip.start_time, self.samplerate)
                src_start = max(0, -start)
                start = max(0, start)
                end = min(max_len, start + len(data) - src_start)
                if end <= start:
                    continue
                segment = data[src_start:src_start + (end - start)] * track.gain
                for column in columns:
                    output[start:end, column] += segment

        # Soft clip to prevent harsh digital distortion
        np.clip(output, -1.0, 1.0, out=output)
        return output

    # --- History ---

    def capture_state(self) -> ProjectSnapshot:
        """
        Records everything a drag can change, keeping object identities.

        Sample arrays are stored by reference; clip data is only ever replaced,
        never written in place.
        """
        track_states = []
        for track in self.tracks:
            clips = [(clip, clip.data, clip.samplerate, clip.offset) for clip in track.clips]
            track_states.append((track, clips, (track.start_time, track.end_time), track.selected))
        region = self.view.selected_region
        return {
            'tracks': list(self.tracks),
            'track_states': track_states,
            'selection': (region.t0, region.t1),
        }

    def restore_state(self, state: ProjectSnapshot) -> None:
        """Puts tracks and clips back to a captured state, in place."""
        self.tracks[:] = state['tracks']
        for track, clips, span, selected in state['track_states']:
            track.clips = []
            for clip, data, rate, offset in clips:
                clip.data = data
                clip.samplerate = rate
                clip.offset = offset
                track.clips.append(clip)
            if not track.supports_clips:
                track.set_span(*span)
            track.selected = selected
        self.view.selected_region.set_times(*state['selection'])

    def push_state(self, description: str, short_description: str,
                   flags: PushFlags = PushFlags.NONE) -> None:
        self.undo_manager.push_state(description, short_description, self.capture_state(), flags)

    def rollback_state(self) -> bool:
        """Discards uncommitted changes by restoring the current history entry."""
        state = self.undo_manager.current_state()
        if state is None:
            logger.warning("Rollback requested with an empty history")
            return False
        self.restore_state(state)
        logger.info("Project rolled back to: %s", self.undo_manager.stack[self.undo_manager.current].description)
        return True

    def undo(self) -> bool:
        state = self.undo_manager.undo()
        if state is None:
            return False
        self.restore_state(state)
        return True

    def redo(self) -> bool:
        state = self.undo_manager.redo()
        if state is None:
            return False
        self.restore_state(state)
        return True

    def clear(self) -> None:
        """Reset project to empty state."""
        self.tracks.clear()
        self.undo_manager.clear()
        self.view = ViewInfo()
        self.samplerate = AUDIO_CONFIG.default_samplerate
