"""
Timeline geometry for ClipShift.
Pure mappings between pointer pixels, timeline seconds and sample positions,
plus lookups of audio-track rows and of the clip under a pointer column.
"""
from __future__ import annotations
from dataclasses import dataclass, field
import math
from typing import TYPE_CHECKING, Iterable, Optional, Sequence

from .config import VIEW_CONFIG, Channel, TrackKind

if TYPE_CHECKING:
    from .clip import AudioClip
    from .track import Track


def time_to_sample(t: float, rate: int) -> int:
    """Nearest sample index for time t (halves round up)."""
    return int(math.floor(t * rate + 0.5))


def quantize_to_samples(delta: float, rate: int) -> float:
    """Snaps a time delta to a whole number of samples at the given rate (halves round up)."""
    return time_to_sample(delta, rate) / rate


@dataclass
class SelectedRegion:
    """Active time selection, half-open [t0, t1)."""
    t0: float = 0.0
    t1: float = 0.0

    def contains(self, t: float) -> bool:
        return self.t0 <= t < self.t1

    def move(self, delta: float) -> None:
        self.t0 += delta
        self.t1 += delta

    def set_times(self, t0: float, t1: float) -> None:
        self.t0, self.t1 = min(t0, t1), max(t0, t1)

    @property
    def is_point(self) -> bool:
        return self.t0 == self.t1


@dataclass
class ViewInfo:
    """
    Zoom/scroll state of the timeline.

    The mapping is affine: position = origin + (time - h) * zoom.
    """
    h: float = 0.0  # Time (s) shown at the left edge of the track area
    zoom: float = VIEW_CONFIG.default_zoom  # Pixels per second
    selected_region: SelectedRegion = field(default_factory=SelectedRegion)

    def position_to_time(self, position: float, origin: float = 0.0) -> float:
        return self.h + (position - origin) / self.zoom

    def time_to_position(self, t: float, origin: float = 0.0) -> float:
        return origin + (t - self.h) * self.zoom

    def pixel_time(self, position: float = 0.0) -> float:
        """Duration covered by one pixel at the given position."""
        return self.position_to_time(position + 1) - self.position_to_time(position)

    def set_zoom(self, zoom: float) -> None:
        self.zoom = max(VIEW_CONFIG.min_zoom, min(VIEW_CONFIG.max_zoom, zoom))

    def zoom_about(self, factor: float, position: float, origin: float = 0.0) -> None:
        """Zooms by factor while keeping the time under position fixed."""
        anchor = self.position_to_time(position, origin)
        self.set_zoom(self.zoom * factor)
        self.h = max(0.0, anchor - (position - origin) / self.zoom)


def _audio_rows(tracks: Iterable["Track"]):
    # Primary channels of wave tracks only; right channels share their partner's row
    for track in tracks:
        if track.kind is TrackKind.WAVE and track.channel is not Channel.RIGHT:
            yield track


def track_position(tracks: Sequence["Track"], track: "Track") -> int:
    """
    Dense audio-row index of a track, or -1 if it has none.
    A right channel reports the row of its left partner.
    """
    partner = track.partner
    for row, candidate in enumerate(_audio_rows(tracks)):
        if candidate is track or candidate is partner:
            return row
    return -1


def nth_audio_track(tracks: Sequence["Track"], n: int) -> Optional["Track"]:
    """Primary wave track at audio row n, or None."""
    if n < 0:
        return None
    for row, candidate in enumerate(_audio_rows(tracks)):
        if row == n:
            return candidate
    return None


def find_clip_at_time(track: Optional["Track"], t: float) -> Optional["AudioClip"]:
    """Clip whose sample span contains time t, computed from the track's rate."""
    if track is None or track.kind is not TrackKind.WAVE:
        return None
    sample = time_to_sample(t, track.samplerate)
    if sample < 0:
        return None
    return track.clip_at_sample(sample)


def clip_at_x(track: "Track", x: float, view: ViewInfo, origin: float = 0.0) -> Optional["AudioClip"]:
    """Clip under pointer column x."""
    return find_clip_at_time(track, view.position_to_time(x, origin))
