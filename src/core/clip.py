from __future__ import annotations
from dataclasses import dataclass, field
import numpy as np
from scipy.interpolate import interp1d

from .config import AUDIO_CONFIG
from .geometry import time_to_sample


@dataclass(eq=False)
class AudioClip:
    """
    Represents a single segment of audio within a track.
    Can be moved independently in time.

    Identity matters: two clips holding equal samples are still different clips,
    so equality and hashing are by object identity.
    """
    data: np.ndarray
    samplerate: int = AUDIO_CONFIG.default_samplerate
    offset: float = 0.0  # Start time in seconds relative to the timeline start
    name: str = ""
    changed: bool = field(default=False, repr=False)

    @property
    def num_samples(self) -> int:
        return len(self.data)

    @property
    def start_time(self) -> float:
        return self.offset

    @property
    def end_time(self) -> float:
        return self.offset + self.num_samples / self.samplerate

    @property
    def duration(self) -> float:
        return self.num_samples / self.samplerate

    @property
    def start_sample(self) -> int:
        return time_to_sample(self.offset, self.samplerate)

    @property
    def end_sample(self) -> int:
        return self.start_sample + self.num_samples

    def offset_by(self, delta: float) -> None:
        """Moves the clip in time by delta seconds."""
        self.offset += delta

    def before_time(self, t: float) -> bool:
        """True if time t is at or before the clip's first sample."""
        return time_to_sample(t, self.samplerate) <= self.start_sample

    def after_time(self, t: float) -> bool:
        """True if time t is at or after the clip's end."""
        return time_to_sample(t, self.samplerate) >= self.end_sample

    def contains_sample(self, sample: int) -> bool:
        return self.start_sample <= sample < self.end_sample

    def overlaps(self, start: float, end: float) -> bool:
        """True if the half-open span [start, end) intersects the clip."""
        return start < self.end_time and end > self.start_time

    def resample(self, new_rate: int, kind: str = 'linear') -> None:
        """
        Converts the clip's samples to a new rate, keeping its start time.

        Args:
            new_rate: Target sample rate in Hz
            kind: Interpolation type ('linear', 'cubic', 'quadratic')
        """
        if new_rate <= 0:
            raise ValueError(f"Invalid sample rate: {new_rate}")
        if new_rate == self.samplerate:
            return

        length = self.num_samples
        # Floored so the converted clip never ends past its old end time
        new_length = max(1, length * int(new_rate) // int(self.samplerate))

        if length < 2:
            # Nothing to interpolate between
            self.data = np.resize(self.data, (new_length,) + self.data.shape[1:]).astype(np.float32)
        else:
            x = np.linspace(0, length - 1, length)
            x_new = np.linspace(0, length - 1, new_length)
            f = interp1d(x, self.data, kind=kind, axis=0, fill_value="extrapolate")
            self.data = f(x_new).astype(np.float32)

        self.samplerate = new_rate

    def mark_changed(self) -> None:
        self.changed = True

    def copy(self) -> 'AudioClip':
        return AudioClip(
            data=self.data.copy(),
            samplerate=self.samplerate,
            offset=self.offset,
            name=self.name
        )

    def __repr__(self) -> str:
        return f"AudioClip({self.name!r}, {self.start_time:.3f}s-{self.end_time:.3f}s @ {self.samplerate}Hz)"
