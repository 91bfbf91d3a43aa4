from __future__ import annotations
from typing import Collection, Optional
import numpy as np

from .clip import AudioClip
from .config import AUDIO_CONFIG, TIME_SHIFT_CONFIG, Channel, TrackKind
from .geometry import time_to_sample


class Track:
    """
    Represents a single timeline track with its clips, metadata, and state.

    A WAVE track owns an unordered set of non-overlapping clips. LABEL and NOTE
    tracks are opaque single spans that can only move as a whole.
    """
    def __init__(
        self,
        name="Track",
        kind=TrackKind.WAVE,
        samplerate=AUDIO_CONFIG.default_samplerate,
        gain=AUDIO_CONFIG.default_gain,
        pan=0.0,
        muted=False,
        soloed=False,
        selected=False,
    ):
        self.name = name
        self.kind = kind
        self.samplerate = samplerate
        self.gain = gain
        self.pan = pan # -1.0 to 1.0
        self.muted = muted
        self.soloed = soloed
        self.selected = selected
        self.clips: list[AudioClip] = []
        self.channel = Channel.MONO
        self.partner: Optional[Track] = None
        self._span = (0.0, 0.0) # Label/note extent in seconds

    @classmethod
    def label(cls, name="Labels", start=0.0, end=0.0, **kwargs):
        track = cls(name, kind=TrackKind.LABEL, **kwargs)
        track.set_span(start, end)
        return track

    @classmethod
    def note(cls, name="Notes", start=0.0, end=0.0, **kwargs):
        track = cls(name, kind=TrackKind.NOTE, **kwargs)
        track.set_span(start, end)
        return track

    # --- Capabilities ---

    @property
    def supports_clips(self) -> bool:
        """True if clips move individually; otherwise the track moves as a whole."""
        return self.kind is TrackKind.WAVE

    @property
    def is_stereo(self) -> bool:
        return self.partner is not None

    @property
    def is_primary(self) -> bool:
        """Left or mono channel; right channels share their partner's row."""
        return self.channel is not Channel.RIGHT

    @property
    def channels(self) -> int:
        return 2 if self.is_stereo else 1

    @staticmethod
    def link_stereo(left: "Track", right: "Track") -> None:
        """Pairs two wave tracks as the left/right channels of one stereo track."""
        if left.kind is not TrackKind.WAVE or right.kind is not TrackKind.WAVE:
            raise TypeError("Only wave tracks can form a stereo pair")
        left.channel, right.channel = Channel.LEFT, Channel.RIGHT
        left.partner, right.partner = right, left

    # --- Clip container ---

    def add_clip(self, clip: AudioClip) -> AudioClip:
        """Takes ownership of a clip."""
        if not self.supports_clips:
            raise TypeError(f"{self.kind.name} track '{self.name}' cannot hold clips")
        self.clips.append(clip)
        self.clips.sort(key=lambda c: c.start_time)
        return clip

    def remove_clip(self, clip: AudioClip) -> AudioClip:
        """Detaches a clip and returns it to the caller."""
        for i, c in enumerate(self.clips):
            if c is clip:
                return self.clips.pop(i)
        raise ValueError(f"{clip!r} is not owned by track '{self.name}'")

    def create_clip(self, data: np.ndarray, offset: float = 0.0, name: str = "") -> AudioClip:
        """Creates a clip at this track's rate and adds it."""
        return self.add_clip(AudioClip(data=data, samplerate=self.samplerate, offset=offset, name=name))

    def clip_at_sample(self, sample: int) -> Optional[AudioClip]:
        for clip in self.clips:
            if clip.contains_sample(sample):
                return clip
        return None

    def clip_at_time(self, t: float) -> Optional[AudioClip]:
        return self.clip_at_sample(time_to_sample(t, self.samplerate))

    # --- Extent ---

    def set_span(self, start: float, end: float) -> None:
        self._span = (min(start, end), max(start, end))

    @property
    def start_time(self) -> float:
        if self.supports_clips:
            return min((c.start_time for c in self.clips), default=0.0)
        return self._span[0]

    @property
    def end_time(self) -> float:
        if self.supports_clips:
            return max((c.end_time for c in self.clips), default=0.0)
        return self._span[1]

    @property
    def duration_samples(self) -> int:
        """Samples from the timeline origin to the end of the last clip."""
        return time_to_sample(self.end_time, self.samplerate)

    @property
    def duration_seconds(self) -> float:
        return self.end_time

    def offset(self, delta: float) -> None:
        """Moves the whole track (every clip, or the span) by delta seconds."""
        if self.supports_clips:
            for clip in self.clips:
                clip.offset_by(delta)
        else:
            start, end = self._span
            self._span = (start + delta, end + delta)

    # --- Overlap queries ---

    def _fits(self, clip: AudioClip, amount: float, ignore: Collection[AudioClip]) -> bool:
        for c in self.clips:
            if c is clip or c in ignore:
                continue
            if c.overlaps(clip.start_time + amount, clip.end_time + amount):
                return False
        return True

    def can_offset_clip(
        self,
        clip: AudioClip,
        amount: float,
        ignore: Collection[AudioClip] = ()
    ) -> tuple[bool, float]:
        """
        Largest move toward `amount` that keeps `clip` clear of the other clips.

        Clips in `ignore` are not obstacles (they move together with `clip`).

        Returns:
            (ok, allowed): allowed has the sign of amount and no larger magnitude.
            ok is False when the clip cannot move at all (allowed is then 0.0).
        """
        allowed = amount
        for c in self.clips:
            if c is clip or c in ignore:
                continue
            if c.start_time < clip.end_time + amount and c.end_time > clip.start_time + amount:
                if amount > 0:
                    allowed = max(0.0, min(allowed, c.start_time - clip.end_time))
                else:
                    allowed = min(0.0, max(allowed, c.end_time - clip.start_time))

        if allowed == amount:
            return True, amount

        # The reduced amount must not land on some other clip
        if not self._fits(clip, allowed, ignore):
            return False, 0.0
        return True, allowed

    def can_insert_clip(
        self,
        clip: AudioClip,
        slide_by: float,
        tolerance: float
    ) -> tuple[bool, float, float]:
        """
        Checks whether `clip`, moved by `slide_by`, fits between this track's clips.

        An overlap smaller than `tolerance` is rescued by nudging the slide; after a
        nudge the remaining tolerance shrinks so only rounding-sized moves follow.

        Returns:
            (ok, slide_by, tolerance) with the possibly nudged slide.
        """
        for c in self.clips:
            if c is clip:
                continue
            d1 = c.start_time - (clip.end_time + slide_by)
            d2 = (clip.start_time + slide_by) - c.end_time
            if d1 < 0 and d2 < 0:
                if -d1 < tolerance:
                    # Right edge overlaps slightly: nudge left
                    slide_by += d1
                    tolerance /= TIME_SHIFT_CONFIG.tolerance_shrink
                elif -d2 < tolerance:
                    # Left edge overlaps slightly: nudge right
                    slide_by -= d2
                    tolerance /= TIME_SHIFT_CONFIG.tolerance_shrink
                else:
                    return False, slide_by, tolerance
        return True, slide_by, tolerance

    def has_overlaps(self) -> bool:
        """True if any two clips of this track overlap."""
        ordered = sorted(self.clips, key=lambda c: c.start_time)
        return any(a.end_time > b.start_time for a, b in zip(ordered, ordered[1:]))

    def __repr__(self) -> str:
        return (f"Track({self.name!r}, {self.kind.name}, {self.channel.name}, "
                f"{len(self.clips)} clips, {self.duration_seconds:.2f}s)")
