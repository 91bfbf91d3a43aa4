"""
Playback controller for ClipShift.
Streams the project mix via sounddevice. While a stream runs, the project is
"audio active" and time-shift drags are refused.
"""
from __future__ import annotations
from typing import TYPE_CHECKING, Optional, Callable
import numpy as np
import sounddevice as sd

from src.utils.logger import get_logger

from .config import AUDIO_CONFIG, PlaybackState
from .geometry import time_to_sample
from .types import AudioArray

if TYPE_CHECKING:
    from .project import Project

logger = get_logger("playback")


class PlaybackController:
    """
    Plays the project through the default output device.

    The mix is rendered once when playback starts, so edits made while
    playing are heard on the next start.
    """
    __slots__ = (
        '_project', '_stream', '_frame', '_state', '_mix',
        '_on_position_changed', '_on_state_changed', '_disposed'
    )

    def __init__(
        self,
        project: "Project",
        on_position_changed: Optional[Callable[[float], None]] = None,
        on_state_changed: Optional[Callable[[PlaybackState], None]] = None
    ) -> None:
        self._project = project
        self._stream: Optional[sd.OutputStream] = None
        self._frame: int = 0
        self._state = PlaybackState.STOPPED
        self._mix: Optional[AudioArray] = None
        self._on_position_changed = on_position_changed
        self._on_state_changed = on_state_changed
        self._disposed: bool = False

    @property
    def current_time(self) -> float:
        """Playback position in seconds."""
        sr = self._project.samplerate
        return self._frame / sr if sr > 0 else 0.0

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def is_playing(self) -> bool:
        return self._state == PlaybackState.PLAYING

    def is_active(self) -> bool:
        """Audio-active guard handed to the time-shift handle."""
        return self._stream is not None and self.is_playing

    def _set_state(self, state: PlaybackState) -> None:
        if self._state == state:
            return
        self._state = state
        if not self._disposed and self._on_state_changed:
            self._on_state_changed(state)

    def _notify_position(self) -> None:
        if not self._disposed and self._on_position_changed:
            self._on_position_changed(self.current_time)

    def seek(self, seconds: float) -> None:
        """Moves the start position. Ignored while playing."""
        if self.is_playing:
            return
        self._frame = max(0, time_to_sample(seconds, self._project.samplerate))
        self._notify_position()

    def _fill(self, outdata: np.ndarray, frames: int) -> None:
        # Copies the next block of the rendered mix into the device buffer
        total = len(self._mix)
        start = self._frame
        end = min(total, start + frames)
        outdata.fill(0)
        if end > start:
            outdata[:end - start] = self._mix[start:end]
        self._frame += frames
        if self._frame > total + AUDIO_CONFIG.playback_end_margin_samples:
            raise sd.CallbackStop()

    def play(self) -> bool:
        """
        Renders the mix and starts streaming it from the current position.

        Returns:
            True if a stream was started
        """
        if self._disposed or self.is_playing:
            return False

        self._mix = self._project.mix_down()
        if self._mix is None:
            logger.info("Nothing to play")
            return False

        def callback(outdata, frames, time, status) -> None:
            try:
                self._fill(outdata, frames)
            except sd.CallbackStop:
                raise
            except Exception as e:
                logger.error("Playback callback error: %s", e, exc_info=True)
                raise sd.CallbackStop()

        def on_finished() -> None:
            # Also fires during shutdown, when callbacks must not run
            if self._disposed or not self.is_playing:
                return
            self._stream = None
            self._frame = 0
            self._set_state(PlaybackState.STOPPED)
            self._notify_position()

        try:
            self._stream = sd.OutputStream(
                samplerate=self._project.samplerate,
                channels=AUDIO_CONFIG.playback_channels,
                blocksize=AUDIO_CONFIG.playback_blocksize,
                callback=callback,
                finished_callback=on_finished
            )
            self._stream.start()
        except Exception as e:
            logger.error("Failed to start playback: %s", e, exc_info=True)
            self._stream = None
            return False

        self._set_state(PlaybackState.PLAYING)
        logger.info("Playback started at %.2fs", self.current_time)
        return True

    def _close_stream(self) -> None:
        stream, self._stream = self._stream, None
        if stream is None:
            return
        try:
            stream.stop()
            stream.close()
        except Exception as e:
            logger.warning("Error stopping stream: %s", e)

    def stop(self) -> None:
        """Stops playback and rewinds to the start."""
        self._close_stream()
        self._frame = 0
        self._set_state(PlaybackState.STOPPED)
        self._notify_position()

    def toggle(self) -> None:
        if self.is_playing:
            self.stop()
        else:
            self.play()

    def cleanup(self) -> None:
        """Releases the audio device; no callbacks fire afterwards."""
        self._disposed = True
        self._on_position_changed = None
        self._on_state_changed = None
        self._close_stream()
        self._state = PlaybackState.STOPPED
