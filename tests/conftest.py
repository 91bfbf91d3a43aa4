"""
Pytest configuration and fixtures for ClipShift tests.

Projects use a view of 100 pixels per second starting at t=0, so x=300 is 3.0s.
"""
import pytest
import numpy as np

from src.core.clip import AudioClip
from src.core.project import Project
from src.core.track import Track
from src.core.undo_manager import UndoManager
from src.core.config import AUDIO_CONFIG

ZOOM = 100.0


@pytest.fixture
def sample_mono_audio() -> np.ndarray:
    """Generate 1 second of mono sine wave audio."""
    sr = AUDIO_CONFIG.default_samplerate
    t = np.linspace(0, 1, sr, dtype=np.float32)
    return np.sin(2 * np.pi * 440 * t).astype(np.float32)


@pytest.fixture
def make_clip():
    """Factory for silent clips spanning [start, end) seconds."""
    def _make(start, end, samplerate=AUDIO_CONFIG.default_samplerate, name=""):
        n = int(round((end - start) * samplerate))
        return AudioClip(np.zeros(n, dtype=np.float32), samplerate=samplerate, offset=start, name=name)
    return _make


@pytest.fixture
def make_track(make_clip):
    """Factory for wave tracks holding clips at the given (start, end) spans."""
    def _make(name, *spans, samplerate=AUDIO_CONFIG.default_samplerate):
        track = Track(name, samplerate=samplerate)
        for start, end in spans:
            track.add_clip(make_clip(start, end, samplerate, name=f"{name}@{start}"))
        return track
    return _make


def _project(*tracks):
    project = Project(name="Test Project")
    project.view.zoom = ZOOM
    for track in tracks:
        project.add_track(track)
    return project


@pytest.fixture
def empty_project() -> Project:
    return _project()


@pytest.fixture
def mono_project(make_track) -> Project:
    """Row 0: A with [2, 5) and [6, 8). Row 1: B with [10, 12)."""
    return _project(make_track("A", (2.0, 5.0), (6.0, 8.0)), make_track("B", (10.0, 12.0)))


@pytest.fixture
def stereo_project(make_track) -> Project:
    """
    Row 0: stereo L/R, both with [2, 5).
    Row 1: mono M, empty.
    Row 2: stereo L2/R2 at 48 kHz, empty.
    """
    left, right = make_track("L", (2.0, 5.0)), make_track("R", (2.0, 5.0))
    Track.link_stereo(left, right)
    left2, right2 = make_track("L2", samplerate=48000), make_track("R2", samplerate=48000)
    Track.link_stereo(left2, right2)
    return _project(left, right, make_track("M"), left2, right2)


@pytest.fixture
def sync_project(make_track) -> Project:
    """
    One sync-lock group: A [2, 5); B [4, 6) and [7, 8); C [5.5, 7.5); labels [1, 2).
    """
    project = _project(
        make_track("A", (2.0, 5.0)),
        make_track("B", (4.0, 6.0), (7.0, 8.0)),
        make_track("C", (5.5, 7.5)),
        Track.label("Labels", 1.0, 2.0),
    )
    project.sync_locked = True
    return project


@pytest.fixture
def undo_manager() -> UndoManager:
    """Create an undo manager."""
    return UndoManager(max_depth=10)
