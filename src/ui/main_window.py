from PyQt6.QtWidgets import (QMainWindow, QWidget, QVBoxLayout, QHBoxLayout,
                             QPushButton, QLabel, QFileDialog, QScrollArea)
from PyQt6.QtCore import QTimer, QSize
from PyQt6.QtGui import QAction, QKeySequence
import os
import numpy as np
import qtawesome as qta

from src.core.config import PlaybackState
from src.core.playback import PlaybackController
from src.core.project import Project
from src.core.time_shift import TimeShiftHandle
from src.core.track import Track
from src.ui.timeline_view import TimelineWidget
from src.utils.logger import logger

TRANSPORT_BUTTON_STYLE = """
    QPushButton { background-color: transparent; border-radius: 18px; padding: 4px; }
    QPushButton:hover { background-color: #3a3a3a; }
    QPushButton:pressed { background-color: #505050; }
"""


def format_time(seconds):
    return f"{int(seconds // 60):02d}:{seconds % 60:05.2f}"


class MainWindow(QMainWindow):
    """Timeline window: tracks in a scroll area, an edit toolbar and transport controls."""

    def __init__(self):
        super().__init__()
        self.setWindowTitle("ClipShift - Multi-track Timeline")
        self.resize(1100, 700)

        self.project = Project()
        self.playback = PlaybackController(self.project, on_state_changed=self.on_playback_state)
        self.handle = TimeShiftHandle(self.project, is_audio_active=self.playback.is_active)

        central = QWidget()
        self.setCentralWidget(central)
        self.main_layout = QVBoxLayout(central)

        self._build_toolbar()
        self._build_timeline()
        self._build_transport()

        self.refresh_timer = QTimer(self)
        self.refresh_timer.timeout.connect(self.on_tick)
        self.refresh_timer.start(30)

    # --- Construction ---

    def _action(self, icon, text, slot, shortcut=None):
        action = QAction(qta.icon(icon, color="white"), text, self)
        if shortcut is not None:
            action.setShortcut(shortcut)
        action.triggered.connect(slot)
        return action

    def _build_toolbar(self):
        toolbar = self.addToolBar("Edit")
        toolbar.setMovable(False)

        toolbar.addAction(self._action("fa5s.file-import", "Import Audio...", self.import_file_dialog,
                                       QKeySequence.StandardKey.Open))
        toolbar.addAction(self._action("fa5s.tag", "Add Label Track", self.add_label_track))
        toolbar.addSeparator()

        self.undo_action = self._action("fa5s.undo", "Undo", self.undo, QKeySequence.StandardKey.Undo)
        self.redo_action = self._action("fa5s.redo", "Redo", self.redo, QKeySequence.StandardKey.Redo)
        toolbar.addAction(self.undo_action)
        toolbar.addAction(self.redo_action)
        toolbar.addSeparator()

        toolbar.addAction(self._action("fa5s.search-plus", "Zoom In", lambda: self.zoom(2.0),
                                       QKeySequence.StandardKey.ZoomIn))
        toolbar.addAction(self._action("fa5s.search-minus", "Zoom Out", lambda: self.zoom(0.5),
                                       QKeySequence.StandardKey.ZoomOut))
        toolbar.addSeparator()

        self.sync_lock_action = self._action("fa5s.link", "Sync-Lock Tracks", lambda: None)
        self.sync_lock_action.setCheckable(True)
        self.sync_lock_action.toggled.connect(self.set_sync_locked)
        toolbar.addAction(self.sync_lock_action)

        self.update_history_actions()

    def _build_timeline(self):
        self.timeline = TimelineWidget(self.project, self.handle)
        self.timeline.historyChanged.connect(self.on_history_changed)
        self.timeline.seekRequested.connect(self.playback.seek)

        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setWidget(self.timeline)
        self.main_layout.addWidget(scroll, stretch=1)

    def _transport_button(self, icon, color, size, slot):
        button = QPushButton()
        button.setIcon(qta.icon(icon, color=color))
        button.setIconSize(QSize(size, size))
        button.setStyleSheet(TRANSPORT_BUTTON_STYLE)
        button.clicked.connect(slot)
        return button

    def _build_transport(self):
        bar = QWidget()
        bar.setStyleSheet("background-color: #1e1e1e; border-top: 1px solid #444;")
        layout = QHBoxLayout(bar)
        layout.setContentsMargins(16, 8, 16, 8)

        self.time_label = QLabel(f"{format_time(0)} / {format_time(0)}")
        self.time_label.setStyleSheet("font-family: 'Consolas'; font-size: 18px; color: #00ffff; min-width: 220px;")

        self.btn_stop = self._transport_button("fa5s.stop", "#ff5555", 22, self.playback.stop)
        self.btn_play = self._transport_button("fa5s.play", "#55ff55", 30, self.toggle_play)

        layout.addWidget(self.time_label)
        layout.addStretch()
        layout.addWidget(self.btn_stop)
        layout.addWidget(self.btn_play)
        layout.addStretch()

        self.main_layout.addWidget(bar)
        self.statusBar().showMessage("Ready")

    # --- Commands ---

    def toggle_play(self):
        # A drag in progress is dropped before audio starts
        if self.handle.is_active:
            self.handle.cancel()
            self.timeline.update()
        self.playback.toggle()

    def set_sync_locked(self, checked):
        self.project.sync_locked = checked
        self.statusBar().showMessage(f"Sync-Lock {'on' if checked else 'off'}", 2000)

    def zoom(self, factor):
        self.project.view.zoom_about(factor, 0.0)
        self.timeline.update()

    def undo(self):
        if self.handle.is_active:
            return
        if self.project.undo():
            self.timeline.refresh_layout()
            self.statusBar().showMessage(f"Undid {self.project.undo_manager.redo_description}", 2000)
        self.update_history_actions()

    def redo(self):
        if self.handle.is_active:
            return
        if self.project.redo():
            self.timeline.refresh_layout()
            self.statusBar().showMessage(f"Redid {self.project.undo_manager.undo_description}", 2000)
        self.update_history_actions()

    def update_history_actions(self):
        manager = self.project.undo_manager
        self.undo_action.setEnabled(manager.can_undo)
        self.redo_action.setEnabled(manager.can_redo)
        self.undo_action.setText(f"Undo {manager.undo_description}".strip())
        self.redo_action.setText(f"Redo {manager.redo_description}".strip())

    def add_label_track(self):
        region = self.project.view.selected_region
        start, end = (0.0, 1.0) if region.is_point else (region.t0, region.t1)
        self._ensure_history()
        self.project.add_track(Track.label("Labels", start, end))
        self.project.push_state("Added label track", "Add Track")
        self.timeline.refresh_layout()
        self.update_history_actions()

    def _ensure_history(self):
        if len(self.project.undo_manager) == 0:
            self.project.push_state("Created project", "Created project")

    # --- File import ---

    def load_file(self, file_path):
        """Decodes an audio file with librosa and adds it as a mono track or a stereo pair."""
        logger.info(f"Loading file: {file_path}")
        try:
            import librosa

            data, samplerate = librosa.load(file_path, sr=None, mono=False)
        except Exception as e:
            logger.error(f"Failed to load {file_path}: {e}", exc_info=True)
            return False

        data = np.asarray(data, dtype=np.float32)
        samplerate = int(samplerate)
        name = os.path.basename(file_path)

        self._ensure_history()
        if not self.project.wave_tracks():
            self.project.samplerate = samplerate

        if data.ndim > 1 and data.shape[0] == 2:
            left = Track(f"{name} (L)", samplerate=samplerate)
            right = Track(f"{name} (R)", samplerate=samplerate)
            Track.link_stereo(left, right)
            left.create_clip(data[0], name=name)
            right.create_clip(data[1], name=name)
            self.project.add_track(left)
            self.project.add_track(right)
        else:
            track = Track(name, samplerate=samplerate)
            track.create_clip(data if data.ndim == 1 else data.mean(axis=0), name=name)
            self.project.add_track(track)

        self.project.push_state(f"Imported '{name}'", "Import")
        self.timeline.refresh_layout()
        self.update_history_actions()
        return True

    def import_file_dialog(self):
        if self.playback.is_playing:
            self.playback.stop()

        file_path, _ = QFileDialog.getOpenFileName(
            self, "Import Audio", "", "Audio Files (*.wav *.mp3 *.flac *.ogg *.aiff)"
        )
        if not file_path:
            return
        if self.load_file(file_path):
            self.statusBar().showMessage(f"Imported {os.path.basename(file_path)}", 3000)
        else:
            self.statusBar().showMessage(f"Could not import {file_path}", 5000)

    # --- Callbacks ---

    def on_tick(self):
        seconds = self.playback.current_time
        self.timeline.set_playhead(seconds)
        self.time_label.setText(f"{format_time(seconds)} / {format_time(self.project.duration_seconds)}")

    def on_history_changed(self):
        manager = self.project.undo_manager
        self.statusBar().showMessage(manager.stack[manager.current].description, 3000)
        self.update_history_actions()

    def on_playback_state(self, state):
        playing = state == PlaybackState.PLAYING
        self.btn_play.setIcon(qta.icon("fa5s.pause" if playing else "fa5s.play",
                                       color="#ffff55" if playing else "#55ff55"))

    def closeEvent(self, event):
        self.playback.cleanup()
        super().closeEvent(event)
