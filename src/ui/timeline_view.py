from PyQt6.QtWidgets import QWidget
from PyQt6.QtCore import Qt, QPointF, QRectF, pyqtSignal
from PyQt6.QtGui import QPainter, QColor, QPen, QPalette, QPolygonF

from src.core.config import SNAP_CONFIG, VIEW_CONFIG, CursorKind, RefreshCode, TrackKind
from src.core.time_shift import PointerEvent, TimeShiftHandle
from src.core.types import CellRect
from src.utils.logger import get_logger

logger = get_logger("ui")


class TimelineWidget(QWidget):
    """
    Track rows with their clips. Pointer events are resolved to the track
    under the pointer and forwarded to the time-shift handle.
    """
    historyChanged = pyqtSignal()
    seekRequested = pyqtSignal(float) # Emits seconds

    def __init__(self, project, handle: TimeShiftHandle, parent=None):
        super().__init__(parent)
        self.project = project
        self.handle = handle
        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self.setMinimumHeight(VIEW_CONFIG.track_height)
        self.setAutoFillBackground(True)
        self.setBackgroundRole(QPalette.ColorRole.Base)

        self.clip_color = QColor(0, 255, 255) # Cyan neon
        self.clip_fill = QColor(0, 80, 90)
        self.span_color = QColor(200, 160, 60)
        self.playhead_color = QColor(255, 50, 50)
        self.guide_color = QColor(*SNAP_CONFIG.guide_color)

        self.playhead_time = 0.0
        self._selecting_from = None # Anchor time of a selection drag

    # --- Layout ---

    @staticmethod
    def row_height(track) -> int:
        if track.kind is TrackKind.LABEL:
            return VIEW_CONFIG.label_track_height
        return VIEW_CONFIG.track_height

    def rows(self):
        """Yields (track, CellRect) for every track, top to bottom."""
        y = 0
        for track in self.project.tracks:
            h = self.row_height(track)
            yield track, CellRect(0, y, self.width(), h)
            y += h

    def cell_at(self, y):
        for track, rect in self.rows():
            if rect.y <= y < rect.y + rect.height:
                return track, rect
        return None, None

    def refresh_layout(self):
        total = sum(self.row_height(t) for t in self.project.tracks)
        self.setMinimumHeight(max(VIEW_CONFIG.track_height, total))
        self.update()

    def set_playhead(self, seconds):
        if self.playhead_time != seconds:
            self.playhead_time = seconds
            self.update()

    def _apply(self, result: RefreshCode):
        if result & (RefreshCode.REFRESH_ALL | RefreshCode.REFRESH_CELL):
            self.update()
        if result & RefreshCode.FIX_SCROLLBARS:
            self.refresh_layout()

    # --- Painting ---

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.fillRect(self.rect(), QColor(20, 20, 20))

        if not self.project.tracks:
            painter.setPen(QColor(100, 100, 100))
            painter.drawText(self.rect(), Qt.AlignmentFlag.AlignCenter, "No Audio Loaded")
            return

        view = self.project.view
        for track, rect in self.rows():
            painter.setPen(QColor(60, 60, 60))
            painter.drawLine(0, int(rect.y + rect.height - 1), self.width(), int(rect.y + rect.height - 1))

            if track.supports_clips:
                for clip in track.clips:
                    self._draw_clip(painter, clip, rect)
            else:
                x0 = view.time_to_position(track.start_time)
                x1 = view.time_to_position(track.end_time)
                painter.fillRect(QRectF(x0, rect.y + 4, max(1.0, x1 - x0), rect.height - 8), self.span_color)

            if track.selected:
                self._draw_selection(painter, rect)

        self._draw_playhead(painter)

        # Snap guides
        painter.setPen(QPen(self.guide_color, 1))
        self.handle.draw_extras(lambda x: painter.drawLine(int(x), 0, int(x), self.height()))

    def _draw_clip(self, painter, clip, rect):
        view = self.project.view
        x0 = view.time_to_position(clip.start_time)
        x1 = view.time_to_position(clip.end_time)
        if x1 < 0 or x0 > self.width():
            return

        painter.fillRect(QRectF(x0, rect.y + 2, x1 - x0, rect.height - 4), self.clip_fill)

        data = clip.data[:, 0] if clip.data.ndim > 1 else clip.data
        if len(data) == 0:
            return
        # One point per pixel is enough
        step = max(1, int(len(data) / max(1.0, x1 - x0)))
        plot_data = data[::step]

        mid_y = rect.y + rect.height / 2
        amp = rect.height / 2 * 0.9
        poly = QPolygonF()
        for i, val in enumerate(plot_data):
            x = view.time_to_position(clip.start_time + i * step / clip.samplerate)
            poly.append(QPointF(x, mid_y - val * amp))
        painter.setPen(self.clip_color)
        painter.drawPolyline(poly)

    def _draw_selection(self, painter, rect):
        region = self.project.view.selected_region
        if region.is_point:
            return
        view = self.project.view
        x0 = view.time_to_position(region.t0)
        x1 = view.time_to_position(region.t1)
        painter.fillRect(QRectF(x0, rect.y, x1 - x0, rect.height), QColor(255, 255, 255, 50))

    def _draw_playhead(self, painter):
        x = self.project.view.time_to_position(self.playhead_time)
        if 0 <= x <= self.width():
            painter.setPen(QPen(self.playhead_color, 1))
            painter.drawLine(int(x), 0, int(x), self.height())

    # --- Pointer ---

    def _pointer_event(self, event):
        x = event.position().x()
        track, _ = self.cell_at(event.position().y())
        mods = event.modifiers()
        return PointerEvent(
            x=x,
            track=track,
            shift_down=bool(mods & Qt.KeyboardModifier.ShiftModifier),
            cmd_down=bool(mods & Qt.KeyboardModifier.ControlModifier),
        )

    def mousePressEvent(self, event):
        if event.button() != Qt.MouseButton.LeftButton:
            return
        pointer = self._pointer_event(event)
        track, rect = self.cell_at(event.position().y())
        if track is None:
            return

        result = self.handle.click(pointer, rect)
        if not (result & RefreshCode.CANCELLED):
            self._apply(result)
            return

        # Not on a clip: start a time selection on this track instead
        if not self.handle.is_active and not self.handle.is_audio_active():
            for t in self.project.tracks:
                t.selected = t is track or t is track.partner
            t0 = self.project.view.position_to_time(pointer.x)
            self.project.view.selected_region.set_times(t0, t0)
            self._selecting_from = t0
            self.update()

    def mouseMoveEvent(self, event):
        if self.handle.is_active:
            self._apply(self.handle.drag(self._pointer_event(event)))
            return

        if self._selecting_from is not None:
            t = self.project.view.position_to_time(max(0.0, event.position().x()))
            self.project.view.selected_region.set_times(self._selecting_from, t)
            self.update()
            return

        # Hover
        preview = self.handle.preview()
        self.setToolTip(preview.message)
        shape = (Qt.CursorShape.ForbiddenCursor if preview.cursor is CursorKind.DISABLED
                 else Qt.CursorShape.SizeHorCursor)
        self.setCursor(shape)

    def mouseReleaseEvent(self, event):
        if self.handle.is_active:
            before = len(self.project.undo_manager), self.project.undo_manager.current
            self._apply(self.handle.release())
            self.update()
            if (len(self.project.undo_manager), self.project.undo_manager.current) != before:
                self.historyChanged.emit()
            return

        if self._selecting_from is not None:
            region = self.project.view.selected_region
            if region.is_point:
                # It was a click: jump playhead here
                self.set_playhead(region.t0)
                self.seekRequested.emit(region.t0)
            self._selecting_from = None
            self.update()

    def keyPressEvent(self, event):
        if event.key() == Qt.Key.Key_Escape and self.handle.is_active:
            self._apply(self.handle.cancel())
            return
        super().keyPressEvent(event)

    def wheelEvent(self, event):
        angle = event.angleDelta().y()
        factor = 1.25 if angle > 0 else 0.8
        self.project.view.zoom_about(factor, event.position().x())
        self.update()
