"""
ClipShift UI Module

Qt-based user interface components:
- MainWindow: Main application window
- TimelineWidget: Track rows, clip drawing and pointer forwarding
"""
from .main_window import MainWindow
from .timeline_view import TimelineWidget

__all__ = [
    'MainWindow',
    'TimelineWidget',
]
