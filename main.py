import sys
from PyQt6.QtWidgets import QApplication
import qdarktheme

from src.ui.main_window import MainWindow
from src.utils.logger import logger


def main():
    app = QApplication(sys.argv)
    app.setApplicationName("ClipShift")
    app.setStyleSheet(qdarktheme.load_stylesheet(theme="dark"))

    window = MainWindow()
    # Files given on the command line are imported as tracks
    for path in sys.argv[1:]:
        if not window.load_file(path):
            logger.warning("Skipping %s", path)
    window.show()

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
