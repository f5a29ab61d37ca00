# Path: gui/main_window.py
# Purpose: Define the main desktop window of the picture wall.
# Layer: gui.
# Details: Hosts the wall canvas, a toolbar for add/settings/clear, and the F11 fullscreen toggle.

from __future__ import annotations

from typing import Optional

from PySide6.QtCore import Qt
from PySide6.QtGui import QAction, QKeySequence
from PySide6.QtWidgets import QApplication, QMainWindow, QMessageBox, QToolBar

from config.settings import AppSettings, configure_logging
from .dialogs import AddItemDialog, WallSettingsDialog
from .view_models import BoardViewModel, open_board
from .widgets.wall_canvas import WallCanvas


class MainWindow(QMainWindow):
    """Main application window showing the wall and its editing actions."""

    def __init__(self, view_model: BoardViewModel) -> None:
        super().__init__()
        self.view_model = view_model
        self.setWindowTitle("Picture Wall")
        self.canvas = WallCanvas(view_model)
        self.setCentralWidget(self.canvas)
        self._build_toolbar()
        self._configure_shortcuts()
        self.resize(int(view_model.viewport.width), int(view_model.viewport.height))

    def _build_toolbar(self) -> None:
        toolbar = QToolBar("Wall")
        toolbar.setMovable(False)
        self.addToolBar(toolbar)

        add_action = QAction("Add", self)
        add_action.setShortcut(QKeySequence.New)
        add_action.triggered.connect(self.open_add_dialog)
        toolbar.addAction(add_action)

        settings_action = QAction("Wall settings", self)
        settings_action.triggered.connect(self.open_settings_dialog)
        toolbar.addAction(settings_action)

        toolbar.addSeparator()
        clear_action = QAction("Clear all", self)
        clear_action.triggered.connect(self.confirm_clear_all)
        toolbar.addAction(clear_action)

    def _configure_shortcuts(self) -> None:
        toggle_action = QAction(self)
        toggle_action.setShortcut(QKeySequence(Qt.Key_F11))
        toggle_action.triggered.connect(self.toggle_fullscreen)
        self.addAction(toggle_action)

    def open_add_dialog(self) -> None:
        dialog = AddItemDialog(self.view_model, self)
        dialog.exec()
        dialog.deleteLater()

    def open_settings_dialog(self) -> None:
        dialog = WallSettingsDialog(self.view_model, self)
        dialog.exec()
        dialog.deleteLater()

    def confirm_clear_all(self) -> None:
        if not self.view_model.store.pictures and not self.view_model.store.windows:
            return
        answer = QMessageBox.question(
            self,
            "Clear wall",
            "Remove every picture and window from the wall?",
            QMessageBox.Yes | QMessageBox.No,
            QMessageBox.No,
        )
        if answer == QMessageBox.Yes:
            self.view_model.clear_all()

    def toggle_fullscreen(self) -> None:
        if self.isFullScreen():
            self.showNormal()
        else:
            self.showFullScreen()


def run_gui(settings: Optional[AppSettings] = None) -> int:
    """Open the stored board and run the Qt event loop until the window closes."""

    import sys

    settings = settings or AppSettings.from_env()
    configure_logging(settings)
    app = QApplication.instance() or QApplication(sys.argv)
    window = MainWindow(open_board(settings))
    window.show()
    return app.exec()


if __name__ == "__main__":
    import sys

    sys.exit(run_gui())
