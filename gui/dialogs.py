# Path: gui/dialogs.py
# Purpose: Provide the add-item and wall-settings dialogs of the picture wall window.
# Layer: gui.
# Details: Gateway calls run on a QThread worker with its own event loop so the canvas stays responsive.

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Awaitable, Callable, Optional

from PySide6.QtCore import QThread, Signal
from PySide6.QtGui import QColor
from PySide6.QtWidgets import (
    QColorDialog,
    QComboBox,
    QDialog,
    QDialogButtonBox,
    QFileDialog,
    QFormLayout,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QPushButton,
    QTabWidget,
    QVBoxLayout,
    QWidget,
)

from core.gateway import AcquisitionValidationError, GatewayError, validate_upload
from core.models.domain import WALL_TEXTURES, WINDOW_STYLES, AcquiredImage
from .view_models import AcquisitionInProgressError, BoardViewModel

IMAGE_FILE_FILTER = "Images (*.png *.jpg *.jpeg *.gif *.webp *.bmp *.svg)"


class _AcquireWorker(QThread):
    """Background worker resolving one acquisition request without freezing the UI."""

    acquired = Signal(object)
    failed = Signal(object)

    def __init__(
        self,
        request: Callable[[], Awaitable[AcquiredImage]],
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self._request = request

    def run(self) -> None:  # type: ignore[override]
        """
        External calls:
        - core/gateway/base.py::ImageGateway - acquire_from_prompt / acquire_from_file on a private event loop.
        """

        try:
            image = asyncio.run(self._request())
        except Exception as exc:  # noqa: BLE001 - catch-all to report errors back to the GUI
            self.failed.emit(exc)
            return
        self.acquired.emit(image)


class AddItemDialog(QDialog):
    """Dialog offering the three ways to put something on the wall."""

    GENERATE, UPLOAD, WINDOW = range(3)

    def __init__(self, view_model: BoardViewModel, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.view_model = view_model
        self._worker: Optional[_AcquireWorker] = None
        self._upload_path: Optional[Path] = None
        self.setWindowTitle("Add to wall")
        self.setMinimumWidth(420)

        self.tabs = QTabWidget()
        self.tabs.addTab(self._build_generate_tab(), "Generate")
        self.tabs.addTab(self._build_upload_tab(), "Upload")
        self.tabs.addTab(self._build_window_tab(), "Window")
        self.tabs.currentChanged.connect(self._on_mode_changed)

        self.error_label = QLabel()
        self.error_label.setWordWrap(True)
        self.error_label.setStyleSheet("color: #b91c1c;")
        self.error_label.hide()

        self.buttons = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel)
        self.submit_button = self.buttons.button(QDialogButtonBox.Ok)
        self.submit_button.setText("Add")
        self.buttons.accepted.connect(self.submit)
        self.buttons.rejected.connect(self.reject)

        layout = QVBoxLayout(self)
        layout.addWidget(self.tabs)
        layout.addWidget(self.error_label)
        layout.addWidget(self.buttons)
        self._refresh_state()

    # Layout
    def _build_generate_tab(self) -> QWidget:
        widget = QWidget()
        form = QFormLayout(widget)
        self.prompt_edit = QLineEdit()
        self.prompt_edit.setPlaceholderText("A lighthouse at dusk, oil painting")
        self.prompt_edit.textChanged.connect(self._refresh_state)
        self.prompt_edit.returnPressed.connect(self.submit)
        form.addRow("Prompt", self.prompt_edit)
        return widget

    def _build_upload_tab(self) -> QWidget:
        widget = QWidget()
        row = QHBoxLayout(widget)
        self.file_label = QLabel("No file selected")
        browse_button = QPushButton("Browse...")
        browse_button.clicked.connect(self._choose_file)
        row.addWidget(self.file_label, 1)
        row.addWidget(browse_button)
        return widget

    def _build_window_tab(self) -> QWidget:
        widget = QWidget()
        form = QFormLayout(widget)
        self.style_combo = QComboBox()
        self.style_combo.addItems(list(WINDOW_STYLES))
        form.addRow("Style", self.style_combo)
        return widget

    # State
    def _on_mode_changed(self, _index: int) -> None:
        self._show_error("")
        self._refresh_state()

    def _refresh_state(self) -> None:
        mode = self.tabs.currentIndex()
        loading = self.view_model.loading
        ready = True
        if mode == self.GENERATE:
            ready = bool(self.prompt_edit.text().strip())
        elif mode == self.UPLOAD:
            ready = self._upload_path is not None
        self.submit_button.setEnabled(ready and not loading)
        self.submit_button.setText("Adding..." if loading else "Add")
        self.tabs.setEnabled(not loading)

    def _show_error(self, message: str) -> None:
        self.error_label.setText(message)
        self.error_label.setVisible(bool(message))

    def _choose_file(self) -> None:
        filename, _ = QFileDialog.getOpenFileName(self, "Select image", "", IMAGE_FILE_FILTER)
        if not filename:
            return
        path = Path(filename)
        try:
            validate_upload(path)
        except (AcquisitionValidationError, GatewayError) as exc:
            self._upload_path = None
            self.file_label.setText("No file selected")
            self._show_error(str(exc))
        else:
            self._upload_path = path
            self.file_label.setText(path.name)
            self._show_error("")
        self._refresh_state()

    # Submission
    def submit(self) -> None:
        if not self.submit_button.isEnabled():
            return
        mode = self.tabs.currentIndex()
        if mode == self.WINDOW:
            self.view_model.add_window(self.style_combo.currentText())
            self.accept()
            return

        gateway = self.view_model.gateway
        if mode == self.GENERATE:
            prompt = self.prompt_edit.text()
            request = lambda: gateway.acquire_from_prompt(prompt)  # noqa: E731
        else:
            path = self._upload_path
            request = lambda: gateway.acquire_from_file(path)  # noqa: E731

        try:
            self.view_model.begin_acquisition()
        except AcquisitionInProgressError as exc:
            self._show_error(str(exc))
            return
        self._show_error("")
        self._refresh_state()
        self._worker = _AcquireWorker(request, self)
        self._worker.acquired.connect(self._on_acquired)
        self._worker.failed.connect(self._on_failed)
        self._worker.finished.connect(self._worker.deleteLater)
        self._worker.start()

    def _on_acquired(self, image: AcquiredImage) -> None:
        self._release_worker()
        if self.view_model.complete_acquisition(image) is None:
            self._show_error(self.view_model.error)
            self._refresh_state()
            return
        self.accept()

    def _on_failed(self, exc: Exception) -> None:
        self._release_worker()
        self.view_model.handle_acquisition_error(exc)
        self._show_error(self.view_model.error)
        self._refresh_state()

    def _release_worker(self) -> None:
        # The result signal is emitted as the last step of run(), so this wait is short.
        if self._worker is not None:
            self._worker.wait()
            self._worker = None

    def reject(self) -> None:  # type: ignore[override]
        # Closing while a request is pending is not allowed; the result must land on the board.
        if self.view_model.loading:
            return
        super().reject()


class WallSettingsDialog(QDialog):
    """Edit the wall background colour and texture."""

    def __init__(self, view_model: BoardViewModel, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.view_model = view_model
        settings = view_model.store.settings
        self._color = QColor(settings.background_color)
        self.setWindowTitle("Wall settings")

        self.color_button = QPushButton()
        self.color_button.clicked.connect(self._choose_color)
        self.texture_combo = QComboBox()
        self.texture_combo.addItems(list(WALL_TEXTURES))
        self.texture_combo.setCurrentText(settings.texture)
        self._update_color_button()

        form = QFormLayout()
        form.addRow("Background", self.color_button)
        form.addRow("Texture", self.texture_combo)

        buttons = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel)
        buttons.accepted.connect(self.apply)
        buttons.rejected.connect(self.reject)

        layout = QVBoxLayout(self)
        layout.addLayout(form)
        layout.addWidget(buttons)

    def _update_color_button(self) -> None:
        name = self._color.name()
        self.color_button.setText(name.upper())
        self.color_button.setStyleSheet(f"background-color: {name}; padding: 4px 12px;")

    def _choose_color(self) -> None:
        color = QColorDialog.getColor(self._color, self, "Wall colour")
        if color.isValid():
            self._color = color
            self._update_color_button()

    def apply(self) -> None:
        self.view_model.set_wall_settings(
            background_color=self._color.name().upper(),
            texture=self.texture_combo.currentText(),
        )
        self.accept()


__all__ = ["AddItemDialog", "WallSettingsDialog"]
