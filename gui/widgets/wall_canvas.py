# Path: gui/widgets/wall_canvas.py
# Purpose: Paint the wall and host one frame widget per board entity.
# Layer: gui.
# Details: Rebuilds frames from store notifications and forwards canvas-level pointer events to the pointer bus.

from __future__ import annotations

import random
from typing import Dict, Optional

from PySide6.QtCore import QPointF, QRectF, Qt
from PySide6.QtGui import QColor, QImage, QPainter, QPen, QPixmap
from PySide6.QtWidgets import QWidget

from core.board import PICTURES, SETTINGS, WINDOWS
from core.models.domain import Picture, WallSettings
from ..view_models import BoardViewModel
from .entity_frame import EntityFrame, PictureFrame, WindowFrame
from .image_loader import ImageLoader


class WallCanvas(QWidget):
    """Central widget rendering the wall background and its pictures and windows."""

    def __init__(self, view_model: BoardViewModel, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.view_model = view_model
        self._frames: Dict[str, EntityFrame] = {}
        self._pixmaps: Dict[str, QPixmap] = {}
        self._pending_urls: set[str] = set()
        self._loader = ImageLoader(self)
        self._loader.imageLoaded.connect(self._on_image_loaded)
        self._unsubscribe = view_model.store.subscribe(self._on_store_changed)
        self.setMinimumSize(640, 480)
        self.setAutoFillBackground(False)
        self.sync_frames()

    def frame_for(self, entity_id: str) -> Optional[EntityFrame]:
        return self._frames.get(entity_id)

    # Store synchronisation
    def _on_store_changed(self, slot: str) -> None:
        if slot == SETTINGS:
            self.update()
        elif slot in (PICTURES, WINDOWS):
            self.sync_frames()

    def sync_frames(self) -> None:
        """Create, update, and drop frames so they mirror the store in insertion order."""

        store = self.view_model.store
        entities = list(store.windows) + list(store.pictures)
        live_ids = {entity.id for entity in entities}
        for entity_id in [known for known in self._frames if known not in live_ids]:
            frame = self._frames.pop(entity_id)
            frame.controller.cancel()
            frame.hide()
            frame.deleteLater()

        for entity in entities:
            frame = self._frames.get(entity.id)
            if frame is None:
                frame = self._create_frame(entity)
                self._frames[entity.id] = frame
            elif frame.entity != entity:
                frame.set_entity(entity)
            frame.raise_()

        live_urls = {picture.url for picture in store.pictures}
        for url in [cached for cached in self._pixmaps if cached not in live_urls]:
            del self._pixmaps[url]

    def _create_frame(self, entity) -> EntityFrame:
        controller = self.view_model.controller_for(entity.id)
        if isinstance(entity, Picture):
            frame: EntityFrame = PictureFrame(entity, controller, self.view_model.bus, self)
            self._request_image(frame)  # type: ignore[arg-type]
        else:
            frame = WindowFrame(entity, controller, self.view_model.bus, self)
        frame.removeRequested.connect(self.view_model.remove)
        frame.show()
        return frame

    # Images
    def _request_image(self, frame: PictureFrame) -> None:
        pixmap = self._pixmaps.get(frame.url)
        if pixmap is not None:
            frame.set_pixmap(pixmap)
            return
        if frame.url not in self._pending_urls:
            self._pending_urls.add(frame.url)
            self._loader.load(frame.url)

    def _on_image_loaded(self, url: str, image: QImage) -> None:
        self._pending_urls.discard(url)
        pixmap = QPixmap.fromImage(image)
        if any(isinstance(frame, PictureFrame) and frame.url == url for frame in self._frames.values()):
            self._pixmaps[url] = pixmap
        for frame in self._frames.values():
            if isinstance(frame, PictureFrame) and frame.url == url:
                frame.set_pixmap(pixmap)

    # Qt events
    def resizeEvent(self, event) -> None:  # type: ignore[override]
        super().resizeEvent(event)
        self.view_model.set_viewport(self.width(), self.height())

    def mouseMoveEvent(self, event) -> None:  # type: ignore[override]
        position = event.position()
        self.view_model.bus.dispatch_move(position.x(), position.y())

    def mouseReleaseEvent(self, event) -> None:  # type: ignore[override]
        position = event.position()
        self.view_model.bus.dispatch_up(position.x(), position.y())

    def closeEvent(self, event) -> None:  # type: ignore[override]
        self._unsubscribe()
        super().closeEvent(event)

    def paintEvent(self, event) -> None:  # type: ignore[override]
        painter = QPainter(self)
        settings = self.view_model.store.settings
        painter.fillRect(self.rect(), QColor(settings.background_color))
        paint_texture(painter, QRectF(self.rect()), settings)
        painter.end()


def paint_texture(painter: QPainter, rect: QRectF, settings: WallSettings) -> None:
    """Overlay the wall texture pattern on an already filled background."""

    texture = settings.texture
    if texture == "none":
        return
    base = QColor(settings.background_color)
    shade = base.darker(115)
    painter.save()
    if texture == "lines":
        painter.setPen(QPen(QColor(0, 0, 0, 20), 1))
        y = rect.top() + 40
        while y < rect.bottom():
            painter.drawLine(QPointF(rect.left(), y), QPointF(rect.right(), y))
            y += 40
    elif texture == "brick":
        painter.setPen(QPen(shade, 2))
        row_height, brick_width = 30, 60
        row = 0
        y = rect.top()
        while y < rect.bottom():
            painter.drawLine(QPointF(rect.left(), y), QPointF(rect.right(), y))
            x = rect.left() + (brick_width / 2 if row % 2 else 0)
            while x < rect.right():
                painter.drawLine(QPointF(x, y), QPointF(x, y + row_height))
                x += brick_width
            y += row_height
            row += 1
    elif texture == "wood":
        plank = 50
        x = rect.left()
        index = 0
        while x < rect.right():
            tone = base.darker(104 + (index % 3) * 3)
            painter.fillRect(QRectF(x, rect.top(), plank, rect.height()), tone)
            painter.setPen(QPen(shade, 2))
            painter.drawLine(QPointF(x, rect.top()), QPointF(x, rect.bottom()))
            x += plank
            index += 1
    elif texture == "plaster":
        # Fixed seed keeps the speckle pattern stable between repaints.
        rng = random.Random(7)
        painter.setPen(Qt.NoPen)
        painter.setBrush(QColor(0, 0, 0, 14))
        count = int(rect.width() * rect.height() / 900)
        for _ in range(count):
            painter.drawEllipse(
                QPointF(rect.left() + rng.random() * rect.width(), rect.top() + rng.random() * rect.height()),
                1.5,
                1.5,
            )
    elif texture == "concrete":
        panel = 120
        painter.setPen(QPen(QColor(0, 0, 0, 30), 1))
        painter.setBrush(QColor(0, 0, 0, 40))
        y = rect.top()
        while y < rect.bottom():
            x = rect.left()
            while x < rect.right():
                painter.drawLine(QPointF(x, y), QPointF(x + panel, y))
                painter.drawLine(QPointF(x, y), QPointF(x, y + panel))
                for dx, dy in ((15, 15), (panel - 15, 15), (15, panel - 15), (panel - 15, panel - 15)):
                    painter.drawEllipse(QPointF(x + dx, y + dy), 2.5, 2.5)
                x += panel
            y += panel
    painter.restore()


__all__ = ["WallCanvas", "paint_texture"]
