# Path: gui/widgets/entity_frame.py
# Purpose: Render one wall entity and feed its mouse gestures to the board interaction controller.
# Layer: gui.
# Details: Frames overhang their entity by the remove-button offset; PictureFrame and WindowFrame differ only in painting.

from __future__ import annotations

from typing import Optional

from PySide6.QtCore import QPointF, QRectF, Qt, Signal
from PySide6.QtGui import QBrush, QColor, QLinearGradient, QPainter, QPainterPath, QPen, QPixmap
from PySide6.QtWidgets import QWidget

from core.board import BUTTON_OFFSET, BUTTON_SIZE, HANDLE_SIZE, HitTarget, InteractionController, PointerBus
from core.models.domain import Entity, Picture


class EntityFrame(QWidget):
    """Base widget for an entity on the wall canvas."""

    removeRequested = Signal(str)

    def __init__(
        self,
        entity: Entity,
        controller: InteractionController,
        bus: PointerBus,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self.entity = entity
        self.controller = controller
        self.bus = bus
        self.setAttribute(Qt.WA_Hover, True)
        self.sync_geometry()

    @property
    def entity_id(self) -> str:
        return self.entity.id

    def set_entity(self, entity: Entity) -> None:
        self.entity = entity
        self.sync_geometry()
        self.update()

    def sync_geometry(self) -> None:
        offset = int(BUTTON_OFFSET)
        self.setGeometry(
            int(round(self.entity.x)),
            int(round(self.entity.y)) - offset,
            int(round(self.entity.width)) + offset,
            int(round(self.entity.height)) + offset,
        )

    def content_rect(self) -> QRectF:
        return QRectF(0, BUTTON_OFFSET, self.entity.width, self.entity.height)

    def _canvas_point(self, event) -> QPointF:
        return self.mapToParent(event.position())

    # Qt events
    def enterEvent(self, event) -> None:  # type: ignore[override]
        self.controller.pointer_enter()
        self.update()
        super().enterEvent(event)

    def leaveEvent(self, event) -> None:  # type: ignore[override]
        self.controller.pointer_leave()
        self.update()
        super().leaveEvent(event)

    def mousePressEvent(self, event) -> None:  # type: ignore[override]
        if event.button() != Qt.LeftButton:
            event.ignore()
            return
        point = self._canvas_point(event)
        target = self.controller.pointer_down(point.x(), point.y())
        if target is HitTarget.REMOVE_BUTTON:
            self.removeRequested.emit(self.entity_id)
        elif target is HitTarget.NONE:
            event.ignore()
            return
        event.accept()
        self.update()

    def mouseMoveEvent(self, event) -> None:  # type: ignore[override]
        # The pressed widget holds the mouse grab, so window-level moves arrive here.
        point = self._canvas_point(event)
        self.bus.dispatch_move(point.x(), point.y())

    def mouseReleaseEvent(self, event) -> None:  # type: ignore[override]
        point = self._canvas_point(event)
        self.bus.dispatch_up(point.x(), point.y())
        self.update()

    def paintEvent(self, event) -> None:  # type: ignore[override]
        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing, True)
        self.paint_content(painter, self.content_rect())
        if self.controller.controls_visible:
            self._paint_controls(painter)
        painter.end()

    def paint_content(self, painter: QPainter, rect: QRectF) -> None:
        raise NotImplementedError

    def _paint_controls(self, painter: QPainter) -> None:
        width = self.entity.width
        button = QRectF(width - BUTTON_SIZE + BUTTON_OFFSET, 0, BUTTON_SIZE, BUTTON_SIZE)
        painter.setPen(Qt.NoPen)
        painter.setBrush(QColor("#ef4444"))
        painter.drawEllipse(button)
        painter.setPen(QPen(QColor("white"), 2.5))
        inset = button.adjusted(11, 11, -11, -11)
        painter.drawLine(inset.topLeft(), inset.bottomRight())
        painter.drawLine(inset.topRight(), inset.bottomLeft())

        content = self.content_rect()
        handle = QRectF(
            content.right() - HANDLE_SIZE, content.bottom() - HANDLE_SIZE, HANDLE_SIZE, HANDLE_SIZE
        )
        painter.setPen(Qt.NoPen)
        painter.setBrush(QColor(59, 130, 246, 220))
        painter.drawRoundedRect(handle, 4, 4)
        painter.setPen(QPen(QColor("white"), 1.5))
        for step in (6, 11, 16):
            painter.drawLine(
                QPointF(handle.right() - step, handle.bottom() - 3),
                QPointF(handle.right() - 3, handle.bottom() - step),
            )


class PictureFrame(EntityFrame):
    """Framed picture with its prompt as tooltip."""

    def __init__(self, entity: Picture, controller, bus, parent: Optional[QWidget] = None) -> None:
        super().__init__(entity, controller, bus, parent)
        self._pixmap: Optional[QPixmap] = None
        self.setToolTip(entity.prompt)

    @property
    def url(self) -> str:
        return self.entity.url  # type: ignore[union-attr]

    def set_pixmap(self, pixmap: Optional[QPixmap]) -> None:
        self._pixmap = pixmap
        self.update()

    def paint_content(self, painter: QPainter, rect: QRectF) -> None:
        painter.setPen(QPen(QColor("#92400e"), 1))
        painter.setBrush(QColor("#fffbeb"))
        painter.drawRect(rect.adjusted(0.5, 0.5, -0.5, -0.5))
        inner = rect.adjusted(10, 10, -10, -10)
        if self._pixmap is None or self._pixmap.isNull():
            painter.setPen(QColor("#a8a29e"))
            placeholder = "loading..." if self._pixmap is None else "image unavailable"
            painter.drawText(inner, Qt.AlignCenter | Qt.TextWordWrap, placeholder)
            return
        scaled = self._pixmap.scaled(
            inner.size().toSize(), Qt.KeepAspectRatioByExpanding, Qt.SmoothTransformation
        )
        source = QRectF(
            (scaled.width() - inner.width()) / 2,
            (scaled.height() - inner.height()) / 2,
            inner.width(),
            inner.height(),
        )
        painter.drawPixmap(inner, scaled, source)


class WindowFrame(EntityFrame):
    """Decorative window drawn in one of the supported styles."""

    def paint_content(self, painter: QPainter, rect: QRectF) -> None:
        style = self.entity.style  # type: ignore[union-attr]
        outline = window_path(style, rect.adjusted(2, 2, -2, -2))
        sky = QLinearGradient(rect.topLeft(), rect.bottomLeft())
        sky.setColorAt(0.0, QColor("#7dd3fc"))
        sky.setColorAt(1.0, QColor("#e0f2fe"))
        painter.setBrush(QBrush(sky))
        painter.setPen(QPen(QColor("#78350f"), 6))
        painter.drawPath(outline)

        painter.save()
        painter.setClipPath(outline)
        painter.setPen(QPen(QColor("#78350f"), 4))
        center = rect.center()
        if style == "bay":
            third = rect.width() / 3
            for index in (1, 2):
                x = rect.left() + third * index
                painter.drawLine(QPointF(x, rect.top()), QPointF(x, rect.bottom()))
        else:
            painter.drawLine(QPointF(center.x(), rect.top()), QPointF(center.x(), rect.bottom()))
            painter.drawLine(QPointF(rect.left(), center.y()), QPointF(rect.right(), center.y()))
        painter.restore()


def window_path(style: str, rect: QRectF) -> QPainterPath:
    """Build the outline of a window style inside rect."""

    path = QPainterPath()
    if style == "circular":
        path.addEllipse(rect)
    elif style == "arched":
        radius = rect.width() / 2
        arch_top = min(radius, rect.height() / 2)
        path.moveTo(rect.left(), rect.bottom())
        path.lineTo(rect.left(), rect.top() + arch_top)
        path.arcTo(QRectF(rect.left(), rect.top(), rect.width(), arch_top * 2), 180, -180)
        path.lineTo(rect.right(), rect.bottom())
        path.closeSubpath()
    elif style == "gothic":
        shoulder = rect.top() + rect.height() * 0.4
        path.moveTo(rect.left(), rect.bottom())
        path.lineTo(rect.left(), shoulder)
        path.quadTo(QPointF(rect.left(), rect.top() + rect.height() * 0.1), QPointF(rect.center().x(), rect.top()))
        path.quadTo(QPointF(rect.right(), rect.top() + rect.height() * 0.1), QPointF(rect.right(), shoulder))
        path.lineTo(rect.right(), rect.bottom())
        path.closeSubpath()
    elif style == "bay":
        inset = rect.width() * 0.12
        path.moveTo(rect.left(), rect.bottom())
        path.lineTo(rect.left() + inset, rect.top())
        path.lineTo(rect.right() - inset, rect.top())
        path.lineTo(rect.right(), rect.bottom())
        path.closeSubpath()
    else:
        path.addRect(rect)
    return path


__all__ = ["EntityFrame", "PictureFrame", "WindowFrame", "window_path"]
