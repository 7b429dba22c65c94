# src/chip8_tracer/ui/display_view.py
"""
64x32のモノクロ画面を描画するウィジェット。
DisplayBufferは読み取り専用で参照し、変更はしません。
"""
from typing import Optional

from PySide6.QtWidgets import QWidget, QSizePolicy
from PySide6.QtGui import QPainter, QColor
from PySide6.QtCore import QSize

from chip8_tracer.arch.chip8.display import DisplayBuffer

COLOR_PIXEL_ON = QColor("#E0E0E0")
COLOR_PIXEL_OFF = QColor("#000000")
DEFAULT_SCALE = 10


# @intent:responsibility DisplayBufferの内容を整数倍に拡大して描画します。
class DisplayView(QWidget):
    def __init__(self, parent=None, scale: int = DEFAULT_SCALE):
        super().__init__(parent)
        self._display: Optional[DisplayBuffer] = None
        self._scale = scale
        self.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Expanding)

    def set_display(self, display: DisplayBuffer) -> None:
        self._display = display
        self.update()

    def sizeHint(self) -> QSize:
        if self._display is None:
            return QSize(64 * self._scale, 32 * self._scale)
        return QSize(self._display.width * self._scale, self._display.height * self._scale)

    # @intent:responsibility 前回の描画以降に画面が変化していれば再描画を要求します。
    def refresh(self) -> None:
        if self._display is not None and self._display.dirty:
            self._display.dirty = False
            self.update()

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.fillRect(self.rect(), COLOR_PIXEL_OFF)
        if self._display is None:
            return
        # ウィジェットの大きさに合わせて、縦横比を保ったまま拡大率を決める
        scale = max(1, min(self.width() // self._display.width, self.height() // self._display.height))
        for y, row in enumerate(self._display.rows()):
            for x, lit in enumerate(row):
                if lit:
                    painter.fillRect(x * scale, y * scale, scale, scale, COLOR_PIXEL_ON)
