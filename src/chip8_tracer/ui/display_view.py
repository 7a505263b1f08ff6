# src/chip8_tracer/ui/display_view.py
"""
フレームバッファを描画するウィジェット。
"""
from typing import Optional

from PySide6.QtCore import QRectF, QSize, Qt
from PySide6.QtGui import QColor, QPainter, QPaintEvent
from PySide6.QtWidgets import QSizePolicy, QWidget

from chip8_tracer.arch.chip8.display import DISPLAY_HEIGHT, DISPLAY_WIDTH, Framebuffer
from .theme import COLOR_PIXEL_OFF, COLOR_PIXEL_ON

DEFAULT_SCALE = 10


# @intent:responsibility 実行エンジンのフレームバッファ（64x32の点灯/消灯グリッド）を拡大表示します。
class DisplayView(QWidget):
    """
    エンジンは描画を行わないため、ドライバが毎フレーム update_frame() で最新のグリッドを渡します。
    サウンドタイマー動作中は枠線の色を変えて示します。
    """
    def __init__(self, parent=None):
        super().__init__(parent)
        self._framebuffer: Optional[Framebuffer] = None
        self._sound_active = False
        self._on_color = QColor(COLOR_PIXEL_ON)
        self._off_color = QColor(COLOR_PIXEL_OFF)
        self.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Expanding)
        self.setMinimumSize(DISPLAY_WIDTH * 4, DISPLAY_HEIGHT * 4)

    def sizeHint(self) -> QSize:
        return QSize(DISPLAY_WIDTH * DEFAULT_SCALE, DISPLAY_HEIGHT * DEFAULT_SCALE)

    @property
    def sound_active(self) -> bool:
        return self._sound_active

    # @intent:responsibility 表示するフレームバッファを更新し、再描画を要求します。
    def update_frame(self, framebuffer: Framebuffer, sound_active: bool = False) -> None:
        self._framebuffer = framebuffer
        self._sound_active = sound_active
        self.update()

    # @intent:responsibility 指定座標のピクセルが点灯して表示されているかを返します（テスト・検査用）。
    def pixel_at(self, x: int, y: int) -> bool:
        if self._framebuffer is None:
            return False
        return self._framebuffer[y][x]

    def lit_pixel_count(self) -> int:
        if self._framebuffer is None:
            return 0
        return sum(sum(1 for lit in row if lit) for row in self._framebuffer)

    def paintEvent(self, event: QPaintEvent) -> None:
        painter = QPainter(self)
        painter.fillRect(self.rect(), self._off_color)

        if self._framebuffer is not None:
            height = len(self._framebuffer)
            width = len(self._framebuffer[0]) if height else 0
            if width and height:
                # アスペクト比を保ったまま中央に配置する
                scale = min(self.width() / width, self.height() / height)
                offset_x = (self.width() - width * scale) / 2
                offset_y = (self.height() - height * scale) / 2
                for y, row in enumerate(self._framebuffer):
                    for x, lit in enumerate(row):
                        if lit:
                            painter.fillRect(
                                QRectF(offset_x + x * scale, offset_y + y * scale, scale, scale),
                                self._on_color,
                            )

        if self._sound_active:
            painter.setPen(QColor(Qt.yellow))
            painter.drawRect(self.rect().adjusted(0, 0, -1, -1))
        painter.end()
