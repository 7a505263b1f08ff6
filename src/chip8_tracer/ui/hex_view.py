# src/chip8_tracer/ui/hex_view.py
"""
メモリの内容を16進数とASCIIで表示するウィジェット。
"""
from typing import List, Optional

from PySide6.QtGui import QColor, QTextCharFormat, QTextCursor, QTextOption
from PySide6.QtWidgets import QPlainTextEdit, QVBoxLayout, QWidget

from chip8_tracer.common.errors import OutOfBounds
from chip8_tracer.transport.bus import Bus
from .theme import COLOR_BG, COLOR_HIGHLIGHT, get_monospace_font

BYTES_PER_ROW = 16


# @intent:utility_function メモリ範囲を "ADDR: HEX.. ASCII" 形式の行リストに変換します（ログを汚さないようにpeekを使用）。
def format_hex_dump(bus: Bus, start_address: int, end_address: int) -> List[str]:
    lines = []
    current_address = start_address - (start_address % BYTES_PER_ROW)
    while current_address < end_address:
        hex_part = []
        ascii_part = []
        for addr in range(current_address, current_address + BYTES_PER_ROW):
            try:
                byte_val = bus.peek(addr)
                hex_part.append(f"{byte_val:02X}")
                ascii_part.append(chr(byte_val) if 32 <= byte_val <= 126 else '.')
            except OutOfBounds:
                hex_part.append("XX")
                ascii_part.append(".")
        lines.append(
            f"{current_address:04X}: {' '.join(hex_part).ljust(BYTES_PER_ROW * 3 - 1)} {''.join(ascii_part)}"
        )
        current_address += BYTES_PER_ROW
    return lines


# @intent:responsibility メモリの内容を16進数とASCII形式で表示するUIウィジェットを提供します。
class HexView(QWidget):
    """
    アドレス空間全体（4KB）を表示し、指定アドレス（通常はIレジスタ）の行をハイライトします。
    """
    def __init__(self, parent=None):
        super().__init__(parent)
        self.layout = QVBoxLayout(self)
        self.layout.setContentsMargins(0, 0, 0, 0)
        self.editor = QPlainTextEdit(self)
        self.editor.setFont(get_monospace_font(10))
        self.editor.setReadOnly(True)
        self.editor.setWordWrapMode(QTextOption.NoWrap)
        self.editor.setStyleSheet(f"background-color: {COLOR_BG}; color: #BBBBBB;")
        self.layout.addWidget(self.editor)
        self.lines: List[str] = []

    # @intent:responsibility メモリを読み込み、表示を更新します。特定のアドレスをハイライトすることも可能です。
    def update_memory(self, bus: Bus, highlight_address: Optional[int] = None):
        scroll_bar = self.editor.verticalScrollBar()
        scroll_pos = scroll_bar.value()

        self.lines = format_hex_dump(bus, 0, bus.get_address_limit())
        self.editor.setPlainText("\n".join(self.lines))

        if highlight_address is not None:
            line_to_highlight = highlight_address // BYTES_PER_ROW
            if 0 <= line_to_highlight < len(self.lines):
                cursor = self.editor.textCursor()
                cursor.movePosition(QTextCursor.Start)
                cursor.movePosition(QTextCursor.Down, QTextCursor.MoveAnchor, line_to_highlight)
                cursor.select(QTextCursor.LineUnderCursor)
                fmt = QTextCharFormat()
                fmt.setBackground(QColor(COLOR_HIGHLIGHT))
                cursor.mergeCharFormat(fmt)
                self.editor.setTextCursor(cursor)
                self.editor.ensureCursorVisible()
                return

        # ハイライトがない場合、ユーザーのスクロール位置を保つ
        scroll_bar.setValue(scroll_pos)
