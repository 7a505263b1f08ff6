"""
逆アセンブルコードを表示するウィジェット。
"""
from typing import List, Optional, Set, Tuple

from PySide6.QtCore import Qt, Signal, Slot
from PySide6.QtGui import QColor
from PySide6.QtWidgets import QHeaderView, QTableWidget, QTableWidgetItem, QVBoxLayout, QWidget

from chip8_tracer.arch.chip8.cpu import Chip8Cpu
from .theme import COLOR_BG, COLOR_BREAKPOINT, COLOR_HIGHLIGHT, get_monospace_font

# 一度に逆アセンブルするバイト数
DISASSEMBLY_WINDOW = 0x400


# @intent:responsibility 逆アセンブルされたコードを表形式で表示し、現在のPCとブレークポイントを示すUIウィジェットを提供します。
class CodeView(QWidget):
    """
    逆アセンブルコードを表示するウィジェット。
    先頭列をダブルクリックするとブレークポイントの切り替えを要求します。
    """
    breakpoint_toggled = Signal(int)

    def __init__(self, parent=None):
        super().__init__(parent)
        self.layout = QVBoxLayout(self)
        self.layout.setContentsMargins(0, 0, 0, 0)

        self.table = QTableWidget()
        self.table.setColumnCount(4)
        self.table.setHorizontalHeaderLabels(["", "Address", "Bytes", "Mnemonic"])
        header = self.table.horizontalHeader()
        header.setSectionResizeMode(0, QHeaderView.ResizeToContents)  # Breakpoint marker
        header.setSectionResizeMode(1, QHeaderView.ResizeToContents)  # Address
        header.setSectionResizeMode(2, QHeaderView.ResizeToContents)  # Bytes
        header.setSectionResizeMode(3, QHeaderView.Stretch)           # Mnemonic

        self.table.setFont(get_monospace_font(10))
        self.table.verticalHeader().setVisible(False)
        self.table.setEditTriggers(QTableWidget.NoEditTriggers)
        self.table.setSelectionBehavior(QTableWidget.SelectRows)
        self.table.setShowGrid(False)
        self.table.setStyleSheet(f"background-color: {COLOR_BG}; color: #BBBBBB; gridline-color: #303030;")
        self.table.cellDoubleClicked.connect(self._on_cell_double_clicked)
        self.layout.addWidget(self.table)

        self._cpu: Optional[Chip8Cpu] = None
        self._breakpoints: Set[int] = set()
        self.current_row = -1

        # 現在表示している逆アセンブルデータ [(addr, hex, mnemonic), ...]
        self.disassembled_data: List[Tuple[int, str, str]] = []
        # 逆アセンブルした時点の表示範囲のメモリ内容
        self._window_start = 0
        self._window_bytes = b""

    def set_cpu(self, cpu: Chip8Cpu) -> None:
        self._cpu = cpu
        self.reset_cache()

    # @intent:responsibility 指定されたPC周辺のメモリを逆アセンブルして表示を更新します。
    def update_code(self, pc: int):
        """
        PCが現在の表示範囲内にあれば、再逆アセンブルせずにハイライト移動のみ行います。
        奇数アドレスへのジャンプなど命令境界がずれた場合も再逆アセンブルします。
        表示範囲のメモリが書き換えられていれば（Fx33/Fx55による書き込みなど）キャッシュを捨てます。
        """
        if self._cpu is None:
            return

        if self.disassembled_data and self._read_window(self._window_start) != self._window_bytes:
            self.reset_cache()

        row_index = self._row_of(pc)
        if row_index == -1:
            self.disassembled_data = self._cpu.disassemble(pc, DISASSEMBLY_WINDOW)
            self._window_start = pc
            self._window_bytes = self._read_window(pc)
            self._fill_table()
            row_index = self._row_of(pc)

        self.current_row = row_index
        self._apply_highlight()

        if row_index != -1:
            # 先に実行される行が見えるように、数行先までスクロールする
            scroll_margin = 5
            self.table.scrollToItem(self.table.item(row_index, 1), QTableWidget.EnsureVisible)
            look_ahead_index = min(row_index + scroll_margin, self.table.rowCount() - 1)
            if look_ahead_index > row_index:
                self.table.scrollToItem(self.table.item(look_ahead_index, 1), QTableWidget.EnsureVisible)

    # @intent:responsibility ブレークポイントの表示を更新します。
    def set_breakpoints(self, breakpoints: List[int]) -> None:
        self._breakpoints = set(breakpoints)
        for row, (addr, _, _) in enumerate(self.disassembled_data):
            marker = self.table.item(row, 0)
            if marker is not None:
                marker.setText("●" if addr in self._breakpoints else "")

    # @intent:responsibility 内部キャッシュをクリアし、強制的な再描画を準備します。
    def reset_cache(self):
        """
        メモリ内容が外部で大幅に変更された場合（例：新しいプログラムのロード）に呼び出してください。
        """
        self.disassembled_data = []
        self._window_bytes = b""
        self.current_row = -1
        self.table.setRowCount(0)

    def _read_window(self, start: int) -> bytes:
        bus = self._cpu.bus
        end = min(start + DISASSEMBLY_WINDOW, bus.get_address_limit())
        return bytes(bus.peek(address) for address in range(start, end))

    def _row_of(self, address: int) -> int:
        for i, (addr, _, _) in enumerate(self.disassembled_data):
            if addr == address:
                return i
        return -1

    def _fill_table(self) -> None:
        symbols = {}
        if self._cpu is not None:
            symbols = {addr: name for name, addr in self._cpu.get_symbol_map().items()}

        self.table.setRowCount(len(self.disassembled_data))
        for row, (addr, hex_dump, mnemonic) in enumerate(self.disassembled_data):
            marker_item = QTableWidgetItem("●" if addr in self._breakpoints else "")
            marker_item.setForeground(QColor(COLOR_BREAKPOINT))
            label = symbols.get(addr)
            text = f"{label}: {mnemonic}" if label else mnemonic
            self.table.setItem(row, 0, marker_item)
            self.table.setItem(row, 1, QTableWidgetItem(f"{addr:04X}"))
            self.table.setItem(row, 2, QTableWidgetItem(hex_dump))
            self.table.setItem(row, 3, QTableWidgetItem(text))

    def _apply_highlight(self) -> None:
        highlight = QColor(COLOR_HIGHLIGHT)
        normal = QColor(COLOR_BG)
        for row in range(self.table.rowCount()):
            color = highlight if row == self.current_row else normal
            for col in range(self.table.columnCount()):
                item = self.table.item(row, col)
                if item is not None:
                    item.setBackground(color)

    @Slot(int, int)
    def _on_cell_double_clicked(self, row: int, col: int):
        if 0 <= row < len(self.disassembled_data):
            self.breakpoint_toggled.emit(self.disassembled_data[row][0])
