# src/chip8_tracer/ui/register_view.py
"""
CPUのレジスタ、フラグ、コールスタックを表示するウィジェット。
AbstractCpuのメタデータを利用して動的にUIを構築します。
"""
from typing import Dict, List, Optional

from PySide6.QtCore import Qt
from PySide6.QtWidgets import QFormLayout, QGroupBox, QLabel, QListWidget, QVBoxLayout, QWidget

from chip8_tracer.arch.chip8.cpu import Chip8Cpu
from .theme import COLOR_PANEL, COLOR_TEXT, COLOR_VALUE, get_monospace_font, get_monospace_font_family

_GROUP_STYLE = """
    QGroupBox {
        font-weight: bold;
        border: 1px solid #222;
        border-radius: 4px;
        margin-top: 20px;
        color: #EEE;
        background-color: #121212;
    }
    QGroupBox::title {
        subcontrol-origin: margin;
        subcontrol-position: top left;
        padding: 0 5px;
        left: 10px;
        color: #00AAAA;
    }
"""


# @intent:responsibility CPUのレジスタ値・フラグ・コールスタックを表示するUIウィジェットを提供します。
class RegisterView(QWidget):
    """
    CPUから取得したレイアウト情報に基づいてフィールドを生成し、
    update_registers() で現在値を反映します。
    """
    def __init__(self, parent=None):
        super().__init__(parent)
        self.setStyleSheet(f"background-color: {COLOR_PANEL}; color: {COLOR_TEXT};")

        self.layout = QVBoxLayout(self)
        self.layout.setContentsMargins(5, 5, 5, 5)

        self._font_family = get_monospace_font_family()
        self._register_labels: Dict[str, QLabel] = {}
        self._register_widths: Dict[str, int] = {}
        self._flag_labels: Dict[str, QLabel] = {}
        self.stack_list: Optional[QListWidget] = None
        self._cpu: Optional[Chip8Cpu] = None

    # @intent:responsibility 表示対象のCPUを設定し、UIレイアウトを構築します。
    def set_cpu(self, cpu: Chip8Cpu) -> None:
        self._cpu = cpu
        self._setup_ui()
        self.update_registers()

    def _setup_ui(self):
        # 既存のウィジェットをクリア
        while self.layout.count():
            item = self.layout.takeAt(0)
            if item.widget():
                item.widget().deleteLater()
        self._register_labels.clear()
        self._register_widths.clear()
        self._flag_labels.clear()

        for group in self._cpu.get_register_layout():
            group_box, group_layout = self._create_group(group.group_name)
            for reg in group.registers:
                hex_width = (reg.width + 3) // 4  # 16bit -> 4chars, 8bit -> 2chars
                self._register_widths[reg.name] = hex_width
                self._register_labels[reg.name] = self._add_row(group_layout, reg.name, f"0x{'0' * hex_width}")
            self.layout.addWidget(group_box)

        flag_box, flag_layout = self._create_group("Flags")
        for flag_name in self._cpu.get_flag_state():
            self._flag_labels[flag_name] = self._add_row(flag_layout, flag_name, "0")
        self.layout.addWidget(flag_box)

        stack_box = QGroupBox("Call Stack")
        stack_box.setStyleSheet(_GROUP_STYLE)
        stack_layout = QVBoxLayout(stack_box)
        stack_layout.setContentsMargins(10, 15, 10, 10)
        self.stack_list = QListWidget()
        self.stack_list.setFont(get_monospace_font(10))
        self.stack_list.setStyleSheet(f"color: {COLOR_VALUE}; border: none;")
        stack_layout.addWidget(self.stack_list)
        self.layout.addWidget(stack_box)

        self.layout.addStretch()

    def _create_group(self, title: str):
        group_box = QGroupBox(title)
        group_box.setStyleSheet(_GROUP_STYLE)
        group_layout = QFormLayout(group_box)
        group_layout.setLabelAlignment(Qt.AlignLeft)
        group_layout.setContentsMargins(10, 15, 10, 10)
        group_layout.setSpacing(5)
        return group_box, group_layout

    def _add_row(self, layout: QFormLayout, name: str, initial: str) -> QLabel:
        label_name = QLabel(f"{name}:")
        label_name.setStyleSheet(f"font-weight: bold; color: {COLOR_TEXT};")
        label_value = QLabel(initial)
        label_value.setStyleSheet(f"font-family: '{self._font_family}', monospace; color: {COLOR_VALUE};")
        label_value.setAlignment(Qt.AlignRight)
        layout.addRow(label_name, label_value)
        return label_value

    # @intent:responsibility 現在のCPU状態を取得し、表示値を更新します。
    def update_registers(self):
        if not self._cpu:
            return

        for name, value in self._cpu.get_register_map().items():
            if name in self._register_labels:
                width = self._register_widths[name]
                self._register_labels[name].setText(f"0x{value:0{width}X}")

        for name, is_set in self._cpu.get_flag_state().items():
            if name in self._flag_labels:
                self._flag_labels[name].setText("1" if is_set else "0")

        self._update_stack(self._cpu.get_state().call_stack())

    # 新しい戻りアドレスが先頭に来るように表示する
    def _update_stack(self, return_addresses: List[int]) -> None:
        self.stack_list.clear()
        for depth, address in reversed(list(enumerate(return_addresses))):
            self.stack_list.addItem(f"{depth:2d}: {address:04X}")

    def register_text(self, name: str) -> str:
        return self._register_labels[name].text()

    def flag_text(self, name: str) -> str:
        return self._flag_labels[name].text()
