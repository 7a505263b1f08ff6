# src/chip8_tracer/ui/breakpoint_view.py
"""
ブレークポイントとウォッチ条件の管理UIウィジェット。
"""
import re
from dataclasses import replace
from typing import Dict, List, Optional

from PySide6.QtCore import Qt, Signal, Slot
from PySide6.QtWidgets import (
    QComboBox, QGridLayout, QHeaderView, QLabel, QLineEdit, QMessageBox,
    QPushButton, QTableWidget, QTableWidgetItem, QVBoxLayout, QWidget,
)

from chip8_tracer.debugger.debugger import BreakpointCondition, BreakpointConditionType
from .theme import COLOR_PANEL, get_monospace_font

PC_BREAKPOINT = "PC"

_INPUT_STYLE = "background-color: #252525; color: #EEE; border: 1px solid #444;"
_BUTTON_STYLE = "background-color: #333; color: #EEE; border: 1px solid #444; padding: 4px;"


class BreakpointView(QWidget):
    """
    ブレークポイント（PCアドレス）とウォッチ条件の追加、削除、一覧表示を行うUIウィジェット。
    条件の行をダブルクリックすると有効/無効を切り替えます。
    """
    breakpoint_added = Signal(int)
    breakpoint_removed = Signal(int)
    condition_added = Signal(BreakpointCondition)
    condition_removed = Signal(BreakpointCondition)
    condition_updated = Signal(BreakpointCondition, BreakpointCondition)  # old, new

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setStyleSheet(f"background-color: {COLOR_PANEL}; color: #BBBBBB;")

        self.layout = QVBoxLayout(self)
        self.layout.setContentsMargins(5, 5, 5, 5)

        self.symbol_map: Dict[str, int] = {}
        self.reverse_symbol_map: Dict[int, str] = {}

        # Input Area
        add_form_layout = QGridLayout()
        add_form_layout.addWidget(QLabel("Type:"), 0, 0)
        self.type_combo = QComboBox()
        self.type_combo.setMinimumWidth(120)
        self.type_combo.setStyleSheet(_INPUT_STYLE)
        self.type_combo.addItem(PC_BREAKPOINT, None)
        for bp_type in BreakpointConditionType:
            self.type_combo.addItem(bp_type.name, bp_type)
        self.type_combo.currentIndexChanged.connect(self._on_type_changed)
        add_form_layout.addWidget(self.type_combo, 0, 1)

        add_form_layout.addWidget(QLabel("Addr/Reg:"), 0, 2)
        self.value_input = QLineEdit()
        self.value_input.setStyleSheet(_INPUT_STYLE)
        self.value_input.returnPressed.connect(self._add_clicked)
        add_form_layout.addWidget(self.value_input, 0, 3)

        self.add_button = QPushButton("Add")
        self.add_button.setStyleSheet(_BUTTON_STYLE)
        self.add_button.clicked.connect(self._add_clicked)
        add_form_layout.addWidget(self.add_button, 1, 0, 1, 4)
        self.layout.addLayout(add_form_layout)

        # Breakpoint List (Table)
        self.bp_table = QTableWidget()
        self.bp_table.setColumnCount(3)
        self.bp_table.setHorizontalHeaderLabels(["Type", "Condition", "Status"])
        self.bp_table.horizontalHeader().setSectionResizeMode(0, QHeaderView.ResizeToContents)
        self.bp_table.horizontalHeader().setSectionResizeMode(1, QHeaderView.Stretch)
        self.bp_table.horizontalHeader().setSectionResizeMode(2, QHeaderView.ResizeToContents)
        self.bp_table.verticalHeader().setVisible(False)
        self.bp_table.setSelectionBehavior(QTableWidget.SelectRows)
        self.bp_table.setEditTriggers(QTableWidget.NoEditTriggers)
        self.bp_table.setFont(get_monospace_font(10))
        self.bp_table.setStyleSheet("""
            QTableWidget { background-color: #121212; color: #BBBBBB; gridline-color: #303030; border: none; }
            QHeaderView::section { background-color: #252525; color: #BBBBBB; border: 1px solid #333; }
        """)
        self.bp_table.itemSelectionChanged.connect(self._on_selection_changed)
        self.bp_table.cellDoubleClicked.connect(self._toggle_condition)
        self.layout.addWidget(self.bp_table)

        self.remove_button = QPushButton("Remove Selected")
        self.remove_button.setStyleSheet(_BUTTON_STYLE)
        self.remove_button.setEnabled(False)
        self.remove_button.clicked.connect(self._remove_selected)
        self.layout.addWidget(self.remove_button)

        self._on_type_changed(self.type_combo.currentIndex())

    def set_symbol_map(self, symbol_map: Dict[str, int]):
        self.symbol_map = symbol_map
        self.reverse_symbol_map = {addr: name for name, addr in symbol_map.items()}

    # @intent:responsibility デバッガの現在の内容で一覧を作り直します。
    def set_contents(self, breakpoints: List[int], conditions: List[BreakpointCondition]) -> None:
        self.bp_table.setRowCount(0)
        for address in breakpoints:
            self._add_row(PC_BREAKPOINT, self._describe_address(address), "Active", address)
        for condition in conditions:
            self._add_row(condition.condition_type.name, self._describe(condition),
                          "Active" if condition.enabled else "Disabled", condition)

    @Slot(int)
    def _on_type_changed(self, index: int):
        selected = self.type_combo.itemData(index)
        if selected == BreakpointConditionType.REGISTER_VALUE:
            self.value_input.setPlaceholderText("REG=VALUE (e.g. V3=0x10)")
        elif selected == BreakpointConditionType.REGISTER_CHANGE:
            self.value_input.setPlaceholderText("Register name (e.g. I)")
        else:
            self.value_input.setPlaceholderText("Address or label")

    # @intent:utility_function 数値表現（0x, $, 10進）またはシンボル名（ワイルドカード可）をアドレスに解決します。
    def resolve_value(self, value_str: str) -> Optional[int]:
        value_str = value_str.strip()
        try:
            if value_str.lower().startswith('0x'):
                return int(value_str, 16)
            if value_str.startswith('$'):
                return int(value_str[1:], 16)
            return int(value_str)
        except ValueError:
            pass

        for name, addr in self.symbol_map.items():
            if name.lower() == value_str.lower():
                return addr

        if '*' in value_str or '?' in value_str:
            pattern = re.escape(value_str).replace(r'\*', '.*').replace(r'\?', '.')
            regex = re.compile(f"^{pattern}$", re.IGNORECASE)
            for name, addr in self.symbol_map.items():
                if regex.match(name):
                    return addr
        return None

    # @intent:responsibility 入力内容からブレークポイントまたはウォッチ条件を生成します。
    # @intent:pre-condition 入力が解釈できない場合はValueErrorを送出します。
    def parse_input(self, bp_type: Optional[BreakpointConditionType], value_str: str):
        if bp_type is None:
            address = self._require(value_str)
            return address
        if bp_type in (BreakpointConditionType.MEMORY_READ, BreakpointConditionType.MEMORY_WRITE):
            return BreakpointCondition(bp_type, address=self._require(value_str))
        if bp_type == BreakpointConditionType.REGISTER_VALUE:
            if '=' not in value_str:
                raise ValueError("Format must be REG=VAL")
            reg, val_s = value_str.split('=', 1)
            return BreakpointCondition(bp_type, register_name=reg.strip().upper(), value=self._require(val_s))
        return BreakpointCondition(bp_type, register_name=value_str.strip().upper())

    def _require(self, value_str: str) -> int:
        value = self.resolve_value(value_str)
        if value is None:
            raise ValueError(f"Undefined symbol: '{value_str.strip()}'")
        return value

    @Slot()
    def _add_clicked(self):
        value_str = self.value_input.text().strip()
        if not value_str:
            return
        try:
            entry = self.parse_input(self.type_combo.currentData(), value_str)
        except ValueError as e:
            QMessageBox.critical(self, "Error", str(e))
            return

        if isinstance(entry, BreakpointCondition):
            self.condition_added.emit(entry)
        else:
            self.breakpoint_added.emit(entry)
        self.value_input.clear()

    def _describe_address(self, address: int) -> str:
        sym = self.reverse_symbol_map.get(address, "")
        return f"@ 0x{address:03X}" + (f" ({sym})" if sym else "")

    def _describe(self, condition: BreakpointCondition) -> str:
        if condition.condition_type == BreakpointConditionType.REGISTER_VALUE:
            return f"{condition.register_name} == 0x{condition.value:X}"
        if condition.condition_type == BreakpointConditionType.REGISTER_CHANGE:
            return f"{condition.register_name} changed"
        return self._describe_address(condition.address)

    def _add_row(self, type_name: str, details: str, status: str, data) -> None:
        row = self.bp_table.rowCount()
        self.bp_table.insertRow(row)
        type_item = QTableWidgetItem(type_name)
        type_item.setData(Qt.UserRole, data)
        status_item = QTableWidgetItem(status)
        status_item.setForeground(Qt.green if status == "Active" else Qt.gray)
        self.bp_table.setItem(row, 0, type_item)
        self.bp_table.setItem(row, 1, QTableWidgetItem(details))
        self.bp_table.setItem(row, 2, status_item)

    @Slot(int, int)
    def _toggle_condition(self, row: int, col: int):
        old_condition = self.bp_table.item(row, 0).data(Qt.UserRole)
        if not isinstance(old_condition, BreakpointCondition):
            return
        self.condition_updated.emit(old_condition, replace(old_condition, enabled=not old_condition.enabled))

    @Slot()
    def _on_selection_changed(self):
        self.remove_button.setEnabled(len(self.bp_table.selectedItems()) > 0)

    @Slot()
    def _remove_selected(self):
        rows = sorted({item.row() for item in self.bp_table.selectedItems()}, reverse=True)
        entries = [self.bp_table.item(row, 0).data(Qt.UserRole) for row in rows]
        for entry in entries:
            if isinstance(entry, BreakpointCondition):
                self.condition_removed.emit(entry)
            else:
                self.breakpoint_removed.emit(entry)
