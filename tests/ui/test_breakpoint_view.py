# tests/ui/test_breakpoint_view.py
"""
BreakpointViewの入力解釈ロジックのテスト。
"""
import pytest
from PySide6.QtCore import Qt

from chip8_tracer.debugger.debugger import BreakpointCondition, BreakpointConditionType

from chip8_tracer.ui.breakpoint_view import BreakpointView

# @intent:test_suite アドレス表現・シンボル・条件式の解釈を検証します。


@pytest.fixture
def view(qapp):
    bp_view = BreakpointView()
    bp_view.set_symbol_map({"main_loop": 0x204, "draw_score": 0x2A0})
    return bp_view


class TestResolveValue:
    @pytest.mark.parametrize("text, expected", [
        ("0x2A0", 0x2A0),
        ("$2a0", 0x2A0),
        ("512", 512),
        (" 0x200 ", 0x200),
        ("MAIN_LOOP", 0x204),
        ("draw_*", 0x2A0),
        ("main_loo?", 0x204),
    ])
    def test_resolves(self, view, text, expected):
        assert view.resolve_value(text) == expected

    def test_unknown_symbol(self, view):
        assert view.resolve_value("missing") is None


class TestParseInput:
    def test_pc_breakpoint(self, view):
        assert view.parse_input(None, "main_loop") == 0x204

    def test_memory_conditions(self, view):
        assert view.parse_input(BreakpointConditionType.MEMORY_WRITE, "0x300") == \
            BreakpointCondition(BreakpointConditionType.MEMORY_WRITE, address=0x300)
        assert view.parse_input(BreakpointConditionType.MEMORY_READ, "draw_score").address == 0x2A0

    def test_register_value(self, view):
        condition = view.parse_input(BreakpointConditionType.REGISTER_VALUE, "v3 = 0x10")
        assert condition.register_name == "V3"
        assert condition.value == 0x10

    def test_register_change(self, view):
        condition = view.parse_input(BreakpointConditionType.REGISTER_CHANGE, " i ")
        assert condition == BreakpointCondition(BreakpointConditionType.REGISTER_CHANGE, register_name="I")

    @pytest.mark.parametrize("bp_type, text", [
        (None, "nowhere"),
        (BreakpointConditionType.REGISTER_VALUE, "V3"),
        (BreakpointConditionType.REGISTER_VALUE, "V3=lots"),
        (BreakpointConditionType.MEMORY_WRITE, "0xZZ"),
    ])
    def test_invalid_input(self, view, bp_type, text):
        with pytest.raises(ValueError):
            view.parse_input(bp_type, text)


class TestContents:
    def test_set_contents(self, view):
        condition = BreakpointCondition(BreakpointConditionType.REGISTER_CHANGE, register_name="I", enabled=False)
        view.set_contents([0x204], [condition])

        assert view.bp_table.rowCount() == 2
        assert view.bp_table.item(0, 1).text() == "@ 0x204 (main_loop)"
        assert view.bp_table.item(1, 1).text() == "I changed"
        assert view.bp_table.item(1, 2).text() == "Disabled"
        assert view.bp_table.item(1, 0).data(Qt.UserRole) == condition

    # @intent:test_case_toggle 条件の行をダブルクリックすると有効/無効を反転した更新要求が出ることを検証します。
    def test_toggle_condition(self, view):
        condition = BreakpointCondition(BreakpointConditionType.MEMORY_WRITE, address=0x300)
        view.set_contents([], [condition])
        updates = []
        view.condition_updated.connect(lambda old, new: updates.append((old, new)))

        view._toggle_condition(0, 0)

        assert updates == [(condition, BreakpointCondition(BreakpointConditionType.MEMORY_WRITE,
                                                           address=0x300, enabled=False))]

    def test_add_pc_breakpoint_from_input(self, view):
        added = []
        view.breakpoint_added.connect(added.append)
        view.value_input.setText("$2A0")
        view._add_clicked()
        assert added == [0x2A0]
        assert view.value_input.text() == ""
