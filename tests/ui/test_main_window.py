# tests/ui/test_main_window.py
"""
MainWindowの結線（ロード、フレーム実行、ステップ、ブレークポイント）のテスト。
"""
import pytest
from PySide6.QtCore import QEvent, Qt
from PySide6.QtGui import QKeyEvent

from chip8_tracer.config.models import MachineConfig, SystemConfig
from chip8_tracer.ui.main_window import MainWindow

# @intent:test_suite フレームループがエンジンとビューを正しく結びつけることを検証します。


@pytest.fixture
def window(qapp, tmp_path):
    # LD I, sprite / DRW V0, V0, 1 / ADD V1, 1 / JP 0x204 / sprite: 0x80
    rom = tmp_path / "dot.ch8"
    rom.write_bytes(bytes([0xA2, 0x08, 0xD0, 0x01, 0x71, 0x01, 0x12, 0x04, 0x80]))
    main_window = MainWindow(SystemConfig(machine=MachineConfig(cycles_per_tick=4, seed=7)))
    main_window.load_rom(str(rom))
    yield main_window
    main_window.close()


class TestMainWindow:
    def test_initial_state(self, window):
        assert window.cpu.get_state().pc == 0x200
        assert not window.is_running
        assert window.stop_action.isEnabled() is False
        assert window.code_view.disassembled_data[0][2] == "LD I, 0x208"
        assert window.frame_timer.interval() == 17

    def test_frame_updates_display(self, window):
        window.frame_timer.start()
        result = window._on_frame()
        assert result.steps == 4
        assert window.display_view.pixel_at(0, 0)
        assert window.display_view.lit_pixel_count() == 1
        assert window.is_running
        window.stop()
        assert not window.is_running

    # @intent:test_case_breakpoint ブレークポイントでフレームタイマーが止まりUIが停止状態に戻ることを検証します。
    def test_breakpoint_stops_timer(self, window):
        window._add_breakpoint(0x204)
        assert window.code_view.table.item(2, 0).text() == "●"

        window.run()
        result = window._on_frame()

        assert result.steps == 2
        assert not window.is_running
        assert window.run_action.isEnabled()
        assert "Breakpoint at 0x204" in window.statusBar().currentMessage()
        assert window.register_view.register_text("PC") == "0x0204"

    def test_step_and_reset(self, window):
        window.step()
        assert window.cpu.get_state().i == 0x208
        assert window.code_view.current_row == 1
        window.reset()
        assert window.cpu.get_state().pc == 0x200
        assert window.cpu.get_state().i == 0

    def test_engine_error_is_reported(self, window, tmp_path):
        rom = tmp_path / "bad.ch8"
        rom.write_bytes(bytes([0xFF, 0xFF]))
        window.load_rom(str(rom))
        window.run()
        result = window._on_frame()
        assert result.error.kind == "InvalidOpcode"
        assert not window.is_running
        assert "InvalidOpcode" in window.statusBar().currentMessage()

    def test_load_assembly_updates_symbols(self, window, tmp_path):
        source = tmp_path / "prog.asm"
        source.write_text("start: LD V2, 9\nloop: JP loop\n", encoding="utf-8")
        window.load_assembly(str(source))
        assert window.breakpoint_view.resolve_value("loop") == 0x202
        assert window.code_view.table.item(0, 3).text() == "start: LD V2, 0x09"

    def test_key_events_reach_keypad(self, window):
        window.keyPressEvent(QKeyEvent(QEvent.KeyPress, Qt.Key_W, Qt.NoModifier))
        assert window.cpu.keypad.is_pressed(0x5)
        window.keyReleaseEvent(QKeyEvent(QEvent.KeyRelease, Qt.Key_W, Qt.NoModifier))
        assert not window.cpu.keypad.is_pressed(0x5)
