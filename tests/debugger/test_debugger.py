# tests/debugger/test_debugger.py
"""
chip8_tracer.debugger.debuggerモジュールの単体テスト。
Debuggerの実行制御、ブレークポイント管理、ウォッチ条件、停止理由を検証します。
"""
from dataclasses import replace
from unittest.mock import patch

import pytest

from chip8_tracer.core.snapshot import Metadata, Operation, Snapshot
from chip8_tracer.arch.chip8.state import Chip8CpuState
from chip8_tracer.debugger.debugger import (
    BreakpointCondition, BreakpointConditionType, Debugger, RunMode, StopKind,
)

# @intent:test_suite デバッガのブレークポイントと実行制御機能の検証。


class TestDebugger:
    @pytest.fixture
    def setup_debugger(self, cpu, load_words):
        debugger = Debugger(cpu)
        return debugger, cpu, load_words

    # @intent:test_case_add_remove_breakpoint ブレークポイントの追加と削除が冪等であることを検証します。
    def test_add_remove_breakpoint(self, setup_debugger):
        debugger, _, _ = setup_debugger
        debugger.add_breakpoint(0x208)
        debugger.add_breakpoint(0x204)
        debugger.add_breakpoint(0x208)
        assert debugger.get_breakpoints() == [0x204, 0x208]

        debugger.remove_breakpoint(0x208)
        debugger.remove_breakpoint(0x208)
        assert debugger.get_breakpoints() == [0x204]

        debugger.clear_breakpoints()
        assert debugger.get_breakpoints() == []

    def test_initial_mode(self, setup_debugger):
        debugger, _, _ = setup_debugger
        assert debugger.mode == RunMode.HALTED
        assert debugger.last_stop_reason is None

    # @intent:test_case_step_instruction step_instructionがcpu.stepを呼び出し、Snapshotを返すことを検証します。
    def test_step_instruction_calls_cpu(self, setup_debugger):
        debugger, cpu, _ = setup_debugger
        fake = Snapshot(
            state=Chip8CpuState(pc=0x202),
            operation=Operation(opcode_hex="00E0", mnemonic="CLS"),
            metadata=Metadata(cycle_count=1),
        )
        with patch.object(cpu, 'step', return_value=fake) as mock_step:
            snapshot = debugger.step_instruction()
            mock_step.assert_called_once()
        assert snapshot is fake
        assert debugger.get_last_snapshot() is fake
        assert debugger.mode == RunMode.HALTED

    # @intent:test_case_breakpoint ブレークポイントの命令は報告前に実行されず、single_stepで実行されることを検証します。
    def test_breakpoint_halts_before_execution(self, setup_debugger):
        debugger, cpu, load_words = setup_debugger
        load_words(cpu, [0x6001, 0x6102, 0x6203, 0x1206])
        debugger.add_breakpoint(0x204)

        reason = debugger.run_until_stop()

        assert reason.kind == StopKind.BREAKPOINT
        assert reason.address == 0x204
        assert cpu.get_state().pc == 0x204
        assert cpu.get_state().v[:3] == [1, 2, 0]
        assert debugger.last_run_steps == 2
        assert debugger.mode == RunMode.HALTED

        snapshot = debugger.single_step()
        assert snapshot.operation.text == "LD V2, 0x03"
        assert cpu.get_state().v[2] == 3
        assert cpu.get_state().pc == 0x206

    # @intent:test_case_continue ブレークポイント上から再開すると、同じ命令で即停止しないことを検証します。
    def test_continue_from_breakpoint(self, setup_debugger):
        debugger, cpu, load_words = setup_debugger
        load_words(cpu, [0x7001, 0x1200])
        debugger.add_breakpoint(0x200)

        first = debugger.continue_run()
        assert first.kind == StopKind.BREAKPOINT
        assert cpu.get_state().v[0] == 1

        second = debugger.continue_run()
        assert second.address == 0x200
        assert cpu.get_state().v[0] == 2
        assert debugger.last_run_steps == 2

    def test_step_limit(self, setup_debugger):
        debugger, cpu, load_words = setup_debugger
        load_words(cpu, [0x7001, 0x1200])
        reason = debugger.run_until_stop(max_steps=10)
        assert reason.kind == StopKind.STEP_LIMIT
        assert debugger.last_run_steps == 10
        assert cpu.get_state().v[0] == 5

    # @intent:test_case_engine_error エンジンのエラーは例外ではなく停止理由として報告されることを検証します。
    def test_engine_error_becomes_stop_reason(self, setup_debugger):
        debugger, cpu, load_words = setup_debugger
        load_words(cpu, [0x6001, 0xFFFF])

        reason = debugger.run_until_stop()

        assert reason.kind == StopKind.ENGINE_ERROR
        assert reason.error_kind == "InvalidOpcode"
        assert reason.address == 0x202
        assert "InvalidOpcode" in str(reason)
        assert debugger.get_last_snapshot().failed
        assert cpu.get_state().v[0] == 1

    def test_step_error_is_returned_in_snapshot(self, setup_debugger):
        debugger, cpu, load_words = setup_debugger
        load_words(cpu, [0x00EE])
        snapshot = debugger.step_instruction()
        assert snapshot.failed
        assert snapshot.error.kind == "StackUnderflow"
        assert snapshot.operation.mnemonic == "RET"
        assert debugger.last_stop_reason.kind == StopKind.ENGINE_ERROR

    # @intent:test_case_stop stop() で停止要求された場合、STOPPEDが返ることを検証します。
    def test_stop_request(self, setup_debugger):
        debugger, cpu, load_words = setup_debugger
        load_words(cpu, [0x1200])
        original_step = cpu.step
        calls = []

        def step_then_stop():
            calls.append(1)
            if len(calls) == 3:
                debugger.stop()
            return original_step()

        with patch.object(cpu, 'step', side_effect=step_then_stop):
            reason = debugger.run_until_stop()
        assert reason.kind == StopKind.STOPPED
        assert len(calls) == 3

    # @intent:test_case_key_wait Fx0A のスピンはブレークポイントの再ヒットとみなさないことを検証します。
    def test_wait_for_key_spin_is_not_a_breakpoint_hit(self, setup_debugger):
        debugger, cpu, load_words = setup_debugger
        load_words(cpu, [0x00E0, 0xF10A, 0x1202])
        debugger.add_breakpoint(0x202)

        assert debugger.run_until_stop().kind == StopKind.BREAKPOINT
        reason = debugger.run_until_stop(max_steps=50)
        assert reason.kind == StopKind.STEP_LIMIT
        assert cpu.get_state().waiting_for_key

        cpu.set_key(0x4, True)
        reason = debugger.run_until_stop()
        assert reason.kind == StopKind.BREAKPOINT
        assert cpu.get_state().v[1] == 0x4

    # @intent:test_case_reset リセットでエンジンが初期化され、ブレークポイントが消去されることを検証します。
    def test_reset_clears_breakpoints(self, setup_debugger):
        debugger, cpu, load_words = setup_debugger
        load_words(cpu, [0x6001, 0x1202])
        debugger.add_breakpoint(0x202)
        debugger.add_condition(BreakpointCondition(BreakpointConditionType.REGISTER_CHANGE, register_name="I"))
        debugger.run_until_stop()

        debugger.reset()

        assert debugger.get_breakpoints() == []
        assert debugger.get_conditions() == []
        assert debugger.get_history() == []
        assert cpu.get_state().pc == 0x200
        assert cpu.get_state().v[0] == 0
        assert cpu.bus.peek(0x200) == 0x60


class TestWatchConditions:
    @pytest.fixture
    def debugger(self, cpu, load_words):
        # 0x200: LD I, 0x300 / 0x202: LD V0, 7 / 0x204: LD [I], V0 / 0x206: LD V1, [I] / 0x208: JP 0x208
        load_words(cpu, [0xA300, 0x6007, 0xF055, 0xF165, 0x1208])
        return Debugger(cpu)

    def test_memory_write(self, debugger):
        condition = BreakpointCondition(BreakpointConditionType.MEMORY_WRITE, address=0x300)
        debugger.add_condition(condition)
        reason = debugger.run_until_stop()
        assert reason.kind == StopKind.WATCHPOINT
        assert reason.condition == condition
        assert reason.address == 0x206

    def test_memory_read(self, debugger):
        debugger.add_condition(BreakpointCondition(BreakpointConditionType.MEMORY_READ, address=0x301))
        reason = debugger.run_until_stop()
        assert reason.kind == StopKind.WATCHPOINT
        assert reason.address == 0x208

    def test_register_value(self, debugger):
        debugger.add_condition(BreakpointCondition(BreakpointConditionType.REGISTER_VALUE, register_name="V0", value=7))
        reason = debugger.run_until_stop()
        assert reason.address == 0x204

    def test_register_change(self, debugger):
        debugger.add_condition(BreakpointCondition(BreakpointConditionType.REGISTER_CHANGE, register_name="I"))
        reason = debugger.run_until_stop()
        assert reason.address == 0x202
        assert debugger.cpu.get_state().i == 0x300

    # @intent:test_case_disabled 無効化された条件は評価されないことを検証します。
    def test_disabled_condition_and_update(self, debugger):
        condition = BreakpointCondition(BreakpointConditionType.REGISTER_CHANGE, register_name="I", enabled=False)
        debugger.add_condition(condition)
        assert debugger.run_until_stop(max_steps=8).kind == StopKind.STEP_LIMIT

        enabled = replace(condition, enabled=True)
        debugger.update_condition(condition, enabled)
        assert debugger.get_conditions() == [enabled]
        debugger.remove_condition(enabled)
        assert debugger.get_conditions() == []


class TestIntrospection:
    def test_disassemble_and_dump(self, cpu, load_words):
        load_words(cpu, [0x6A05, 0x00E0])
        debugger = Debugger(cpu)
        cpu.bus.get_and_clear_activity_log()

        operation = debugger.disassemble(0x200)
        assert operation.text == "LD VA, 0x05"
        assert [entry[2] for entry in debugger.disassemble_range(0x200, 4)] == ["LD VA, 0x05", "CLS"]
        assert debugger.dump_memory(0x200, 4) == bytes([0x6A, 0x05, 0x00, 0xE0])
        assert cpu.bus.get_and_clear_activity_log() == []
        # 逆アセンブルで実行状態は変化しない
        assert cpu.get_state().pc == 0x200

        debugger.step_instruction()
        assert debugger.dump_registers()["VA"] == 0x05

    # @intent:test_case_history 実行履歴が上限件数で保持されることを検証します。
    def test_history_is_bounded(self, cpu, load_words):
        load_words(cpu, [0x7001, 0x1200])
        debugger = Debugger(cpu, history_size=5)
        debugger.run_until_stop(max_steps=12)
        history = debugger.get_history()
        assert len(history) == 5
        assert history[-1] is debugger.get_last_snapshot()
