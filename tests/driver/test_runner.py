# tests/driver/test_runner.py
"""
フレーム駆動の実行ループ(FrameDriver)のテスト。
実時間の待機は偽の時計とsleepで置き換えます。
"""
import pytest

from chip8_tracer.arch.chip8.timers import TIMER_FREQUENCY_HZ
from chip8_tracer.debugger.debugger import Debugger, StopKind
from chip8_tracer.driver.runner import FrameDriver, FrameResult

# @intent:test_suite 命令実行レートとタイマーの時間基準の分離、停止時の振る舞いを検証します。


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class TestFrameDriver:
    @pytest.fixture
    def looping_cpu(self, cpu, load_words):
        # LD V0, 60 / LD DT, V0 / ADD V1, 1 / JP 0x204
        load_words(cpu, [0x603C, 0xF015, 0x7101, 0x1204])
        return cpu

    def test_invalid_rates(self, cpu):
        with pytest.raises(ValueError):
            FrameDriver(cpu, cycles_per_tick=0)
        with pytest.raises(ValueError):
            FrameDriver(cpu, tick_rate=0)

    def test_default_tick_rate_is_timer_frequency(self, cpu):
        assert FrameDriver(cpu).tick_rate == TIMER_FREQUENCY_HZ == 60

    # @intent:test_case_frame 1フレームで cycles_per_tick 命令を実行し、タイマーを1回だけ進めることを検証します。
    def test_run_frame_executes_cycles_then_ticks(self, looping_cpu):
        driver = FrameDriver(looping_cpu, cycles_per_tick=10)
        result = driver.run_frame()
        assert result == FrameResult(steps=10)
        assert not result.halted
        assert looping_cpu.get_state().dt == 59
        assert driver.frame_count == 1

    def test_timer_rate_is_independent_of_cycles(self, cpu, load_words):
        slow = FrameDriver(cpu, cycles_per_tick=2)
        load_words(cpu, [0x603C, 0xF015, 0x7101, 0x1204])
        for _ in range(5):
            slow.run_frame()
        assert cpu.get_state().dt == 60 - 5

    # @intent:test_case_error エンジンのエラーでフレームが止まり、タイマーは進まないことを検証します。
    def test_error_stops_frame(self, cpu, load_words, caplog):
        load_words(cpu, [0x6005, 0xF015, 0xFFFF])
        driver = FrameDriver(cpu, cycles_per_tick=10)
        result = driver.run_frame()
        assert result.halted
        assert result.steps == 2
        assert result.error.pc == 0x204
        assert cpu.get_state().dt == 5
        assert "PC=0x204" in caplog.text

    def test_debugger_breakpoint_stops_mid_frame(self, looping_cpu):
        debugger = Debugger(looping_cpu)
        debugger.add_breakpoint(0x206)
        driver = FrameDriver(looping_cpu, debugger, cycles_per_tick=10)

        result = driver.run_frame()

        assert result.steps == 3
        assert result.stop_reason.kind == StopKind.BREAKPOINT
        assert result.error is None
        assert looping_cpu.get_state().dt == 60
        assert driver.frame_count == 0

    def test_debugger_engine_error(self, cpu, load_words):
        load_words(cpu, [0x6005, 0x00EE])
        driver = FrameDriver(cpu, Debugger(cpu), cycles_per_tick=10)
        result = driver.run_frame()
        assert result.steps == 1
        assert result.stop_reason.kind == StopKind.ENGINE_ERROR
        assert result.error.kind == "StackUnderflow"

    def test_debugger_full_frame(self, looping_cpu):
        driver = FrameDriver(looping_cpu, Debugger(looping_cpu), cycles_per_tick=8)
        result = driver.run_frame()
        assert result == FrameResult(steps=8)
        assert looping_cpu.get_state().dt == 59

    # @intent:test_case_pacing realtime実行ではフレーム周期に合わせて待機することを検証します。
    def test_run_paces_frames(self, looping_cpu):
        clock = FakeClock()
        driver = FrameDriver(looping_cpu, cycles_per_tick=4, tick_rate=50, sleep=clock.sleep, clock=clock)
        result = driver.run(max_frames=5)
        assert not result.halted
        assert driver.frame_count == 5
        assert len(clock.sleeps) == 5
        assert all(abs(s - 0.02) < 1e-9 for s in clock.sleeps)

    def test_run_without_pacing(self, looping_cpu):
        clock = FakeClock()
        driver = FrameDriver(looping_cpu, sleep=clock.sleep, clock=clock)
        driver.run(max_frames=3, realtime=False)
        assert clock.sleeps == []
        assert looping_cpu.get_state().dt == 57

    def test_run_stops_on_first_halt(self, cpu, load_words):
        load_words(cpu, [0x1200])
        debugger = Debugger(cpu)
        debugger.add_breakpoint(0x200)
        driver = FrameDriver(cpu, debugger)
        result = driver.run(realtime=False)
        assert result.stop_reason.kind == StopKind.BREAKPOINT
        assert result.steps == 1

    # @intent:test_case_carry 途中で止まったフレームの命令数は次のフレームに持ち越され、合計が満ちた時点でタイマーが進むことを検証します。
    def test_halted_frame_steps_carry_over(self, looping_cpu):
        debugger = Debugger(looping_cpu)
        debugger.add_breakpoint(0x206)
        driver = FrameDriver(looping_cpu, debugger, cycles_per_tick=10)

        assert driver.run_frame().steps == 3
        assert driver.pending_steps == 3

        debugger.remove_breakpoint(0x206)
        result = driver.run_frame()

        assert result == FrameResult(steps=7)
        assert driver.pending_steps == 0
        assert driver.frame_count == 1
        assert looping_cpu.get_state().dt == 59

    # @intent:test_case_timer_poll 遅延タイマーのポーリングループ内にブレークポイントがあっても、実行を続ければDTが0に達しループを抜けることを検証します。
    def test_breakpoint_in_delay_loop_lets_timer_expire(self, cpu, load_words):
        # LD V0, 3 / LD DT, V0 / loop: LD V1, DT / SE V1, 0 / JP loop / done: JP done
        load_words(cpu, [0x6003, 0xF015, 0xF107, 0x3100, 0x1204, 0x120A])
        debugger = Debugger(cpu)
        debugger.add_breakpoint(0x204)
        driver = FrameDriver(cpu, debugger, cycles_per_tick=10)

        for _ in range(50):
            driver.run_frame()

        state = cpu.get_state()
        assert state.dt == 0
        assert state.v[1] == 0
        assert state.pc == 0x20A
        assert driver.frame_count >= 3

    def test_reset_discards_pending_steps(self, looping_cpu):
        debugger = Debugger(looping_cpu)
        debugger.add_breakpoint(0x206)
        driver = FrameDriver(looping_cpu, debugger, cycles_per_tick=10)
        driver.run_frame()
        driver.reset()
        assert driver.pending_steps == 0
        assert driver.frame_count == 0
