# chip8_tracer/driver/runner.py
"""
フレーム駆動の実行ループ。

1フレームごとに cycles_per_tick 個の命令を実行し、タイマーを1回進めます。
命令の実行速度（cycles per tick）とタイマーの時間基準（tick rate）を分離するのはこの層の責務です。
ブレークポイント等でフレームの途中で止まった場合、実行済みの命令数は次のフレームに持ち越され、
持ち越し分と合わせて cycles_per_tick に達した時点でタイマーが進みます。
"""
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from chip8_tracer.arch.chip8.cpu import Chip8Cpu
from chip8_tracer.arch.chip8.timers import TIMER_FREQUENCY_HZ
from chip8_tracer.common.errors import Chip8Error
from chip8_tracer.debugger.debugger import Debugger, StopKind, StopReason

logger = logging.getLogger(__name__)


# @intent:data_structure 1フレーム分の実行結果。
@dataclass(frozen=True)
class FrameResult:
    steps: int
    stop_reason: Optional[StopReason] = None
    error: Optional[Chip8Error] = None

    # @intent:responsibility 実行ループを止めるべき結果かどうかを返します。
    @property
    def halted(self) -> bool:
        return self.error is not None or self.stop_reason is not None


class FrameDriver:
    """
    エンジン（またはデバッガ経由のエンジン）をフレーム単位で駆動するクラス。
    デバッガが接続されている場合、ブレークポイントやウォッチ条件でフレームの途中でも停止します。
    """
    def __init__(self, cpu: Chip8Cpu, debugger: Optional[Debugger] = None,
                 cycles_per_tick: int = 10, tick_rate: int = TIMER_FREQUENCY_HZ,
                 sleep: Callable[[float], None] = time.sleep,
                 clock: Callable[[], float] = time.perf_counter):
        if cycles_per_tick <= 0:
            raise ValueError("cycles_per_tick must be positive.")
        if tick_rate <= 0:
            raise ValueError("tick_rate must be positive.")
        self._cpu = cpu
        self._debugger = debugger
        self.cycles_per_tick = cycles_per_tick
        self.tick_rate = tick_rate
        self._sleep = sleep
        self._clock = clock
        self._frame_count = 0
        # 途中で止まったフレームで実行済みの命令数
        self._pending_steps = 0

    @property
    def frame_count(self) -> int:
        return self._frame_count

    @property
    def pending_steps(self) -> int:
        return self._pending_steps

    # @intent:responsibility 持ち越し中の命令数とフレーム数を破棄します。プログラムのロードやリセット時に呼びます。
    def reset(self) -> None:
        self._pending_steps = 0
        self._frame_count = 0

    # @intent:responsibility 現在のフレームの残り命令を実行し、フレームが満ちたらタイマーを1回進めます。
    # @intent:post-condition 停止した場合も実行済みの命令数は持ち越され、タイマーの進みは命令数に比例し続ける。
    def run_frame(self) -> FrameResult:
        budget = self.cycles_per_tick - self._pending_steps
        if self._debugger is not None:
            result = self._run_frame_with_debugger(budget)
        else:
            result = self._run_frame_direct(budget)

        self._pending_steps += result.steps
        if self._pending_steps >= self.cycles_per_tick:
            self._pending_steps = 0
            self._cpu.tick_timers()
            self._frame_count += 1
        return result

    def _run_frame_direct(self, budget: int) -> FrameResult:
        for steps in range(budget):
            try:
                self._cpu.step()
            except Chip8Error as e:
                logger.error("Execution stopped: %s", e)
                return FrameResult(steps=steps, error=e)
        return FrameResult(steps=budget)

    def _run_frame_with_debugger(self, budget: int) -> FrameResult:
        reason = self._debugger.run_until_stop(max_steps=budget)
        steps = self._debugger.last_run_steps
        if reason.kind == StopKind.STEP_LIMIT:
            return FrameResult(steps=steps)

        if reason.kind == StopKind.ENGINE_ERROR:
            logger.error("Execution stopped: %s", reason.error)
            return FrameResult(steps=steps - 1, stop_reason=reason, error=reason.error)
        return FrameResult(steps=steps, stop_reason=reason)

    # @intent:responsibility 停止理由が発生するか、max_framesに達するまでフレームを繰り返します。
    def run(self, max_frames: Optional[int] = None, realtime: bool = True) -> FrameResult:
        """
        realtime=True の場合、tick_rate に合わせて各フレームの間で待機します。
        最後に実行したフレームの結果を返します。
        """
        frame_period = 1.0 / self.tick_rate
        frames = 0
        result = FrameResult(steps=0)
        logger.info("Frame loop started (cycles_per_tick=%d, tick_rate=%d)", self.cycles_per_tick, self.tick_rate)

        next_deadline = self._clock()
        while max_frames is None or frames < max_frames:
            result = self.run_frame()
            frames += 1
            if result.halted:
                break
            if realtime:
                next_deadline += frame_period
                delay = next_deadline - self._clock()
                if delay > 0:
                    self._sleep(delay)
                else:
                    # 処理が遅れた場合は基準時刻を現在に合わせる
                    next_deadline = self._clock()

        logger.info("Frame loop stopped after %d frame(s)", frames)
        return result
