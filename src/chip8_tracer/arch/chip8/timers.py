# chip8_tracer/arch/chip8/timers.py
"""
遅延タイマーとサウンドタイマー。

2つのカウンタは命令の実行速度とは独立に、呼び出し側（Driver）が
一定の実時間レート（慣例的に60Hz）で tick() を呼ぶことで減算されます。
"""
from chip8_tracer.arch.chip8.state import Chip8CpuState

TIMER_FREQUENCY_HZ = 60


# @intent:responsibility 両タイマーを1だけ減算します。0未満にはなりません。
def tick(state: Chip8CpuState) -> None:
    if state.dt > 0:
        state.dt -= 1
    if state.st > 0:
        state.st -= 1


def sound_active(state: Chip8CpuState) -> bool:
    return state.st > 0
