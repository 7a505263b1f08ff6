# chip8_tracer/arch/chip8/state.py
"""
CHIP-8 CPU固有の状態定義。

このモジュールは、CHIP-8のレジスタファイル（V0-VF, I, PC, SP, スタック）と
2つのタイマーカウンタを保持するデータ構造を定義します。
"""
from dataclasses import dataclass, field
from typing import List

from chip8_tracer.core.state import CpuState

# @intent:constant メモリマップとレジスタファイルの寸法。
MEMORY_SIZE = 0x1000
PROGRAM_START = 0x200
REGISTER_COUNT = 16
STACK_DEPTH = 16
FLAG_REGISTER = 0xF


# @intent:responsibility CHIP-8 CPUの全てのレジスタとタイマーの状態を保持します。
@dataclass
class Chip8CpuState(CpuState):
    """
    CHIP-8 CPUのレジスタ状態を保持するデータクラス。
    `sp` はスタックに積まれている戻りアドレスの数（次に書き込むスロット）を表します。
    """
    pc: int = PROGRAM_START
    v: List[int] = field(default_factory=lambda: [0] * REGISTER_COUNT)
    i: int = 0x000
    stack: List[int] = field(default_factory=lambda: [0] * STACK_DEPTH)
    dt: int = 0x00  # Delay timer
    st: int = 0x00  # Sound timer
    waiting_for_key: bool = False  # Fx0A がキー入力待ちでスピン中

    # @intent:accessor フラグレジスタ(VF)へのアクセスを提供します。
    @property
    def vf(self) -> int:
        return self.v[FLAG_REGISTER]

    @vf.setter
    def vf(self, value: int) -> None:
        self.v[FLAG_REGISTER] = value & 0xFF

    # @intent:responsibility スタックに積まれている戻りアドレスを古い順に返します。
    def call_stack(self) -> List[int]:
        return list(self.stack[:self.sp])
