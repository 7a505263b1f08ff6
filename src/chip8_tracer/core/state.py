# chip8_tracer/core/state.py
"""
Core Layer (レジスタ状態の基底)
"""
from dataclasses import dataclass


# @intent:data_structure どのエンジンにも共通するレジスタ（PCとスタック深さ）。Chip8CpuStateがこれを拡張します。
@dataclass
class CpuState:
    pc: int = 0x0000
    sp: int = 0x0000
