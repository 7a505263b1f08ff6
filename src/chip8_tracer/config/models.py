# chip8_tracer/config/models.py
"""
システム構成（YAML設定ファイル）のデータモデル。
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from chip8_tracer.arch.chip8.instructions.base import Quirks
from chip8_tracer.arch.chip8.timers import TIMER_FREQUENCY_HZ


@dataclass
class MemoryRegion:
    start: int
    end: int
    type: str  # "RAM", "ROM"
    label: str = ""


# @intent:constant 既定のメモリマップ。インタプリタ領域（フォントセットを含む）はROM、プログラム領域はRAM。
def default_memory_map() -> List[MemoryRegion]:
    return [
        MemoryRegion(0x000, 0x1FF, "ROM", "Interpreter"),
        MemoryRegion(0x200, 0xFFF, "RAM", "Program"),
    ]


# @intent:constant 既定のキー割り当て（ホストキー -> 論理キー）。
#                  1 2 3 4 / Q W E R / A S D F / Z X C V を 1 2 3 C / 4 5 6 D / 7 8 9 E / A 0 B F に割り当てる。
DEFAULT_KEYMAP: Dict[str, int] = {
    "1": 0x1, "2": 0x2, "3": 0x3, "4": 0xC,
    "Q": 0x4, "W": 0x5, "E": 0x6, "R": 0xD,
    "A": 0x7, "S": 0x8, "D": 0x9, "F": 0xE,
    "Z": 0xA, "X": 0x0, "C": 0xB, "V": 0xF,
}


@dataclass
class MachineConfig:
    cycles_per_tick: int = 10
    tick_rate: int = TIMER_FREQUENCY_HZ
    seed: Optional[int] = None


@dataclass
class SystemConfig:
    machine: MachineConfig = field(default_factory=MachineConfig)
    quirks: Quirks = field(default_factory=Quirks)
    memory_map: List[MemoryRegion] = field(default_factory=default_memory_map)
    keymap: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_KEYMAP))
    breakpoints: List[int] = field(default_factory=list)
    logging: Optional[Dict[str, Any]] = None
