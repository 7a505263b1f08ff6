# chip8_tracer/arch/chip8/instructions/alu.py
"""
CHIP-8 算術論理演算 (ALU) 命令の実装。

レジスタ演算は全て符号なし8bitで、剰余による折り返しを行います（オーバーフローは致命的ではない）。
フラグ(VF)は結果の書き込み後に設定するため、x == F の場合はフラグが優先されます。
"""
from typing import Tuple

from chip8_tracer.arch.chip8.state import Chip8CpuState
from chip8_tracer.transport.bus import Bus
from .base import Instruction, Peripherals

# --- Pure helpers ---

# @intent:responsibility 8bit加算。戻り値は (結果, キャリー)。キャリーは a + b > 255 のとき1。
def add8(a: int, b: int) -> Tuple[int, int]:
    total = a + b
    return total & 0xFF, 1 if total > 0xFF else 0

# @intent:responsibility 8bit減算 a - b。戻り値は (結果, NOTボロー)。a >= b のとき1。
def sub8(a: int, b: int) -> Tuple[int, int]:
    return (a - b) & 0xFF, 1 if a >= b else 0

# @intent:responsibility 1bit右シフト。戻り値は (結果, シフトアウトされた最下位ビット)。
def shr8(value: int) -> Tuple[int, int]:
    return (value >> 1) & 0x7F, value & 0x1

# @intent:responsibility 1bit左シフト。戻り値は (結果, シフトアウトされた最上位ビット)。
def shl8(value: int) -> Tuple[int, int]:
    return (value << 1) & 0xFF, (value >> 7) & 0x1

# --- Execution Functions ---

# 7xkk: キャリーフラグは変化しない
def add_byte(state: Chip8CpuState, bus: Bus, instr: Instruction, io: Peripherals) -> None:
    state.v[instr.x] = (state.v[instr.x] + instr.kk) & 0xFF

def or_(state: Chip8CpuState, bus: Bus, instr: Instruction, io: Peripherals) -> None:
    state.v[instr.x] |= state.v[instr.y]

def and_(state: Chip8CpuState, bus: Bus, instr: Instruction, io: Peripherals) -> None:
    state.v[instr.x] &= state.v[instr.y]

def xor(state: Chip8CpuState, bus: Bus, instr: Instruction, io: Peripherals) -> None:
    state.v[instr.x] ^= state.v[instr.y]

def add_reg(state: Chip8CpuState, bus: Bus, instr: Instruction, io: Peripherals) -> None:
    result, carry = add8(state.v[instr.x], state.v[instr.y])
    state.v[instr.x] = result
    state.vf = carry

# 8xy5: Vx = Vx - Vy, VF = NOT borrow
def sub(state: Chip8CpuState, bus: Bus, instr: Instruction, io: Peripherals) -> None:
    result, not_borrow = sub8(state.v[instr.x], state.v[instr.y])
    state.v[instr.x] = result
    state.vf = not_borrow

# 8xy7: Vx = Vy - Vx, VF = NOT borrow
def subn(state: Chip8CpuState, bus: Bus, instr: Instruction, io: Peripherals) -> None:
    result, not_borrow = sub8(state.v[instr.y], state.v[instr.x])
    state.v[instr.x] = result
    state.vf = not_borrow

# @intent:note シフト元は Quirks.shift_uses_vy で選択する。既定は Vx をその場でシフト。
def shr(state: Chip8CpuState, bus: Bus, instr: Instruction, io: Peripherals) -> None:
    source = state.v[instr.y] if io.quirks.shift_uses_vy else state.v[instr.x]
    result, flag = shr8(source)
    state.v[instr.x] = result
    state.vf = flag

def shl(state: Chip8CpuState, bus: Bus, instr: Instruction, io: Peripherals) -> None:
    source = state.v[instr.y] if io.quirks.shift_uses_vy else state.v[instr.x]
    result, flag = shl8(source)
    state.v[instr.x] = result
    state.vf = flag

# Fx1E: Iは16bitで折り返す
def add_i_vx(state: Chip8CpuState, bus: Bus, instr: Instruction, io: Peripherals) -> None:
    state.i = (state.i + state.v[instr.x]) & 0xFFFF

def rnd(state: Chip8CpuState, bus: Bus, instr: Instruction, io: Peripherals) -> None:
    state.v[instr.x] = io.rng.randrange(0x100) & instr.kk
