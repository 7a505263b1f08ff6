# chip8_tracer/arch/chip8/instructions/control.py
"""
CHIP-8 制御系命令 (Jump, Call/Return, Skip)。
"""
import logging

from chip8_tracer.arch.chip8.state import Chip8CpuState, STACK_DEPTH
from chip8_tracer.common.errors import StackOverflow, StackUnderflow
from chip8_tracer.transport.bus import Bus
from .base import Instruction, Peripherals

logger = logging.getLogger(__name__)

# @intent:note 制御命令の実装について
# AbstractCpu.step() のフロー:
# 1. Fetch (PC += 2 済み)
# 2. Decode
# 3. Execute -> ここで PC を書き換えると、それが次の Fetch アドレスになる。
# つまり、ジャンプ命令はPCを上書きし、スキップ命令はさらに2を加算するだけで良い。

def _skip_if(state: Chip8CpuState, condition: bool) -> None:
    if condition:
        state.pc = (state.pc + 2) & 0xFFFF

# 0nnn: 機械語サブルーチン呼び出しはエミュレートせず無視する
def sys_(state: Chip8CpuState, bus: Bus, instr: Instruction, io: Peripherals) -> None:
    logger.warning("Ignoring SYS %#05x at %#05x", instr.nnn, (state.pc - 2) & 0xFFFF)

def jp(state: Chip8CpuState, bus: Bus, instr: Instruction, io: Peripherals) -> None:
    state.pc = instr.nnn

# @intent:pre-condition スタックの深さは STACK_DEPTH を超えない。超える場合はStackOverflow（スタックは無変更）。
def call(state: Chip8CpuState, bus: Bus, instr: Instruction, io: Peripherals) -> None:
    if state.sp >= STACK_DEPTH:
        raise StackOverflow(f"Call stack depth {STACK_DEPTH} exceeded by CALL {instr.nnn:#05x}")
    state.stack[state.sp] = state.pc
    state.sp += 1
    state.pc = instr.nnn

def ret(state: Chip8CpuState, bus: Bus, instr: Instruction, io: Peripherals) -> None:
    if state.sp == 0:
        raise StackUnderflow("RET with an empty call stack")
    state.sp -= 1
    state.pc = state.stack[state.sp]

# Bnnn: nnn + V0 へジャンプ。結果はアドレス空間外になり得る（次のフェッチでOutOfBounds）
def jp_v0(state: Chip8CpuState, bus: Bus, instr: Instruction, io: Peripherals) -> None:
    state.pc = (instr.nnn + state.v[0]) & 0xFFFF

def se_byte(state: Chip8CpuState, bus: Bus, instr: Instruction, io: Peripherals) -> None:
    _skip_if(state, state.v[instr.x] == instr.kk)

def sne_byte(state: Chip8CpuState, bus: Bus, instr: Instruction, io: Peripherals) -> None:
    _skip_if(state, state.v[instr.x] != instr.kk)

def se_reg(state: Chip8CpuState, bus: Bus, instr: Instruction, io: Peripherals) -> None:
    _skip_if(state, state.v[instr.x] == state.v[instr.y])

def sne_reg(state: Chip8CpuState, bus: Bus, instr: Instruction, io: Peripherals) -> None:
    _skip_if(state, state.v[instr.x] != state.v[instr.y])

def skp(state: Chip8CpuState, bus: Bus, instr: Instruction, io: Peripherals) -> None:
    _skip_if(state, io.keypad.is_pressed(state.v[instr.x] & 0xF))

def sknp(state: Chip8CpuState, bus: Bus, instr: Instruction, io: Peripherals) -> None:
    _skip_if(state, not io.keypad.is_pressed(state.v[instr.x] & 0xF))
