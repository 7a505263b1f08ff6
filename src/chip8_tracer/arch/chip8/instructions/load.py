# chip8_tracer/arch/chip8/instructions/load.py
"""
CHIP-8 ロード/ストア命令の実装。
レジスタ間転送、Iレジスタ、タイマー、フォント、BCD、レジスタの一括退避/復帰を扱います。
"""
from chip8_tracer.arch.chip8.fontset import font_address
from chip8_tracer.arch.chip8.state import Chip8CpuState
from chip8_tracer.transport.bus import Bus
from .base import Instruction, Peripherals

def ld_byte(state: Chip8CpuState, bus: Bus, instr: Instruction, io: Peripherals) -> None:
    state.v[instr.x] = instr.kk

def ld_reg(state: Chip8CpuState, bus: Bus, instr: Instruction, io: Peripherals) -> None:
    state.v[instr.x] = state.v[instr.y]

def ld_i(state: Chip8CpuState, bus: Bus, instr: Instruction, io: Peripherals) -> None:
    state.i = instr.nnn

def ld_vx_dt(state: Chip8CpuState, bus: Bus, instr: Instruction, io: Peripherals) -> None:
    state.v[instr.x] = state.dt

def ld_dt_vx(state: Chip8CpuState, bus: Bus, instr: Instruction, io: Peripherals) -> None:
    state.dt = state.v[instr.x]

def ld_st_vx(state: Chip8CpuState, bus: Bus, instr: Instruction, io: Peripherals) -> None:
    state.st = state.v[instr.x]

# Fx29: Vx の下位4bitの数字に対応するフォントスプライトを I に設定
def ld_f_vx(state: Chip8CpuState, bus: Bus, instr: Instruction, io: Peripherals) -> None:
    state.i = font_address(state.v[instr.x])

# Fx33: 百の位、十の位、一の位を memory[I..I+2] に格納
def ld_b_vx(state: Chip8CpuState, bus: Bus, instr: Instruction, io: Peripherals) -> None:
    value = state.v[instr.x]
    bus.write(state.i, value // 100)
    bus.write(state.i + 1, (value // 10) % 10)
    bus.write(state.i + 2, value % 10)

# Fx55: V0..Vx を memory[I..] に退避
def ld_mem_vx(state: Chip8CpuState, bus: Bus, instr: Instruction, io: Peripherals) -> None:
    for r in range(instr.x + 1):
        bus.write(state.i + r, state.v[r])
    if io.quirks.load_store_increments_i:
        state.i = (state.i + instr.x + 1) & 0xFFFF

# Fx65: memory[I..] から V0..Vx を復帰
def ld_vx_mem(state: Chip8CpuState, bus: Bus, instr: Instruction, io: Peripherals) -> None:
    for r in range(instr.x + 1):
        state.v[r] = bus.read(state.i + r)
    if io.quirks.load_store_increments_i:
        state.i = (state.i + instr.x + 1) & 0xFFFF
