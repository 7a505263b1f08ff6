# chip8_tracer/arch/chip8/instructions/maps.py
"""
CHIP-8 命令表とデコード/エンコードロジック。

実行エンジン、逆アセンブラ、アセンブラの全てがこの単一の表を参照するため、
三者のデコード規則が食い違うことはありません。

    00E0 CLS               8xy0 LD Vx, Vy        Ex9E SKP Vx
    00EE RET               8xy1 OR Vx, Vy        ExA1 SKNP Vx
    0nnn SYS addr          8xy2 AND Vx, Vy       Fx07 LD Vx, DT
    1nnn JP addr           8xy3 XOR Vx, Vy       Fx0A LD Vx, K
    2nnn CALL addr         8xy4 ADD Vx, Vy       Fx15 LD DT, Vx
    3xkk SE Vx, byte       8xy5 SUB Vx, Vy       Fx18 LD ST, Vx
    4xkk SNE Vx, byte      8xy6 SHR Vx, Vy       Fx1E ADD I, Vx
    5xy0 SE Vx, Vy         8xy7 SUBN Vx, Vy      Fx29 LD F, Vx
    6xkk LD Vx, byte       8xyE SHL Vx, Vy       Fx33 LD B, Vx
    7xkk ADD Vx, byte      9xy0 SNE Vx, Vy       Fx55 LD [I], Vx
    Annn LD I, addr        Bnnn JP V0, addr      Fx65 LD Vx, [I]
    Cxkk RND Vx, byte      Dxyn DRW Vx, Vy, n
"""
from functools import lru_cache
from typing import Callable, Dict, List, NamedTuple, Optional, Tuple

from chip8_tracer.arch.chip8.state import Chip8CpuState
from chip8_tracer.transport.bus import Bus
from . import alu, control, io, load
from .base import Instruction, Op, Peripherals

# Execution Function Type
ExecFunc = Callable[[Chip8CpuState, Bus, Instruction, Peripherals], None]

# @intent:constant オペランドの種類。フィールドを持つものと、固定のリテラルがある。
VX = "VX"
VY = "VY"
N = "N"
KK = "KK"
NNN = "NNN"
FIELD_OPERANDS = (VX, VY, N, KK, NNN)
LITERAL_OPERANDS = ("V0", "I", "[I]", "DT", "ST", "K", "F", "B")


# @intent:data_structure 命令表の1エントリ。word & mask == pattern で一致判定する。
class InstructionSpec(NamedTuple):
    op: Op
    mask: int
    pattern: int
    mnemonic: str
    operands: Tuple[str, ...]
    execute: ExecFunc


# @intent:rationale 先頭から順に一致判定するため、00E0/00EE は 0nnn より前に置く。
INSTRUCTION_TABLE: List[InstructionSpec] = [
    InstructionSpec(Op.CLS,       0xFFFF, 0x00E0, "CLS",  (),                io.cls),
    InstructionSpec(Op.RET,       0xFFFF, 0x00EE, "RET",  (),                control.ret),
    InstructionSpec(Op.SYS,       0xF000, 0x0000, "SYS",  (NNN,),            control.sys_),
    InstructionSpec(Op.JP,        0xF000, 0x1000, "JP",   (NNN,),            control.jp),
    InstructionSpec(Op.CALL,      0xF000, 0x2000, "CALL", (NNN,),            control.call),
    InstructionSpec(Op.SE_BYTE,   0xF000, 0x3000, "SE",   (VX, KK),          control.se_byte),
    InstructionSpec(Op.SNE_BYTE,  0xF000, 0x4000, "SNE",  (VX, KK),          control.sne_byte),
    InstructionSpec(Op.SE_REG,    0xF00F, 0x5000, "SE",   (VX, VY),          control.se_reg),
    InstructionSpec(Op.LD_BYTE,   0xF000, 0x6000, "LD",   (VX, KK),          load.ld_byte),
    InstructionSpec(Op.ADD_BYTE,  0xF000, 0x7000, "ADD",  (VX, KK),          alu.add_byte),
    InstructionSpec(Op.LD_REG,    0xF00F, 0x8000, "LD",   (VX, VY),          load.ld_reg),
    InstructionSpec(Op.OR,        0xF00F, 0x8001, "OR",   (VX, VY),          alu.or_),
    InstructionSpec(Op.AND,       0xF00F, 0x8002, "AND",  (VX, VY),          alu.and_),
    InstructionSpec(Op.XOR,       0xF00F, 0x8003, "XOR",  (VX, VY),          alu.xor),
    InstructionSpec(Op.ADD_REG,   0xF00F, 0x8004, "ADD",  (VX, VY),          alu.add_reg),
    InstructionSpec(Op.SUB,       0xF00F, 0x8005, "SUB",  (VX, VY),          alu.sub),
    InstructionSpec(Op.SHR,       0xF00F, 0x8006, "SHR",  (VX, VY),          alu.shr),
    InstructionSpec(Op.SUBN,      0xF00F, 0x8007, "SUBN", (VX, VY),          alu.subn),
    InstructionSpec(Op.SHL,       0xF00F, 0x800E, "SHL",  (VX, VY),          alu.shl),
    InstructionSpec(Op.SNE_REG,   0xF00F, 0x9000, "SNE",  (VX, VY),          control.sne_reg),
    InstructionSpec(Op.LD_I,      0xF000, 0xA000, "LD",   ("I", NNN),        load.ld_i),
    InstructionSpec(Op.JP_V0,     0xF000, 0xB000, "JP",   ("V0", NNN),       control.jp_v0),
    InstructionSpec(Op.RND,       0xF000, 0xC000, "RND",  (VX, KK),          alu.rnd),
    InstructionSpec(Op.DRW,       0xF000, 0xD000, "DRW",  (VX, VY, N),       io.drw),
    InstructionSpec(Op.SKP,       0xF0FF, 0xE09E, "SKP",  (VX,),             control.skp),
    InstructionSpec(Op.SKNP,      0xF0FF, 0xE0A1, "SKNP", (VX,),             control.sknp),
    InstructionSpec(Op.LD_VX_DT,  0xF0FF, 0xF007, "LD",   (VX, "DT"),        load.ld_vx_dt),
    InstructionSpec(Op.LD_VX_K,   0xF0FF, 0xF00A, "LD",   (VX, "K"),         io.ld_vx_k),
    InstructionSpec(Op.LD_DT_VX,  0xF0FF, 0xF015, "LD",   ("DT", VX),        load.ld_dt_vx),
    InstructionSpec(Op.LD_ST_VX,  0xF0FF, 0xF018, "LD",   ("ST", VX),        load.ld_st_vx),
    InstructionSpec(Op.ADD_I_VX,  0xF0FF, 0xF01E, "ADD",  ("I", VX),         alu.add_i_vx),
    InstructionSpec(Op.LD_F_VX,   0xF0FF, 0xF029, "LD",   ("F", VX),         load.ld_f_vx),
    InstructionSpec(Op.LD_B_VX,   0xF0FF, 0xF033, "LD",   ("B", VX),         load.ld_b_vx),
    InstructionSpec(Op.LD_MEM_VX, 0xF0FF, 0xF055, "LD",   ("[I]", VX),       load.ld_mem_vx),
    InstructionSpec(Op.LD_VX_MEM, 0xF0FF, 0xF065, "LD",   (VX, "[I]"),       load.ld_vx_mem),
]

SPEC_BY_OP: Dict[Op, InstructionSpec] = {spec.op: spec for spec in INSTRUCTION_TABLE}


# @intent:responsibility 命令語をデコードします。どの規則にも一致しない場合はNoneを返します。
# @intent:rationale 命令語は高々65536通りで、Instructionは不変なのでデコード結果をキャッシュする。
@lru_cache(maxsize=None)
def decode_word(word: int) -> Optional[Instruction]:
    word &= 0xFFFF
    for spec in INSTRUCTION_TABLE:
        if word & spec.mask == spec.pattern:
            return Instruction.from_word(spec.op, word)
    return None


# @intent:responsibility オペランドを表示用の文字列リストに変換します。
def format_operands(instr: Instruction) -> List[str]:
    operands = []
    for kind in SPEC_BY_OP[instr.op].operands:
        if kind == VX:
            operands.append(f"V{instr.x:X}")
        elif kind == VY:
            operands.append(f"V{instr.y:X}")
        elif kind == N:
            operands.append(f"{instr.n}")
        elif kind == KK:
            operands.append(f"0x{instr.kk:02X}")
        elif kind == NNN:
            operands.append(f"0x{instr.nnn:03X}")
        else:
            operands.append(kind)
    return operands


# @intent:responsibility 命令の種類とフィールド値から命令語を組み立てます（decode_wordの逆変換）。
# @intent:pre-condition 使用するフィールドはそれぞれのビット幅に収まっている必要があります。
def encode(op: Op, x: int = 0, y: int = 0, n: int = 0, kk: int = 0, nnn: int = 0) -> int:
    spec = SPEC_BY_OP[op]
    word = spec.pattern
    for kind in spec.operands:
        if kind == VX:
            word |= _check_field("x", x, 0xF) << 8
        elif kind == VY:
            word |= _check_field("y", y, 0xF) << 4
        elif kind == N:
            word |= _check_field("n", n, 0xF)
        elif kind == KK:
            word |= _check_field("kk", kk, 0xFF)
        elif kind == NNN:
            word |= _check_field("nnn", nnn, 0xFFF)
    return word


def _check_field(name: str, value: int, limit: int) -> int:
    if not 0 <= value <= limit:
        raise ValueError(f"Operand {name}={value:#x} does not fit in {limit:#x}")
    return value
