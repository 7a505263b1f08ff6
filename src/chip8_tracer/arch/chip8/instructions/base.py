# chip8_tracer/arch/chip8/instructions/base.py
"""
CHIP-8 命令の共通定義。

デコード結果を表すタグ付きバリアント(Instruction)と、命令実行時に参照される
周辺装置(Peripherals)、互換性設定(Quirks)を定義します。
"""
import random
from dataclasses import dataclass
from enum import Enum

from chip8_tracer.arch.chip8.display import Display
from chip8_tracer.arch.chip8.keypad import Keypad


# @intent:responsibility 命令の種類（バリアントのタグ）を定義します。
class Op(Enum):
    CLS = "CLS"
    RET = "RET"
    SYS = "SYS"
    JP = "JP"
    CALL = "CALL"
    SE_BYTE = "SE_BYTE"
    SNE_BYTE = "SNE_BYTE"
    SE_REG = "SE_REG"
    LD_BYTE = "LD_BYTE"
    ADD_BYTE = "ADD_BYTE"
    LD_REG = "LD_REG"
    OR = "OR"
    AND = "AND"
    XOR = "XOR"
    ADD_REG = "ADD_REG"
    SUB = "SUB"
    SHR = "SHR"
    SUBN = "SUBN"
    SHL = "SHL"
    SNE_REG = "SNE_REG"
    LD_I = "LD_I"
    JP_V0 = "JP_V0"
    RND = "RND"
    DRW = "DRW"
    SKP = "SKP"
    SKNP = "SKNP"
    LD_VX_DT = "LD_VX_DT"
    LD_VX_K = "LD_VX_K"
    LD_DT_VX = "LD_DT_VX"
    LD_ST_VX = "LD_ST_VX"
    ADD_I_VX = "ADD_I_VX"
    LD_F_VX = "LD_F_VX"
    LD_B_VX = "LD_B_VX"
    LD_MEM_VX = "LD_MEM_VX"
    LD_VX_MEM = "LD_VX_MEM"


# @intent:data_structure デコード済み命令（タグ付きバリアント）。
# @intent:rationale デコードと実行を分離し、逆アセンブラとアセンブラが同じ表を共有できるようにします。
@dataclass(frozen=True)
class Instruction:
    """
    1つの命令語のデコード結果。フィールドは命令語から一律に切り出すため、命令が使わないフィールドにも値が入ります。
    """
    op: Op
    x: int = 0
    y: int = 0
    n: int = 0
    kk: int = 0
    nnn: int = 0

    # @intent:responsibility 命令語から全てのフィールドを切り出してInstructionを生成します。
    @classmethod
    def from_word(cls, op: Op, word: int) -> 'Instruction':
        return cls(
            op=op,
            x=(word >> 8) & 0xF,
            y=(word >> 4) & 0xF,
            n=word & 0xF,
            kk=word & 0xFF,
            nnn=word & 0xFFF,
        )


# @intent:responsibility 実装間で挙動が分かれる命令の振る舞いを選択します。
@dataclass(frozen=True)
class Quirks:
    """
    shift_uses_vy: True なら 8xy6/8xyE は Vy をシフトした結果を Vx に入れる（COSMAC VIP方式）。
                   False（既定）なら Vx をその場でシフトし、Vy は無視する。
    load_store_increments_i: True なら Fx55/Fx65 の後に I += x + 1 とする。
    """
    shift_uses_vy: bool = False
    load_store_increments_i: bool = False


# @intent:responsibility 命令実行時に必要な周辺装置への参照をまとめます。
@dataclass
class Peripherals:
    display: Display
    keypad: Keypad
    rng: random.Random
    quirks: Quirks
