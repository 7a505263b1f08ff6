"""
CHIP-8命令セット実装パッケージ。
"""
from chip8_tracer.arch.chip8.state import Chip8CpuState
from chip8_tracer.core.snapshot import Operation
from chip8_tracer.transport.bus import Bus
from .base import Instruction, Op, Peripherals, Quirks
from .maps import SPEC_BY_OP, decode_word, format_operands

# @intent:responsibility 与えられた命令語をCHIP-8の命令としてデコードします。
def decode_opcode(word: int) -> Operation:
    """
    命令語をデコードし、Operationオブジェクトを返します。
    どの規則にも一致しない場合は mnemonic が "???" の Operation を返します（instruction は None）。
    """
    instr = decode_word(word)
    if instr is None:
        return Operation(opcode_hex=f"{word:04X}", mnemonic="???", operands=[f"0x{word:04X}"])
    return Operation(
        opcode_hex=f"{word:04X}",
        mnemonic=SPEC_BY_OP[instr.op].mnemonic,
        operands=format_operands(instr),
        instruction=instr,
    )

# @intent:responsibility デコードされたCHIP-8命令を実行し、CPUの状態を変更します。
def execute_instruction(instr: Instruction, state: Chip8CpuState, bus: Bus, io: Peripherals) -> None:
    SPEC_BY_OP[instr.op].execute(state, bus, instr, io)
