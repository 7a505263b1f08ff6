"""
CHIP-8逆アセンブラモジュール。

メモリ上のバイナリデータを解析し、CHIP-8アセンブリ言語のニーモニック形式に変換します。
"""
from typing import List, Tuple

from chip8_tracer.arch.chip8.instructions import decode_opcode
from chip8_tracer.common.errors import OutOfBounds
from chip8_tracer.transport.bus import Bus

INSTRUCTION_LENGTH = 2


# @intent:responsibility 指定アドレスの1命令を逆アセンブルし、(16進ダンプ, ニーモニック) を返します。
# @intent:rationale ログを汚さないためにpeekを使用する。デバッガからの参照で実行状態が変化してはならない。
def disassemble_at(bus: Bus, address: int) -> Tuple[str, str]:
    word = (bus.peek(address) << 8) | bus.peek(address + 1)
    operation = decode_opcode(word)
    return f"{word >> 8:02X} {word & 0xFF:02X}", operation.text


# @intent:responsibility 指定されたメモリ範囲のバイナリデータを解析し、アドレスとニーモニックのリストを返します。
def disassemble(bus: Bus, start_addr: int, length: int) -> List[Tuple[int, str, str]]:
    """
    メモリ上のデータを2バイト単位で読み取り、(アドレス, 16進ダンプ, ニーモニック) のタプルのリストを返します。
    一致する規則のない命令語は "???" として表示されます（エラーにはしない）。
    """
    result = []
    current_addr = start_addr
    end_addr = start_addr + length

    while current_addr < end_addr:
        try:
            hex_dump, mnemonic = disassemble_at(bus, current_addr)
        except OutOfBounds:
            # アドレス空間の終端をまたぐ場合
            result.append((current_addr, "??", "ERR"))
            break
        result.append((current_addr, hex_dump, mnemonic))
        current_addr += INSTRUCTION_LENGTH

    return result
