# src/chip8_tracer/arch/chip8/assembler.py
"""
CHIP-8 簡易アセンブラ。

命令表(maps.INSTRUCTION_TABLE)を逆引きして命令語を組み立てるため、
逆アセンブラの出力はそのまま再アセンブルできます。
"""
import re
from typing import Dict, List, Optional

from chip8_tracer.arch.chip8.instructions.maps import (
    INSTRUCTION_TABLE, InstructionSpec, KK, LITERAL_OPERANDS, N, NNN, VX, VY, encode,
)
from chip8_tracer.arch.chip8.state import PROGRAM_START
from chip8_tracer.common.types import SymbolMap
from chip8_tracer.loader.assembler import BaseAssembler

INSTRUCTION_LENGTH = 2
_REGISTER_PATTERN = re.compile(r'^V([0-9A-F])$')
_FIELD_LIMITS = {N: 0xF, KK: 0xFF, NNN: 0xFFF}


class Chip8Assembler(BaseAssembler):
    """
    CHIP-8 用の簡易アセンブラ。
    既定の配置アドレスはプログラム領域の先頭(0x200)です。
    """
    def __init__(self, origin: int = PROGRAM_START):
        super().__init__(origin)
        # ニーモニック -> 命令表エントリの逆引きマップを作成
        self._mnemonic_map: Dict[str, List[InstructionSpec]] = {}
        for spec in INSTRUCTION_TABLE:
            self._mnemonic_map.setdefault(spec.mnemonic, []).append(spec)

    def _instruction_length(self, mnemonic: str, operands: str) -> int:
        if mnemonic not in self._mnemonic_map:
            raise ValueError(f"Unknown mnemonic: {mnemonic}")
        return INSTRUCTION_LENGTH

    def _encode_instruction(self, mnemonic: str, operands: str, symbol_map: SymbolMap) -> List[int]:
        specs = self._mnemonic_map.get(mnemonic)
        if specs is None:
            raise ValueError(f"Unknown mnemonic: {mnemonic}")

        tokens = self._split_operands(operands)
        # SHR/SHL は Vy を省略した形式も受け付ける
        if mnemonic in ("SHR", "SHL") and len(tokens) == 1:
            tokens.append("V0")

        for spec in specs:
            word = self._match(spec, tokens, symbol_map)
            if word is not None:
                return [(word >> 8) & 0xFF, word & 0xFF]
        raise ValueError(f"Invalid operands for {mnemonic}: {operands}")

    # @intent:responsibility オペランドが命令表エントリの形式に一致すれば命令語を返し、一致しなければNoneを返します。
    def _match(self, spec: InstructionSpec, tokens: List[str], symbol_map: SymbolMap) -> Optional[int]:
        if len(tokens) != len(spec.operands):
            return None

        fields = {}
        for kind, token in zip(spec.operands, tokens):
            upper = token.upper()
            register = _REGISTER_PATTERN.match(upper)
            if kind in (VX, VY):
                if register is None:
                    return None
                fields["x" if kind == VX else "y"] = int(register.group(1), 16)
            elif kind in _FIELD_LIMITS:
                # レジスタ名や予約語は数値オペランドにならない
                if register is not None or upper in LITERAL_OPERANDS:
                    return None
                value = self._parse_val(token, symbol_map)
                fields[kind.lower()] = self._check_range(value, _FIELD_LIMITS[kind])
            elif upper != kind:
                return None

        return encode(spec.op, **fields)
