# chip8_tracer/loader/assembler.py
"""
アセンブラの共通基盤。
AssemblyLoaderから利用されます。
"""
import re
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from chip8_tracer.common.types import SymbolMap

# (label, mnemonic, operands)
ParsedLine = Tuple[Optional[str], Optional[str], Optional[str]]


# @intent:responsibility アセンブラの共通インターフェースと2パス処理を定義します。
class BaseAssembler(ABC):
    """
    1パス目でラベルのアドレスを確定し、2パス目でバイナリを生成します。
    ORG / DB / DW の疑似命令は基底クラスで処理し、命令のエンコードはサブクラスに委譲します。
    """
    def __init__(self, origin: int = 0):
        self._origin = origin

    def assemble(self, lines: List[str]) -> Tuple[SymbolMap, List[Tuple[int, int]]]:
        """
        アセンブリソースを行単位で解析し、シンボルマップと (アドレス, バイト) のリストを返します。
        """
        parsed_lines = [self._parse_line(line) for line in lines]
        symbol_map = self._build_symbol_map(parsed_lines)

        binary_data: List[Tuple[int, int]] = []
        current_pc = self._origin
        for line_num, (_, mnemonic, operands) in enumerate(parsed_lines, 1):
            if not mnemonic:
                continue
            try:
                if mnemonic == "ORG":
                    current_pc = self._parse_val(operands, symbol_map)
                    continue
                data = self._emit(mnemonic, operands, symbol_map)
            except ValueError as e:
                raise ValueError(f"Error assembling line {line_num}: {lines[line_num - 1].strip()} - {e}") from e

            for offset, byte in enumerate(data):
                binary_data.append((current_pc + offset, byte))
            current_pc += len(data)

        return symbol_map, binary_data

    # @intent:responsibility 1パス目。ラベルの位置を計算します。
    def _build_symbol_map(self, parsed_lines: List[ParsedLine]) -> SymbolMap:
        symbol_map: SymbolMap = {}
        temp_pc = self._origin
        for line_num, (label, mnemonic, operands) in enumerate(parsed_lines, 1):
            if label:
                if label in symbol_map:
                    raise ValueError(f"Duplicate label '{label}' on line {line_num}")
                symbol_map[label] = temp_pc
            if not mnemonic:
                continue

            try:
                if mnemonic == "ORG":
                    temp_pc = self._parse_val(operands, {})
                elif mnemonic == "DB":
                    temp_pc += len(self._split_operands(operands))
                elif mnemonic == "DW":
                    temp_pc += 2 * len(self._split_operands(operands))
                else:
                    temp_pc += self._instruction_length(mnemonic, operands)
            except ValueError as e:
                raise ValueError(f"Error assembling line {line_num}: {e}") from e
        return symbol_map

    def _emit(self, mnemonic: str, operands: str, symbol_map: SymbolMap) -> List[int]:
        if mnemonic == "DB":
            return [self._check_range(self._parse_val(v, symbol_map), 0xFF)
                    for v in self._split_operands(operands)]
        if mnemonic == "DW":
            data = []
            for v in self._split_operands(operands):
                word = self._check_range(self._parse_val(v, symbol_map), 0xFFFF)
                data.extend([(word >> 8) & 0xFF, word & 0xFF])
            return data
        return self._encode_instruction(mnemonic, operands, symbol_map)

    # @intent:responsibility 命令のバイト長を返します（1パス目用。シンボルは未解決）。
    @abstractmethod
    def _instruction_length(self, mnemonic: str, operands: str) -> int:
        pass

    # @intent:responsibility 命令をバイト列にエンコードします。
    @abstractmethod
    def _encode_instruction(self, mnemonic: str, operands: str, symbol_map: SymbolMap) -> List[int]:
        pass

    def _parse_line(self, line: str) -> ParsedLine:
        line = line.strip()
        if not line or line.startswith(';'):
            return None, None, None

        line = line.split(';')[0].strip()

        label = None
        if ':' in line:
            label, rest = line.split(':', 1)
            label = label.strip()
            line = rest.strip()

        if not line:
            return label, None, None

        parts = re.split(r'\s+', line, maxsplit=1)
        mnemonic = parts[0].upper()
        operands = parts[1] if len(parts) > 1 else ""

        return label, mnemonic, operands

    @staticmethod
    def _split_operands(operands: Optional[str]) -> List[str]:
        if not operands or not operands.strip():
            return []
        return [op.strip() for op in operands.split(',')]

    # @intent:utility_function 多様な数値表現（$, 0x, h）およびラベル名を安全に数値に変換します。
    def _parse_val(self, val_str: str, symbol_map: SymbolMap) -> int:
        val_str = val_str.strip()
        if val_str in symbol_map:
            return symbol_map[val_str]
        val_str = val_str.replace('$', '0x')
        val_str = re.sub(r'^([0-9][0-9A-Fa-f]*)[hH]$', r'0x\1', val_str)
        if val_str.lower().startswith('0x'):
            return int(val_str, 16)
        try:
            return int(val_str)
        except ValueError:
            raise ValueError(f"Undefined symbol or invalid value: {val_str}") from None

    @staticmethod
    def _check_range(value: int, limit: int) -> int:
        if not 0 <= value <= limit:
            raise ValueError(f"Value {value:#x} does not fit in {limit:#x}")
        return value
