# chip8_tracer/loader/loader.py
"""
コードローダーモジュール。
生のROMイメージと、アセンブリソースのロードをサポートします。
"""
import logging
from pathlib import Path
from typing import List, Tuple, Union

from chip8_tracer.arch.chip8.assembler import Chip8Assembler
from chip8_tracer.arch.chip8.cpu import Chip8Cpu
from chip8_tracer.arch.chip8.state import PROGRAM_START
from chip8_tracer.common.types import SymbolMap

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class RomLoader:
    """
    生のバイナリ（.ch8）ファイルを読み込み、プログラム領域にロードするローダー。
    """
    def load(self, file_path: PathLike, cpu: Chip8Cpu) -> bytes:
        with open(file_path, 'rb') as f:
            data = f.read()
        cpu.load_program(data)
        logger.info("Loaded ROM image %s", file_path)
        return data


class AssemblyLoader:
    """
    アセンブリソースコードを解析し、シンボル情報を抽出し、
    バイナリに変換してプログラム領域にロードする簡易ローダー。
    """
    def load_assembly(self, file_path: PathLike, cpu: Chip8Cpu) -> SymbolMap:
        with open(file_path, 'r', encoding="utf-8") as f:
            lines = f.readlines()

        symbol_map, binary_data = Chip8Assembler().assemble(lines)
        cpu.load_program(self._build_image(binary_data))
        cpu.set_symbol_map(symbol_map)
        logger.info("Assembled %s (%d symbols)", file_path, len(symbol_map))
        return symbol_map

    # @intent:responsibility (アドレス, バイト)のリストをプログラム領域先頭からの連続イメージに変換します。
    # @intent:pre-condition 全てのアドレスはプログラム領域(0x200以降)にある必要があります。
    @staticmethod
    def _build_image(binary_data: List[Tuple[int, int]]) -> bytes:
        if not binary_data:
            return b""
        lowest = min(addr for addr, _ in binary_data)
        if lowest < PROGRAM_START:
            raise ValueError(f"Assembled data at {lowest:#05x} lies below the program region ({PROGRAM_START:#05x}).")

        image = bytearray(max(addr for addr, _ in binary_data) - PROGRAM_START + 1)
        for addr, data in binary_data:
            image[addr - PROGRAM_START] = data
        return bytes(image)
