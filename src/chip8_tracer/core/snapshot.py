# chip8_tracer/core/snapshot.py
"""
実行状態の不変スナップショット

このモジュールは、1命令実行後のCPUとバスの状態を記録した不変のデータ構造を定義します。
UIへの情報提供と、デバッグ時の状態記録に用いる責務を負います。
"""
from dataclasses import dataclass, field
from typing import Any, List, Optional

from chip8_tracer.common.errors import Chip8Error
from chip8_tracer.core.state import CpuState
from chip8_tracer.transport.bus import BusAccessType, BusAccess


# @intent:responsibility デコードされた命令の詳細を記録します。
@dataclass(frozen=True) # 不変データ構造
class Operation:
    """
    デコードされた命令の詳細（HEX、ニーモニック、オペランド）を記録するデータクラス。
    `instruction` にはアーキテクチャ固有のデコード結果（タグ付きバリアント）が入ります。
    """
    opcode_hex: str # 例: "1228"
    mnemonic: str # 例: "JP"
    operands: List[str] = field(default_factory=list) # 例: ["0x228"]
    cycle_count: int = 1
    length: int = 2 # 命令のバイト長
    instruction: Any = None

    # @intent:responsibility 逆アセンブル表示用のテキストを返します。
    @property
    def text(self) -> str:
        if self.operands:
            return f"{self.mnemonic} {', '.join(self.operands)}"
        return self.mnemonic

# @intent:responsibility 実行に関するメタデータを記録します。
@dataclass(frozen=True)
class Metadata:
    """
    実行に関するメタデータ（累計命令数、シンボル情報など）を記録するデータクラス。
    """
    cycle_count: int
    symbol_info: Optional[str] = None # 例: "main_loop: JP 0x228"

# @intent:responsibility ある一時点におけるCPUとバスの完全な状態を不変に記録します。
@dataclass(frozen=True)
class Snapshot:
    """
    ある一時点における、CPUとバスの状態を記録した不変のデータ構造。
    `state` は実行後の状態のコピーであり、以降の実行で変化しません。
    命令が致命的エラーで終了した場合、`error` にその例外が入ります。
    """
    state: CpuState
    operation: Operation
    metadata: Metadata
    bus_activity: List[BusAccess] = field(default_factory=list)
    error: Optional[Chip8Error] = None

    @property
    def failed(self) -> bool:
        return self.error is not None
