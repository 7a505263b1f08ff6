# chip8_tracer/core/cpu.py
"""
Core Layer (実行エンジンの骨格)

フェッチ → デコード → 実行 → Snapshot生成 という1命令の流れを固定し、
各段階の中身（命令語の取り出し方、命令表、命令の意味）を具象クラスに任せます。
"""
import copy
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple

from chip8_tracer.common.errors import Chip8Error
from chip8_tracer.common.types import RegisterLayoutInfo, SymbolMap
from chip8_tracer.core.snapshot import Metadata, Operation, Snapshot
from chip8_tracer.core.state import CpuState
from chip8_tracer.transport.bus import Bus


# @intent:responsibility 命令サイクルの共通手順と、デバッガ/UI向けの問い合わせインターフェースを定義します。
class AbstractCpu(ABC):
    """
    エンジンの抽象基底クラス。

    レジスタ状態は get_state() 経由でのみ公開し、step() が返すSnapshotには
    実行後の状態のコピーを入れます。
    """
    def __init__(self, bus: Bus):
        self._bus = bus
        self._state: CpuState = self._create_initial_state()
        self._cycle_count = 0
        self._symbol_map: SymbolMap = {}
        self._labels: Dict[int, str] = {}

    @property
    def bus(self) -> Bus:
        return self._bus

    # 実行した命令の累計
    @property
    def cycle_count(self) -> int:
        return self._cycle_count

    # --- 状態 ---

    @abstractmethod
    def _create_initial_state(self) -> CpuState:
        ...

    def get_state(self) -> CpuState:
        return self._state

    # @intent:responsibility レジスタ状態を初期値に戻します。メモリには触れません。
    def reset(self) -> None:
        self._state = self._create_initial_state()
        self._cycle_count = 0

    # --- シンボル ---

    def set_symbol_map(self, symbol_map: SymbolMap) -> None:
        self._symbol_map = symbol_map
        self._labels = {address: name for name, address in symbol_map.items()}

    def get_symbol_map(self) -> SymbolMap:
        return self._symbol_map

    def label_at(self, address: int) -> Optional[str]:
        return self._labels.get(address)

    # --- 命令サイクル ---

    # @intent:post-condition 戻る時点でPCは次の命令を指していること。
    @abstractmethod
    def _fetch(self) -> int:
        ...

    # @intent:pre-condition 命令表にない命令語はInvalidOpcodeを送出すること。
    @abstractmethod
    def _decode(self, opcode: int) -> Operation:
        ...

    @abstractmethod
    def _execute(self, operation: Operation) -> None:
        ...

    # @intent:responsibility 1命令を実行し、実行後の状態とその命令のバスアクセスをSnapshotにまとめて返します。
    def step(self) -> Snapshot:
        """
        1命令を実行します。

        エンジンのエラー（Chip8Error）は、失敗した命令のアドレスを pc に設定してから
        呼び出し元へそのまま送出します。状態は失敗した時点のまま残ります。
        """
        # 前回のstep以降にpeek以外で発生したアクセスは、この命令のものではない
        self._bus.get_and_clear_activity_log()
        start_pc = self._state.pc

        try:
            operation = self._decode(self._fetch())
            self._execute(operation)
        except Chip8Error as e:
            if e.pc is None:
                e.pc = start_pc
            raise

        self._cycle_count += operation.cycle_count
        label = self.label_at(start_pc)
        return Snapshot(
            state=copy.deepcopy(self._state),
            operation=operation,
            metadata=Metadata(
                cycle_count=self._cycle_count,
                symbol_info=f"{label}: {operation.text}" if label else operation.text,
            ),
            bus_activity=self._bus.get_and_clear_activity_log(),
        )

    # --- デバッガ/UI向けの問い合わせ ---

    # @intent:responsibility レジスタ名から現在値への辞書を返します。表示側はCPUの内部構造を知らずに済みます。
    @abstractmethod
    def get_register_map(self) -> Dict[str, int]:
        ...

    @abstractmethod
    def get_register_layout(self) -> List[RegisterLayoutInfo]:
        ...

    @abstractmethod
    def get_flag_state(self) -> Dict[str, bool]:
        ...

    # @intent:responsibility [start_addr, start_addr + length) を (address, hex_bytes, text) のリストに逆アセンブルします。
    @abstractmethod
    def disassemble(self, start_addr: int, length: int) -> List[Tuple[int, str, str]]:
        ...
