# chip8_tracer/debugger/debugger.py
"""
デバッガモジュール。

実行エンジンの実行を制御し、ユーザーが指定した条件（ブレークポイント、ウォッチ条件）で
実行を中断させる責務を負います。
エンジンの致命的エラーは例外として伝播させず、停止理由として報告します。
"""
import copy
import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Deque, Dict, List, Optional, Set, Tuple

from chip8_tracer.arch.chip8.cpu import Chip8Cpu
from chip8_tracer.arch.chip8.instructions import decode_opcode
from chip8_tracer.common.errors import Chip8Error, OutOfBounds
from chip8_tracer.core.snapshot import BusAccessType, Metadata, Operation, Snapshot

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_SIZE = 1000


# @intent:responsibility デバッガの実行モードを定義します。
class RunMode(Enum):
    HALTED = "HALTED"
    RUNNING = "RUNNING"
    STEPPING = "STEPPING"


# @intent:responsibility ウォッチ条件のタイプを定義します。
class BreakpointConditionType(Enum):
    MEMORY_READ = "MEMORY_READ"         # 特定のアドレスが読み込まれた
    MEMORY_WRITE = "MEMORY_WRITE"       # 特定のアドレスに書き込まれた
    REGISTER_VALUE = "REGISTER_VALUE"   # 特定のレジスタが特定の値になった
    REGISTER_CHANGE = "REGISTER_CHANGE" # 特定のレジスタの値が変化した


# @intent:responsibility 実行を停止させるウォッチ条件を定義します。
@dataclass(frozen=True)
class BreakpointCondition:
    """
    ウォッチ条件がヒットするための条件を定義するデータクラス。
    PCアドレスによる停止はブレークポイント集合（add_breakpoint）で扱います。
    """
    condition_type: BreakpointConditionType
    value: Optional[int] = None           # REGISTER_VALUEで使用
    address: Optional[int] = None         # MEMORY_READ, MEMORY_WRITEで使用
    register_name: Optional[str] = None   # REGISTER_VALUE, REGISTER_CHANGEで使用（例: "V3", "I"）
    enabled: bool = True


# @intent:responsibility 停止理由の種類を定義します。
class StopKind(Enum):
    BREAKPOINT = "BREAKPOINT"
    WATCHPOINT = "WATCHPOINT"
    ENGINE_ERROR = "ENGINE_ERROR"
    STOPPED = "STOPPED"
    STEP_LIMIT = "STEP_LIMIT"


# @intent:responsibility run_until_stop が返す停止理由を表します。
@dataclass(frozen=True)
class StopReason:
    kind: StopKind
    address: Optional[int] = None
    condition: Optional[BreakpointCondition] = None
    error: Optional[Chip8Error] = None

    @property
    def error_kind(self) -> Optional[str]:
        return self.error.kind if self.error is not None else None

    def __str__(self) -> str:
        if self.kind == StopKind.BREAKPOINT:
            return f"Breakpoint at {self.address:#05x}"
        if self.kind == StopKind.WATCHPOINT:
            return f"Watchpoint {self.condition.condition_type.value} at PC {self.address:#05x}"
        if self.kind == StopKind.ENGINE_ERROR:
            return f"{self.error.kind}: {self.error}"
        return self.kind.value.capitalize().replace("_", " ")


# @intent:responsibility 実行エンジンの実行制御とブレークポイント管理を行います。
class Debugger:
    """
    CPUの実行を制御し、ブレークポイントとウォッチ条件の管理を行うクラス。

    シングルスレッドで動作し、"実行中"とはドライバが run_until_stop を繰り返し呼ぶことを指します。
    ブレークポイントは命令実行後のPCで判定されるため、ブレークポイントのアドレスにある命令は
    報告前に実行されることはありません。
    """
    def __init__(self, cpu: Chip8Cpu, history_size: int = DEFAULT_HISTORY_SIZE):
        self._cpu = cpu
        self._breakpoints: Set[int] = set()
        self._conditions: List[BreakpointCondition] = []
        self._mode = RunMode.HALTED
        self._stop_requested = False
        self._last_snapshot: Optional[Snapshot] = None
        self._last_stop_reason: Optional[StopReason] = None
        self._last_run_steps = 0
        # @intent:responsibility 直近の実行履歴を保持します（古いものから破棄）。
        self._history: Deque[Snapshot] = deque(maxlen=history_size)

    @property
    def cpu(self) -> Chip8Cpu:
        return self._cpu

    @property
    def mode(self) -> RunMode:
        return self._mode

    @property
    def last_run_steps(self) -> int:
        return self._last_run_steps

    @property
    def last_stop_reason(self) -> Optional[StopReason]:
        return self._last_stop_reason

    # --- Breakpoint set ---

    def add_breakpoint(self, address: int) -> None:
        """
        ブレークポイントを追加します。既に存在する場合は何もしません。
        アドレスは命令境界である必要はありません。
        """
        self._breakpoints.add(address)

    def remove_breakpoint(self, address: int) -> None:
        self._breakpoints.discard(address)

    def get_breakpoints(self) -> List[int]:
        return sorted(self._breakpoints)

    def clear_breakpoints(self) -> None:
        self._breakpoints.clear()

    # --- Watch conditions ---

    def add_condition(self, condition: BreakpointCondition) -> None:
        if condition not in self._conditions:
            self._conditions.append(condition)

    def update_condition(self, old_condition: BreakpointCondition, new_condition: BreakpointCondition) -> None:
        """
        既存のウォッチ条件を更新します（有効/無効の切り替えなど）。
        """
        if old_condition in self._conditions:
            idx = self._conditions.index(old_condition)
            self._conditions[idx] = new_condition

    def remove_condition(self, condition: BreakpointCondition) -> None:
        if condition in self._conditions:
            self._conditions.remove(condition)

    def get_conditions(self) -> List[BreakpointCondition]:
        return list(self._conditions)

    # --- History ---

    def get_history(self) -> List[Snapshot]:
        return list(self._history)

    def get_last_snapshot(self) -> Optional[Snapshot]:
        return self._last_snapshot

    # --- Run control ---

    # @intent:responsibility ブレークポイントに関係なく1命令を実行し、Snapshotを返します。
    # @intent:post-condition エンジンの致命的エラーは例外にせず Snapshot.error として返す。モードはHALTEDに戻る。
    def step_instruction(self) -> Snapshot:
        self._mode = RunMode.STEPPING
        try:
            snapshot, _ = self._step()
        finally:
            self._mode = RunMode.HALTED
        if snapshot.failed:
            self._last_stop_reason = StopReason(StopKind.ENGINE_ERROR, address=snapshot.error.pc, error=snapshot.error)
        return snapshot

    def single_step(self) -> Snapshot:
        return self.step_instruction()

    # @intent:responsibility 停止条件が成立するまで命令を実行し、停止理由を返します。
    def run_until_stop(self, max_steps: Optional[int] = None) -> StopReason:
        """
        命令実行後のPCがブレークポイントに一致する、ウォッチ条件が成立する、
        エンジンがエラーを報告する、stop() が呼ばれる、またはmax_stepsに達するまで実行します。
        """
        self._mode = RunMode.RUNNING
        self._stop_requested = False
        steps = 0
        self._last_run_steps = 0
        try:
            while True:
                if self._stop_requested:
                    reason = StopReason(StopKind.STOPPED, address=self._cpu.get_state().pc)
                    break
                if max_steps is not None and steps >= max_steps:
                    reason = StopReason(StopKind.STEP_LIMIT, address=self._cpu.get_state().pc)
                    break

                snapshot, previous_registers = self._step()
                steps += 1
                self._last_run_steps = steps
                reason = self._evaluate_stop(snapshot, previous_registers)
                if reason is not None:
                    break
        finally:
            self._mode = RunMode.HALTED

        self._last_stop_reason = reason
        if reason.kind in (StopKind.BREAKPOINT, StopKind.WATCHPOINT):
            logger.info("%s", reason)
        return reason

    def continue_run(self, max_steps: Optional[int] = None) -> StopReason:
        return self.run_until_stop(max_steps)

    # @intent:responsibility 実行中のrun_until_stopに停止を要求します。
    def stop(self) -> None:
        self._stop_requested = True
        self._mode = RunMode.HALTED

    # @intent:responsibility エンジンをリセットし、ブレークポイントとウォッチ条件を消去します。
    def reset(self, reload: bool = False) -> None:
        self._cpu.reset(reload=reload)
        self._breakpoints.clear()
        self._conditions.clear()
        self._history.clear()
        self._last_snapshot = None
        self._last_stop_reason = None
        self._mode = RunMode.HALTED

    # --- Introspection ---

    # @intent:responsibility 指定アドレスの命令を実行せずにデコードします（エンジンと同一の命令表を使用）。
    def disassemble(self, address: int) -> Operation:
        bus = self._cpu.bus
        word = (bus.peek(address) << 8) | bus.peek(address + 1)
        return decode_opcode(word)

    def disassemble_range(self, start: int, length: int) -> List[Tuple[int, str, str]]:
        return self._cpu.disassemble(start, length)

    def dump_registers(self) -> Dict[str, int]:
        return dict(self._cpu.get_register_map())

    # @intent:responsibility メモリ範囲を読み出します（バスアクセスログには残らない）。
    def dump_memory(self, start: int, length: int) -> bytes:
        bus = self._cpu.bus
        return bytes(bus.peek(address) for address in range(start, start + length))

    # --- Internals ---

    def _step(self) -> Tuple[Snapshot, Dict[str, int]]:
        previous_registers = self._cpu.get_register_map()
        try:
            snapshot = self._cpu.step()
        except Chip8Error as e:
            logger.info("Engine error: %s", e)
            snapshot = self._error_snapshot(e)
        self._last_snapshot = snapshot
        self._history.append(snapshot)
        return snapshot, previous_registers

    # @intent:responsibility 失敗した命令のSnapshotを生成します。状態はエラー発生時点のまま。
    def _error_snapshot(self, error: Chip8Error) -> Snapshot:
        try:
            operation = self.disassemble(error.pc)
        except OutOfBounds:
            operation = Operation(opcode_hex="----", mnemonic="???")
        return Snapshot(
            state=copy.deepcopy(self._cpu.get_state()),
            operation=operation,
            metadata=Metadata(cycle_count=self._cpu.cycle_count),
            bus_activity=self._cpu.bus.get_and_clear_activity_log(),
            error=error,
        )

    def _evaluate_stop(self, snapshot: Snapshot, previous_registers: Dict[str, int]) -> Optional[StopReason]:
        if snapshot.failed:
            return StopReason(StopKind.ENGINE_ERROR, address=snapshot.error.pc, error=snapshot.error)

        pc = snapshot.state.pc
        # Fx0A のスピン（PCが自分自身に戻る）はブレークポイントの再ヒットとみなさない
        spinning = snapshot.state.waiting_for_key and previous_registers["PC"] == pc
        if pc in self._breakpoints and not spinning:
            return StopReason(StopKind.BREAKPOINT, address=pc)

        condition = self._check_conditions(snapshot, previous_registers)
        if condition is not None:
            return StopReason(StopKind.WATCHPOINT, address=pc, condition=condition)
        return None

    def _check_conditions(self, snapshot: Snapshot, previous_registers: Dict[str, int]) -> Optional[BreakpointCondition]:
        """
        Snapshotに基づいてウォッチ条件を評価し、最初に成立した条件を返します。
        """
        registers = self._cpu.get_register_map()

        for bp in self._conditions:
            if not bp.enabled:
                continue

            if bp.condition_type == BreakpointConditionType.MEMORY_READ:
                for access in snapshot.bus_activity:
                    if access.access_type == BusAccessType.READ and access.address == bp.address:
                        return bp
            elif bp.condition_type == BreakpointConditionType.MEMORY_WRITE:
                for access in snapshot.bus_activity:
                    if access.access_type == BusAccessType.WRITE and access.address == bp.address:
                        return bp
            elif bp.condition_type == BreakpointConditionType.REGISTER_VALUE:
                if bp.register_name in registers and registers[bp.register_name] == bp.value:
                    return bp
            elif bp.condition_type == BreakpointConditionType.REGISTER_CHANGE:
                name = bp.register_name
                if name in registers and name in previous_registers:
                    if registers[name] != previous_registers[name]:
                        return bp
        return None
