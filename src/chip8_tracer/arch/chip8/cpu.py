# chip8_tracer/arch/chip8/cpu.py
"""
CHIP-8 実行エンジン。

メモリ（Bus）、レジスタファイル、タイマー、ディスプレイ、入力ラッチを所有し、
フェッチ・デコード・実行サイクルと実行制御プリミティブを提供します。
"""
import logging
import random
from typing import Dict, List, Optional, Tuple

from chip8_tracer.arch.chip8 import timers
from chip8_tracer.arch.chip8.display import Display, Framebuffer
from chip8_tracer.arch.chip8.fontset import FONTSET, FONT_ADDRESS
from chip8_tracer.arch.chip8.instructions import decode_opcode, execute_instruction
from chip8_tracer.arch.chip8.instructions.base import Peripherals, Quirks
from chip8_tracer.arch.chip8.keypad import Keypad
from chip8_tracer.arch.chip8.state import Chip8CpuState, PROGRAM_START, REGISTER_COUNT
from chip8_tracer.common.errors import CapacityExceeded, InvalidOpcode
from chip8_tracer.common.types import RegisterLayoutInfo, RegisterInfo
from chip8_tracer.core.cpu import AbstractCpu
from chip8_tracer.core.snapshot import Operation
from chip8_tracer.transport.bus import Bus

logger = logging.getLogger(__name__)


# @intent:responsibility CHIP-8 CPUの具体的なエミュレーションロジックを提供します。
class Chip8Cpu(AbstractCpu):
    """
    CHIP-8をエミュレートするクラス。

    step() は1命令だけを実行し、tick_timers() はタイマーを1回減算します。
    両者の呼び出し比率（cycles per tick）は呼び出し側が決め、エンジンは仮定しません。
    """
    def __init__(self, bus: Bus, quirks: Optional[Quirks] = None, rng: Optional[random.Random] = None):
        self.display = Display()
        self.keypad = Keypad()
        self._quirks = quirks or Quirks()
        self._rng = rng or random.Random()
        self._program = b""
        super().__init__(bus)
        self._peripherals = Peripherals(self.display, self.keypad, self._rng, self._quirks)
        self._load_fontset()

    @property
    def quirks(self) -> Quirks:
        return self._quirks

    # @intent:responsibility CHIP-8の初期状態を生成します（PC = 0x200、スタック空）。
    def _create_initial_state(self) -> Chip8CpuState:
        return Chip8CpuState()

    def get_state(self) -> Chip8CpuState:
        return self._state

    # @intent:responsibility フォントセットをインタプリタ領域に書き込みます。
    def _load_fontset(self) -> None:
        for offset, value in enumerate(FONTSET):
            self._bus.load(FONT_ADDRESS + offset, value)

    # @intent:responsibility レジスタ、タイマー、ディスプレイ、入力ラッチを初期化します。
    # @intent:post-condition プログラム領域はそのまま残る。reload=True なら最後にロードしたイメージを再ロードする。
    def reset(self, reload: bool = False) -> None:
        super().reset()
        self.display.clear()
        self.keypad.reset()
        if reload:
            self.load_program(self._program)

    # @intent:responsibility プログラムイメージをエントリオフセット(0x200)からメモリに書き込みます。
    # @intent:pre-condition イメージはプログラム領域に収まる必要があります。超える場合はCapacityExceeded（メモリは無変更）。
    def load_program(self, data: bytes) -> None:
        """
        プログラムイメージをメモリにロードします。
        プログラム領域の残りは0で埋められます（前回ロードしたプログラムの残骸を消すため）。
        """
        capacity = self.program_capacity
        if len(data) > capacity:
            raise CapacityExceeded(len(data), capacity)

        for offset in range(capacity):
            value = data[offset] if offset < len(data) else 0x00
            self._bus.load(PROGRAM_START + offset, value)
        self._program = bytes(data)
        logger.info("Loaded program of %d bytes at %#05x", len(data), PROGRAM_START)

    # @intent:responsibility 最後にロードしたプログラムイメージを返します。
    @property
    def program(self) -> bytes:
        return self._program

    @property
    def program_capacity(self) -> int:
        return self._bus.get_address_limit() - PROGRAM_START

    # @intent:responsibility 命令フェッチ。ビッグエンディアンの16bit命令語を読み、PCを2進める。
    # @intent:rationale PCはデコード前に進めるため、ジャンプ/コール命令は進めた値を上書きする。
    def _fetch(self) -> int:
        pc = self._state.pc
        word = (self._bus.read(pc) << 8) | self._bus.read(pc + 1)
        self._state.pc = (pc + 2) & 0xFFFF
        return word

    # @intent:responsibility 命令デコード。一致する規則がない場合はInvalidOpcode（PCは進めたまま）。
    def _decode(self, opcode: int) -> Operation:
        operation = decode_opcode(opcode)
        if operation.instruction is None:
            raise InvalidOpcode(opcode)
        return operation

    def _execute(self, operation: Operation) -> None:
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("%04X  %s", (self._state.pc - 2) & 0xFFFF, operation.text)
        execute_instruction(operation.instruction, self._state, self._bus, self._peripherals)

    # @intent:responsibility タイマーを1回減算します。呼び出し側が一定レート（60Hz）で呼ぶ必要があります。
    def tick_timers(self) -> None:
        timers.tick(self._state)

    @property
    def sound_active(self) -> bool:
        return timers.sound_active(self._state)

    # @intent:responsibility 外部入力アダプタからのキー状態の更新を受け付けます。
    def set_key(self, index: int, pressed: bool) -> None:
        self.keypad.set_key(index, pressed)

    def framebuffer(self) -> Framebuffer:
        return self.display.framebuffer()

    # @intent:responsibility レジスタマップ（UI/デバッガ表示用）を返す。
    def get_register_map(self) -> Dict[str, int]:
        state = self._state
        registers = {f"V{index:X}": state.v[index] for index in range(REGISTER_COUNT)}
        registers.update({
            "I": state.i,
            "PC": state.pc,
            "SP": state.sp,
            "DT": state.dt,
            "ST": state.st,
        })
        return registers

    def get_register_layout(self) -> List[RegisterLayoutInfo]:
        return [
            RegisterLayoutInfo("General", [RegisterInfo(f"V{index:X}", 8) for index in range(REGISTER_COUNT)]),
            RegisterLayoutInfo("Pointers", [
                RegisterInfo("I", 16),
                RegisterInfo("PC", 16),
                RegisterInfo("SP", 8),
            ]),
            RegisterLayoutInfo("Timers", [
                RegisterInfo("DT", 8),
                RegisterInfo("ST", 8),
            ]),
        ]

    # @intent:responsibility フラグ状態（UI表示用）を返す。
    def get_flag_state(self) -> Dict[str, bool]:
        state = self._state
        return {
            "VF": state.vf != 0,
            "SOUND": timers.sound_active(state),
            "KEY_WAIT": state.waiting_for_key,
        }

    def disassemble(self, start_addr: int, length: int) -> List[Tuple[int, str, str]]:
        from chip8_tracer.arch.chip8 import disassembler
        return disassembler.disassemble(self._bus, start_addr, length)
