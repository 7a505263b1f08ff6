# chip8_tracer/arch/chip8/instructions/io.py
"""
CHIP-8 入出力命令 (画面クリア、スプライト描画、キー入力待ち)。
"""
from chip8_tracer.arch.chip8.state import Chip8CpuState
from chip8_tracer.transport.bus import Bus
from .base import Instruction, Peripherals

def cls(state: Chip8CpuState, bus: Bus, instr: Instruction, io: Peripherals) -> None:
    io.display.clear()

# @intent:responsibility memory[I..I+n-1] のスプライトを (Vx, Vy) にXOR描画し、衝突をVFに設定します。
# @intent:rationale スプライトデータを全て読み出してから描画するため、OutOfBounds時に画面は変化しない。
def drw(state: Chip8CpuState, bus: Bus, instr: Instruction, io: Peripherals) -> None:
    rows = [bus.read(state.i + offset) for offset in range(instr.n)]
    collision = io.display.draw_sprite(state.v[instr.x], state.v[instr.y], rows)
    state.vf = 1 if collision else 0

# @intent:responsibility キーが押されるまで待ち、そのキー番号を Vx に格納します。
# @intent:rationale 実行をブロックせず、キー押下が観測されるまでPCを巻き戻して同じ命令を再実行させる。
#                  ドライバは step() の呼び出しを続けるだけでスピンし、フレーム間の入力更新と自然に合成される。
def ld_vx_k(state: Chip8CpuState, bus: Bus, instr: Instruction, io: Peripherals) -> None:
    if not state.waiting_for_key:
        # 待ち開始前の押下は無視し、新しい押下のみを受け付ける
        io.keypad.clear_latch()
        state.waiting_for_key = True

    key = io.keypad.consume_press()
    if key is None:
        state.pc = (state.pc - 2) & 0xFFFF
        return

    state.v[instr.x] = key
    state.waiting_for_key = False
