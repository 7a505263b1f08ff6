# chip8_tracer/arch/chip8/display.py
"""
ディスプレイサーフェス。

64x32のモノクロピクセルグリッドを保持します。内容を変更できるのは
クリア操作とスプライトのXOR描画のみです。レンダラはフレームごとに framebuffer() を読み出します。
"""
from typing import Iterable, List, Tuple

DISPLAY_WIDTH = 64
DISPLAY_HEIGHT = 32
SPRITE_WIDTH = 8

Framebuffer = Tuple[Tuple[bool, ...], ...]


# @intent:responsibility フレームバッファの保持とスプライト合成（XOR）を行います。
class Display:
    """
    モノクロのフレームバッファ。
    座標はグリッドの寸法を法として折り返されます（スプライトの各ピクセルが独立に折り返す）。
    """
    def __init__(self, width: int = DISPLAY_WIDTH, height: int = DISPLAY_HEIGHT):
        self.width = width
        self.height = height
        self._pixels: List[List[bool]] = [[False] * width for _ in range(height)]
        # @intent:rationale レンダラが変化のあったフレームだけを再描画できるように変更フラグを持つ。
        self.dirty = True

    # @intent:responsibility 全ピクセルを消去します。
    def clear(self) -> None:
        for row in self._pixels:
            for x in range(self.width):
                row[x] = False
        self.dirty = True

    # @intent:responsibility スプライトを(x, y)にXOR合成し、衝突の有無を返します。
    # @intent:post-condition 点灯していたピクセルがXORで消灯した場合にTrueを返します。
    def draw_sprite(self, x: int, y: int, rows: Iterable[int]) -> bool:
        """
        1バイト=1行（MSBが左端）のスプライトを描画します。
        """
        collision = False
        for dy, row_bits in enumerate(rows):
            py = (y + dy) % self.height
            for dx in range(SPRITE_WIDTH):
                if not (row_bits >> (SPRITE_WIDTH - 1 - dx)) & 0x1:
                    continue
                px = (x + dx) % self.width
                if self._pixels[py][px]:
                    collision = True
                self._pixels[py][px] = not self._pixels[py][px]
        self.dirty = True
        return collision

    def pixel(self, x: int, y: int) -> bool:
        return self._pixels[y % self.height][x % self.width]

    # @intent:responsibility 行優先の読み取り専用ビューを返します。副作用はありません。
    def framebuffer(self) -> Framebuffer:
        return tuple(tuple(row) for row in self._pixels)

    def is_blank(self) -> bool:
        return not any(any(row) for row in self._pixels)
