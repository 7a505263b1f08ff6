# chip8_tracer/arch/chip8/keypad.py
"""
入力ラッチ。

16キー(0x0-0xF)の押下状態を保持します。外部の入力アダプタが命令実行の合間に
set_key() を呼び出して状態を更新します。物理キーと論理キーの対応付けはここでは行いません。
"""
from typing import List, Optional

from chip8_tracer.common.errors import InvalidKey

KEY_COUNT = 16


# @intent:responsibility キー押下状態と「最後に押されたキー」のラッチを管理します。
class Keypad:
    def __init__(self):
        self._pressed: List[bool] = [False] * KEY_COUNT
        self._latched_press: Optional[int] = None

    # @intent:pre-condition indexは0x0-0xFである必要があります。範囲外はInvalidKey。
    def set_key(self, index: int, pressed: bool) -> None:
        """
        キーの押下状態を更新します。
        離された状態から押された状態への遷移はラッチに記録され、Fx0A が消費します。
        """
        self._check_index(index)
        if pressed and not self._pressed[index]:
            self._latched_press = index
        self._pressed[index] = bool(pressed)

    def is_pressed(self, index: int) -> bool:
        self._check_index(index)
        return self._pressed[index]

    def pressed_keys(self) -> List[int]:
        return [index for index, pressed in enumerate(self._pressed) if pressed]

    # @intent:responsibility ラッチされたキー押下を取り出し、ラッチをクリアします。
    def consume_press(self) -> Optional[int]:
        key = self._latched_press
        self._latched_press = None
        return key

    def clear_latch(self) -> None:
        self._latched_press = None

    def reset(self) -> None:
        self._pressed = [False] * KEY_COUNT
        self._latched_press = None

    def _check_index(self, index: int) -> None:
        if not isinstance(index, int) or not 0 <= index < KEY_COUNT:
            raise InvalidKey(index)
