# src/chip8_tracer/ui/keymap.py
"""
ホストキーボードから論理キー（0x0-0xF）への変換。

エンジン自体は物理キーとの対応を持たないため、入力アダプタであるUIがこの変換を担います。
"""
from typing import Dict, Optional

from PySide6.QtGui import QKeySequence

from chip8_tracer.config.models import DEFAULT_KEYMAP


# @intent:responsibility Qtのキーコードを論理キー番号に変換します。
class KeyMapper:
    def __init__(self, keymap: Optional[Dict[str, int]] = None):
        self._keymap = {name.upper(): value for name, value in (keymap or DEFAULT_KEYMAP).items()}

    @property
    def keymap(self) -> Dict[str, int]:
        return dict(self._keymap)

    # 割り当てのないキーはNone
    def logical_key(self, qt_key: int) -> Optional[int]:
        # Qt.Key列挙値とintの両方を受け付ける
        code = qt_key.value if hasattr(qt_key, "value") else int(qt_key)
        name = QKeySequence(code).toString().upper()
        return self._keymap.get(name)
