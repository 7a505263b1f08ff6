"""
エラー分類モジュール。

実行エンジンが報告する致命的な状態と、呼び出し側の誤用を表す例外を定義します。
エンジンは内部で回復を試みず、これらの例外を呼び出し元（Debugger / Driver）に伝播させます。
"""
from typing import Optional


# @intent:responsibility 全てのCHIP-8関連エラーの基底クラス。
# @intent:rationale 失敗した命令のアドレスを保持し、デバッガがクラッシュ後の状態を検査できるようにします。
class Chip8Error(Exception):
    """
    CHIP-8エミュレーションで発生するエラーの基底クラス。
    `pc` には失敗した命令の先頭アドレスが入ります（不明な場合はNone）。
    """
    def __init__(self, message: str, pc: Optional[int] = None):
        super().__init__(message)
        self.pc = pc

    @property
    def kind(self) -> str:
        return type(self).__name__

    def __str__(self) -> str:
        message = super().__str__()
        if self.pc is not None:
            return f"{message} (PC={self.pc:#05x})"
        return message


# @intent:responsibility プログラムイメージがプログラム領域に収まらないことを示します。
class CapacityExceeded(Chip8Error):
    def __init__(self, size: int, capacity: int):
        super().__init__(f"Program of {size} bytes exceeds program region capacity of {capacity} bytes.")
        self.size = size
        self.capacity = capacity


# @intent:responsibility デコード表に一致しない命令語を示します。現在の実行に対して致命的です。
class InvalidOpcode(Chip8Error):
    def __init__(self, opcode: int, pc: Optional[int] = None):
        super().__init__(f"Invalid opcode {opcode:04X}", pc)
        self.opcode = opcode


# @intent:responsibility 0x0-0xF の範囲外のキー番号を示します（呼び出し側のバグ）。
class InvalidKey(Chip8Error):
    def __init__(self, index: int):
        super().__init__(f"Key index {index} is outside 0x0-0xF.")
        self.index = index


# @intent:responsibility コールスタックの深さ上限を超えたCALLを示します。
class StackOverflow(Chip8Error):
    pass


# @intent:responsibility 空のスタックからのRETを示します。
class StackUnderflow(Chip8Error):
    pass


# @intent:responsibility アドレス空間外へのアクセス（フェッチまたはメモリアクセス）を示します。
class OutOfBounds(Chip8Error):
    def __init__(self, address: int, pc: Optional[int] = None):
        super().__init__(f"Address {address:#06x} is outside the addressable range.", pc)
        self.address = address


# @intent:responsibility 設定ファイルの内容が不正であることを示します。
class ConfigError(Exception):
    pass
