# src/chip8_tracer/ui/app.py
"""
Qtアプリケーションのエントリポイント。
アプリケーションを初期化し、メインウィンドウを起動します。
"""
import sys
from typing import List, Optional

from PySide6.QtWidgets import QApplication

from chip8_tracer.config.models import SystemConfig
from .main_window import MainWindow


# @intent:responsibility アプリケーションを起動し、メインウィンドウを表示します。
def run_app(config: Optional[SystemConfig] = None, rom_path: Optional[str] = None,
            asm_path: Optional[str] = None, argv: Optional[List[str]] = None) -> int:
    """
    メインウィンドウを表示し、イベントループの終了コードを返します。
    rom_path または asm_path が指定された場合は起動時に読み込みます。
    """
    app = QApplication.instance() or QApplication(argv if argv is not None else sys.argv)
    main_win = MainWindow(config)
    if asm_path:
        main_win.load_assembly(asm_path)
    elif rom_path:
        main_win.load_rom(rom_path)
    main_win.show()
    return app.exec()


def main():
    sys.exit(run_app())


if __name__ == '__main__':
    main()
