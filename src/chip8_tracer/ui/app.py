# src/chip8_tracer/ui/app.py
"""
PySide6アプリケーションのエントリポイント。
組み立て済みのシステムを受け取り、メインウィンドウを起動します。
"""
import sys
from typing import Optional

from PySide6.QtWidgets import QApplication

from chip8_tracer.config.builder import Chip8System
from .main_window import MainWindow

# @intent:responsibility メインウィンドウを表示し、イベントループの終了コードを返します。
def run_app(system: Optional[Chip8System] = None) -> int:
    app = QApplication.instance() or QApplication(sys.argv)
    main_win = MainWindow(system)
    main_win.show()
    return app.exec()
