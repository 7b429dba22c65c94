# src/chip8_tracer/ui/stack_view.py
"""
コールスタックと、Iが指すメモリ窓を表示するウィジェット。
"""
from typing import List

from PySide6.QtWidgets import QWidget, QVBoxLayout, QPlainTextEdit
from PySide6.QtGui import QTextOption

from chip8_tracer.arch.chip8.state import STACK_DEPTH
from chip8_tracer.debugger.debugger import InspectionSnapshot
from chip8_tracer.ui.fonts import get_monospace_font

BYTES_PER_ROW = 8


# @intent:responsibility InspectionSnapshotのスタックとメモリ窓をテキストとして整形します。
def format_stack(snapshot: InspectionSnapshot) -> List[str]:
    lines = [f"SP: {snapshot.sp:2d}/{STACK_DEPTH}"]
    if not snapshot.stack:
        lines.append("  (empty)")
    # 最後に積まれた戻りアドレスを先頭に表示する
    for depth in reversed(range(len(snapshot.stack))):
        marker = ">" if depth == len(snapshot.stack) - 1 else " "
        lines.append(f"{marker} [{depth:X}] {snapshot.stack[depth]:03X}")
    return lines

def format_memory(snapshot: InspectionSnapshot) -> List[str]:
    lines = []
    data = snapshot.memory
    for offset in range(0, len(data), BYTES_PER_ROW):
        row = data[offset:offset + BYTES_PER_ROW]
        hex_part = " ".join(f"{b:02X}" for b in row)
        lines.append(f"{snapshot.memory_start + offset:03X}: {hex_part}")
    return lines


class StackView(QWidget):
    def __init__(self, parent=None):
        super().__init__(parent)
        self.layout = QVBoxLayout(self)
        self.layout.setContentsMargins(0, 0, 0, 0)
        self.editor = QPlainTextEdit(self)
        self.editor.setFont(get_monospace_font(10))
        self.editor.setReadOnly(True)
        self.editor.setWordWrapMode(QTextOption.NoWrap)
        self.editor.setStyleSheet("background-color: #101010; color: #BBBBBB;")
        self.layout.addWidget(self.editor)

    def update_stack(self, snapshot: InspectionSnapshot):
        lines = format_stack(snapshot)
        lines.append("")
        lines.append(f"Memory @ I ({snapshot.i:03X}):")
        lines += format_memory(snapshot)
        self.editor.setPlainText("\n".join(lines))
