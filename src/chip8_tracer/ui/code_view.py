"""
逆アセンブルコードを表示するウィジェット。
"""
from typing import Dict, List, Optional, Tuple

from PySide6.QtWidgets import QWidget, QVBoxLayout, QTableWidget, QTableWidgetItem, QHeaderView
from PySide6.QtGui import QColor

from chip8_tracer.core.cpu import AbstractCpu
from chip8_tracer.ui.fonts import get_monospace_font

COLOR_CURRENT = QColor("#404000")     # Dark Yellow
COLOR_BREAKPOINT = QColor("#400000")  # Dark Red
COLOR_NORMAL = QColor("#101010")

# @intent:responsibility 逆アセンブルされたコードを表形式で表示し、現在のPCとブレークポイントをハイライトします。
class CodeView(QWidget):
    def __init__(self, parent=None):
        super().__init__(parent)
        self.layout = QVBoxLayout(self)
        self.layout.setContentsMargins(0, 0, 0, 0)

        self.table = QTableWidget()
        self.table.setColumnCount(4)
        self.table.setHorizontalHeaderLabels(["", "Address", "Bytes", "Mnemonic"])
        header = self.table.horizontalHeader()
        header.setSectionResizeMode(0, QHeaderView.ResizeToContents)
        header.setSectionResizeMode(1, QHeaderView.ResizeToContents)
        header.setSectionResizeMode(2, QHeaderView.ResizeToContents)
        header.setSectionResizeMode(3, QHeaderView.Stretch)
        self.table.setFont(get_monospace_font(10))
        self.table.verticalHeader().setVisible(False)
        self.table.setEditTriggers(QTableWidget.NoEditTriggers)
        self.table.setSelectionBehavior(QTableWidget.SelectRows)
        self.table.setShowGrid(False)
        self.table.setStyleSheet("background-color: #101010; color: #BBBBBB; gridline-color: #303030;")
        self.layout.addWidget(self.table)

        self._cpu: Optional[AbstractCpu] = None
        self._breakpoints: Dict[int, bool] = {}
        self.window_length = 0x200  # 一度に逆アセンブルするバイト数
        # 現在表示している逆アセンブルデータ [(addr, hex, mnemonic), ...]
        self.disassembled_data: List[Tuple[int, str, str]] = []
        self.current_row = -1

    def set_cpu(self, cpu: AbstractCpu) -> None:
        self._cpu = cpu
        self.reset_cache()

    def set_breakpoints(self, breakpoints: Dict[int, bool]) -> None:
        self._breakpoints = dict(breakpoints)
        self._apply_highlight()

    def _row_of(self, pc: int) -> int:
        for i, (addr, _, _) in enumerate(self.disassembled_data):
            if addr == pc:
                return i
        return -1

    # @intent:responsibility PCを含む範囲を逆アセンブルして表示を更新します。
    # @intent:rationale PCが表示中の行にあれば再逆アセンブルせず、ハイライトの移動のみ行います。
    def update_code(self, pc: int):
        if not self._cpu:
            return
        row_index = self._row_of(pc)
        if row_index == -1:
            self.disassembled_data = self._cpu.disassemble(pc, self.window_length)
            self.table.setRowCount(len(self.disassembled_data))
            for row, (addr, hex_dump, mnemonic) in enumerate(self.disassembled_data):
                self.table.setItem(row, 0, QTableWidgetItem(""))
                self.table.setItem(row, 1, QTableWidgetItem(f"{addr:03X}"))
                self.table.setItem(row, 2, QTableWidgetItem(hex_dump))
                self.table.setItem(row, 3, QTableWidgetItem(mnemonic))
            row_index = self._row_of(pc)

        self.current_row = row_index
        self._apply_highlight()
        if row_index != -1:
            self.table.scrollToItem(self.table.item(row_index, 1), QTableWidget.EnsureVisible)

    def _apply_highlight(self):
        for row, (addr, _, _) in enumerate(self.disassembled_data):
            enabled = self._breakpoints.get(addr)
            marker = "●" if enabled else ("○" if enabled is not None else "")
            if row == self.current_row:
                color = COLOR_CURRENT
            elif enabled:
                color = COLOR_BREAKPOINT
            else:
                color = COLOR_NORMAL
            marker_item = self.table.item(row, 0)
            if marker_item is None:
                continue
            marker_item.setText(marker)
            for col in range(self.table.columnCount()):
                self.table.item(row, col).setBackground(color)

    # @intent:responsibility 内部キャッシュをクリアします。プログラムのロードやリセットの後に呼び出してください。
    def reset_cache(self):
        self.disassembled_data = []
        self.current_row = -1
        self.table.setRowCount(0)
