# src/chip8_tracer/ui/breakpoint_view.py
"""
ブレークポイントの管理UIウィジェット。
"""
from typing import Dict, Optional

from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QLabel, QLineEdit,
    QPushButton, QTableWidget, QTableWidgetItem, QHeaderView
)
from PySide6.QtCore import Qt, Signal, Slot

from chip8_tracer.ui.fonts import get_monospace_font

BUTTON_STYLE = "background-color: #333; color: #EEE; border: 1px solid #444; padding: 4px;"
INPUT_STYLE = "background-color: #252525; color: #EEE; border: 1px solid #444;"


# @intent:responsibility 入力文字列をアドレスとして解釈します。"0x"または"$"で始まる場合は16進、それ以外は16進として試みます。
def parse_address(text: str) -> Optional[int]:
    text = text.strip()
    if not text:
        return None
    lowered = text.lower()
    if lowered.startswith("0x"):
        lowered = lowered[2:]
    elif lowered.startswith("$"):
        lowered = lowered[1:]
    try:
        return int(lowered, 16)
    except ValueError:
        return None


class BreakpointView(QWidget):
    """
    ブレークポイントの追加、削除、有効/無効の切り替え、一覧表示を行うUIウィジェット。
    デバッガへの反映はシグナル経由で行い、結果はset_breakpoints()で受け取ります。
    """
    breakpoint_added = Signal(int)
    breakpoint_removed = Signal(int)
    breakpoint_toggled = Signal(int, bool)  # address, enabled

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setStyleSheet("background-color: #121212; color: #BBBBBB;")

        self.layout = QVBoxLayout(self)
        self.layout.setContentsMargins(5, 5, 5, 5)

        # Input Area
        input_layout = QHBoxLayout()
        input_layout.addWidget(QLabel("Address:"))
        self.address_input = QLineEdit()
        self.address_input.setPlaceholderText("e.g. 0x204")
        self.address_input.setStyleSheet(INPUT_STYLE)
        self.address_input.returnPressed.connect(self._add_breakpoint)
        input_layout.addWidget(self.address_input)
        self.add_button = QPushButton("Add")
        self.add_button.setStyleSheet(BUTTON_STYLE)
        self.add_button.clicked.connect(self._add_breakpoint)
        input_layout.addWidget(self.add_button)
        self.layout.addLayout(input_layout)

        self.error_label = QLabel("")
        self.error_label.setStyleSheet("color: #FF5555;")
        self.layout.addWidget(self.error_label)

        # Breakpoint List (Table)
        self.bp_table = QTableWidget()
        self.bp_table.setColumnCount(2)
        self.bp_table.setHorizontalHeaderLabels(["Address", "Status"])
        self.bp_table.horizontalHeader().setSectionResizeMode(0, QHeaderView.Stretch)
        self.bp_table.horizontalHeader().setSectionResizeMode(1, QHeaderView.ResizeToContents)
        self.bp_table.verticalHeader().setVisible(False)
        self.bp_table.setSelectionBehavior(QTableWidget.SelectRows)
        self.bp_table.setEditTriggers(QTableWidget.NoEditTriggers)
        self.bp_table.setFont(get_monospace_font(10))
        self.bp_table.setStyleSheet("""
            QTableWidget { background-color: #121212; color: #BBBBBB; gridline-color: #303030; border: none; }
            QHeaderView::section { background-color: #252525; color: #BBBBBB; border: 1px solid #333; }
        """)
        self.bp_table.itemSelectionChanged.connect(self._on_selection_changed)
        self.bp_table.cellDoubleClicked.connect(self._toggle_breakpoint)
        self.layout.addWidget(self.bp_table)

        self.remove_button = QPushButton("Remove Selected")
        self.remove_button.setStyleSheet(BUTTON_STYLE)
        self.remove_button.setEnabled(False)
        self.remove_button.clicked.connect(self._remove_selected_breakpoint)
        self.layout.addWidget(self.remove_button)

    # @intent:responsibility デバッガが保持するブレークポイント集合で一覧を作り直します。
    def set_breakpoints(self, breakpoints: Dict[int, bool]):
        self.bp_table.setRowCount(0)
        for address in sorted(breakpoints):
            row = self.bp_table.rowCount()
            self.bp_table.insertRow(row)
            enabled = breakpoints[address]
            address_item = QTableWidgetItem(f"0x{address:03X}")
            address_item.setData(Qt.UserRole, address)
            status_item = QTableWidgetItem("Active" if enabled else "Disabled")
            status_item.setData(Qt.UserRole, enabled)
            status_item.setForeground(Qt.green if enabled else Qt.gray)
            self.bp_table.setItem(row, 0, address_item)
            self.bp_table.setItem(row, 1, status_item)

    # @intent:responsibility 範囲の検証はデバッガに任せ、拒否された場合はshow_error()で理由を表示します。
    @Slot()
    def _add_breakpoint(self):
        text = self.address_input.text()
        address = parse_address(text)
        if address is None:
            self.show_error(f"Invalid address: '{text.strip()}'")
            return
        self.error_label.setText("")
        self.address_input.clear()
        self.breakpoint_added.emit(address)

    def show_error(self, message: str) -> None:
        self.error_label.setText(message)

    @Slot(int, int)
    def _toggle_breakpoint(self, row: int, col: int):
        address = self.bp_table.item(row, 0).data(Qt.UserRole)
        enabled = self.bp_table.item(row, 1).data(Qt.UserRole)
        self.breakpoint_toggled.emit(address, not enabled)

    @Slot()
    def _on_selection_changed(self):
        self.remove_button.setEnabled(len(self.bp_table.selectedItems()) > 0)

    @Slot()
    def _remove_selected_breakpoint(self):
        rows = sorted(set(item.row() for item in self.bp_table.selectedItems()), reverse=True)
        for row in rows:
            self.breakpoint_removed.emit(self.bp_table.item(row, 0).data(Qt.UserRole))
