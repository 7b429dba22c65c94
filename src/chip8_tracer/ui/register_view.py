# src/chip8_tracer/ui/register_view.py
"""
レジスタパネル。

V0-VFは4列のグリッド、I/PC/SPとタイマーは名前と値の行として並べます。
直前の更新から値が変わったレジスタは赤で表示されます。
"""
from typing import Dict, Optional
from PySide6.QtWidgets import QWidget, QVBoxLayout, QGridLayout, QFormLayout, QLabel, QGroupBox
from PySide6.QtCore import Qt

from chip8_tracer.core.cpu import AbstractCpu
from chip8_tracer.common.types import RegisterLayoutInfo
from chip8_tracer.ui.fonts import get_monospace_font_family

COLOR_VALUE = "#FFD700"
COLOR_CHANGED = "#FF5555"

# このレジスタ数を超えるグループはグリッドで表示する
GRID_THRESHOLD = 8
GRID_COLUMNS = 4

PANEL_STYLE = """
    QGroupBox {
        font-weight: bold;
        border: 1px solid #2A2A2A;
        border-radius: 3px;
        margin-top: 18px;
        color: #DDD;
    }
    QGroupBox::title {
        subcontrol-origin: margin;
        left: 8px;
        padding: 0 4px;
        color: #00AAAA;
    }
"""


# @intent:responsibility CHIP-8のレジスタ値を表示し、変化した値を強調します。
class RegisterView(QWidget):
    def __init__(self, parent=None):
        super().__init__(parent)
        self.setStyleSheet("background-color: #121212; color: #BBBBBB;")

        self.layout = QVBoxLayout(self)
        self.layout.setContentsMargins(4, 4, 4, 4)

        self._font_family = get_monospace_font_family()
        self._value_labels: Dict[str, QLabel] = {}
        self._digits: Dict[str, int] = {}
        self._last_seen: Dict[str, int] = {}
        self._cpu: Optional[AbstractCpu] = None

    def set_cpu(self, cpu: AbstractCpu) -> None:
        self._cpu = cpu
        self._last_seen.clear()
        self._rebuild()

    def _rebuild(self) -> None:
        while self.layout.count():
            item = self.layout.takeAt(0)
            if item.widget():
                item.widget().deleteLater()
        self._value_labels.clear()
        self._digits.clear()

        for group in self._cpu.get_register_layout():
            box = QGroupBox(group.group_name)
            box.setStyleSheet(PANEL_STYLE)
            if len(group.registers) > GRID_THRESHOLD:
                self._fill_grid(box, group)
            else:
                self._fill_rows(box, group)
            self.layout.addWidget(box)

        self.layout.addStretch()

    def _value_label(self, name: str, width: int) -> QLabel:
        digits = (width + 3) // 4
        self._digits[name] = digits
        label = QLabel("0x" + "0" * digits)
        label.setAlignment(Qt.AlignRight)
        self._paint(label, COLOR_VALUE)
        self._value_labels[name] = label
        return label

    # V0-VF: 名前と値の組を4列に並べる
    def _fill_grid(self, box: QGroupBox, group: RegisterLayoutInfo) -> None:
        grid = QGridLayout(box)
        grid.setContentsMargins(8, 14, 8, 8)
        grid.setHorizontalSpacing(10)
        grid.setVerticalSpacing(4)
        for index, reg in enumerate(group.registers):
            row, column = divmod(index, GRID_COLUMNS)
            name = QLabel(reg.name)
            name.setStyleSheet("font-weight: bold;")
            grid.addWidget(name, row, column * 2)
            grid.addWidget(self._value_label(reg.name, reg.width), row, column * 2 + 1)

    def _fill_rows(self, box: QGroupBox, group: RegisterLayoutInfo) -> None:
        form = QFormLayout(box)
        form.setLabelAlignment(Qt.AlignLeft)
        form.setContentsMargins(8, 14, 8, 8)
        form.setSpacing(4)
        for reg in group.registers:
            name = QLabel(f"{reg.name}:")
            name.setStyleSheet("font-weight: bold;")
            form.addRow(name, self._value_label(reg.name, reg.width))

    def _paint(self, label: QLabel, color: str) -> None:
        label.setStyleSheet(f"font-family: '{self._font_family}', monospace; color: {color};")

    def label_text(self, name: str) -> str:
        return self._value_labels[name].text()

    # @intent:responsibility 現在の値で表示を更新し、前回から変化したレジスタを強調します。
    def update_registers(self):
        if not self._cpu:
            return

        for name, value in self._cpu.get_register_map().items():
            label = self._value_labels.get(name)
            if label is None:
                continue
            label.setText(f"0x{value:0{self._digits[name]}X}")
            previous = self._last_seen.get(name)
            self._paint(label, COLOR_CHANGED if previous is not None and previous != value else COLOR_VALUE)
            self._last_seen[name] = value
