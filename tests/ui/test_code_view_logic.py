# tests/ui/test_code_view_logic.py
"""
CodeViewの更新ロジック（キャッシュとハイライト）を検証するテスト。
UIウィジェットですが、QApplicationがあればロジックのテストは可能です。
"""
import os

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
QtWidgets = pytest.importorskip("PySide6.QtWidgets")

from chip8_tracer.arch.chip8.machine import Chip8Machine
from chip8_tracer.arch.chip8.cpu import Chip8Cpu
from chip8_tracer.ui.code_view import CodeView, COLOR_CURRENT, COLOR_BREAKPOINT


# PySide6のテストにはQApplicationのインスタンスが必要
@pytest.fixture(scope="session")
def qapp():
    app = QtWidgets.QApplication.instance()
    if app is None:
        app = QtWidgets.QApplication([])
    yield app


class TestCodeViewLogic:
    @pytest.fixture
    def setup_code_view(self, qapp):
        machine = Chip8Machine()
        # LD V0, 1 / ADD V0, 1 / JP 0x202
        machine.load_program(bytes([0x60, 0x01, 0x70, 0x01, 0x12, 0x02]))
        machine.bus.load(0x800, bytes([0x00, 0xE0]))
        cpu = Chip8Cpu(machine)
        code_view = CodeView()
        code_view.set_cpu(cpu)
        return code_view, cpu

    # @intent:test_case_initial_disassembly PCから逆アセンブルし、PCの行が選択されること。
    def test_initial_disassembly(self, setup_code_view):
        code_view, _ = setup_code_view
        code_view.update_code(0x200)

        assert code_view.current_row == 0
        assert code_view.disassembled_data[0] == (0x200, "60 01", "LD V0, 0x01")
        assert code_view.table.item(1, 3).text() == "ADD V0, 0x01"
        assert code_view.table.item(0, 1).background().color() == COLOR_CURRENT

    # @intent:test_case_cached_window 表示範囲内のPCでは再逆アセンブルしないこと。
    def test_cached_window(self, setup_code_view):
        code_view, _ = setup_code_view
        code_view.update_code(0x200)
        cached = code_view.disassembled_data

        code_view.update_code(0x204)

        assert code_view.disassembled_data is cached
        assert code_view.current_row == 2

    # @intent:test_case_outside_window 表示範囲外のPCでは新しい範囲を逆アセンブルすること。
    def test_outside_window(self, setup_code_view):
        code_view, _ = setup_code_view
        code_view.update_code(0x200)
        code_view.update_code(0x800)
        assert code_view.disassembled_data[0] == (0x800, "00 E0", "CLS")
        assert code_view.current_row == 0

    # @intent:test_case_breakpoint_marker ブレークポイントの行にマーカーが表示されること。
    def test_breakpoint_marker(self, setup_code_view):
        code_view, _ = setup_code_view
        code_view.update_code(0x200)
        code_view.set_breakpoints({0x202: True, 0x204: False})

        assert code_view.table.item(1, 0).text() == "●"
        assert code_view.table.item(2, 0).text() == "○"
        assert code_view.table.item(1, 1).background().color() == COLOR_BREAKPOINT

    # @intent:test_case_reset_cache キャッシュのクリアで表が空になること。
    def test_reset_cache(self, setup_code_view):
        code_view, _ = setup_code_view
        code_view.update_code(0x200)
        code_view.reset_cache()
        assert code_view.disassembled_data == []
        assert code_view.table.rowCount() == 0
