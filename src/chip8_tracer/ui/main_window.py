# src/chip8_tracer/ui/main_window.py
"""
メインウィンドウの実装。
アプリケーションの主要なUIコンポーネントを保持し、レイアウトを管理します。

実行はQTimerによる単一スレッドの駆動ループで進みます。タイマーの各tickで経過時間を
MachineLoopに渡し、その合間（tickとtickの間）にだけビューが状態を読み取ります。
"""
import logging
from typing import Optional

from PySide6.QtWidgets import (
    QMainWindow, QApplication, QDockWidget, QTabWidget, QToolBar, QLabel, QFileDialog, QMessageBox
)
from PySide6.QtGui import QPalette, QColor, QAction, QCloseEvent, QKeyEvent
from PySide6.QtCore import Qt, QTimer, QElapsedTimer, Slot

from chip8_tracer.common.errors import Chip8Error, InvalidBreakpointError
from chip8_tracer.config.models import EmulatorConfig
from chip8_tracer.config.loader import ConfigLoader
from chip8_tracer.config.builder import SystemBuilder, Chip8System
from chip8_tracer.debugger.debugger import BreakpointHit, ExecutionFault, StepCompleted
from chip8_tracer.loader.loader import ProgramLoader
from .display_view import DisplayView
from .register_view import RegisterView
from .stack_view import StackView
from .breakpoint_view import BreakpointView
from .code_view import CodeView
from .fonts import get_monospace_font_family

logger = logging.getLogger(__name__)

FRAME_INTERVAL_MS = 16
# ウィンドウ操作などで長時間止まった後に、大量の命令をまとめて実行しないための上限
MAX_FRAME_SECONDS = 0.25
CLOCK_SPEED_UP = 1.25
CLOCK_SLOW_DOWN = 0.8

# ホストのキー -> CHIP-8キーパッド (0-F)
KEY_MAP = {
    Qt.Key_0: 0x0, Qt.Key_1: 0x1, Qt.Key_2: 0x2, Qt.Key_3: 0x3,
    Qt.Key_4: 0x4, Qt.Key_5: 0x5, Qt.Key_6: 0x6, Qt.Key_7: 0x7,
    Qt.Key_8: 0x8, Qt.Key_9: 0x9, Qt.Key_A: 0xA, Qt.Key_B: 0xB,
    Qt.Key_C: 0xC, Qt.Key_D: 0xD, Qt.Key_E: 0xE, Qt.Key_F: 0xF,
}

def keypad_key_for(qt_key) -> Optional[int]:
    return KEY_MAP.get(qt_key)


# @intent:responsibility アプリケーションのメインウィンドウを定義し、UIの主要なコンポーネントを組み立てます。
class MainWindow(QMainWindow):
    def __init__(self, system: Optional[Chip8System] = None, parent=None):
        super(MainWindow, self).__init__(parent)
        self.setWindowTitle("CHIP-8 Tracer")
        self.setGeometry(100, 100, 1200, 700)
        self.setDockNestingEnabled(True)

        self.system = system or SystemBuilder().build_system(EmulatorConfig())

        self._set_dark_theme()
        self.display_view = DisplayView()
        self.setCentralWidget(self.display_view)
        self._create_toolbar()
        self._create_navigation_pane()
        self._create_status_inspector()
        self._create_menus()
        self.status_label = QLabel("")
        self.statusBar().addWidget(self.status_label)

        self._attach_system()

        self._elapsed = QElapsedTimer()
        self._elapsed.start()
        self._frame_timer = QTimer(self)
        self._frame_timer.timeout.connect(self._on_frame)
        self._frame_timer.start(FRAME_INTERVAL_MS)

    # @intent:responsibility 現在のシステムを各ビューに接続し、表示を初期化します。
    def _attach_system(self):
        self.display_view.set_display(self.system.machine.display)
        self.register_view.set_cpu(self.system.cpu)
        self.code_view.set_cpu(self.system.cpu)
        self._sync_breakpoints()
        self._refresh_views()

    def _create_menus(self):
        file_menu = self.menuBar().addMenu("File")

        self.open_rom_action = QAction("Open ROM...", self)
        self.open_rom_action.setShortcut("Ctrl+O")
        self.open_rom_action.triggered.connect(self._open_rom)
        file_menu.addAction(self.open_rom_action)

        self.load_config_action = QAction("Load Config...", self)
        self.load_config_action.triggered.connect(self._load_config)
        file_menu.addAction(self.load_config_action)

    # @intent:responsibility 実行制御用のツールバーを作成します。
    def _create_toolbar(self):
        toolbar = QToolBar("Main Toolbar")
        self.addToolBar(toolbar)

        self.run_action = QAction("Run", self)
        self.run_action.triggered.connect(self._run_debugger)
        toolbar.addAction(self.run_action)

        self.pause_action = QAction("Pause", self)
        self.pause_action.triggered.connect(self._pause_debugger)
        toolbar.addAction(self.pause_action)

        self.step_action = QAction("Step (F11)", self)
        self.step_action.triggered.connect(self._step_debugger)
        toolbar.addAction(self.step_action)

        self.step_over_action = QAction("Step Over (F10)", self)
        self.step_over_action.triggered.connect(self._step_over_debugger)
        toolbar.addAction(self.step_over_action)

        self.reset_action = QAction("Reset", self)
        self.reset_action.triggered.connect(self._reset_machine)
        toolbar.addAction(self.reset_action)

    def _create_navigation_pane(self):
        nav_dock = QDockWidget("Navigation", self)
        nav_dock.setAllowedAreas(Qt.LeftDockWidgetArea)
        tab_widget = QTabWidget()
        self.code_view = CodeView()
        tab_widget.addTab(self.code_view, "Disassembly")
        self.breakpoint_view = BreakpointView()
        tab_widget.addTab(self.breakpoint_view, "Breakpoints")
        nav_dock.setWidget(tab_widget)
        self.addDockWidget(Qt.LeftDockWidgetArea, nav_dock)

        self.breakpoint_view.breakpoint_added.connect(self._add_breakpoint)
        self.breakpoint_view.breakpoint_removed.connect(self._remove_breakpoint)
        self.breakpoint_view.breakpoint_toggled.connect(self._toggle_breakpoint)

    def _create_status_inspector(self):
        status_dock = QDockWidget("Status Inspector", self)
        status_dock.setAllowedAreas(Qt.RightDockWidgetArea)
        tab_widget = QTabWidget()
        self.register_view = RegisterView()
        tab_widget.addTab(self.register_view, "Registers")
        self.stack_view = StackView()
        tab_widget.addTab(self.stack_view, "Stack / Memory")
        status_dock.setWidget(tab_widget)
        self.addDockWidget(Qt.RightDockWidgetArea, status_dock)

    # --- 駆動ループ ---

    @Slot()
    def _on_frame(self):
        elapsed = min(self._elapsed.restart() / 1000.0, MAX_FRAME_SECONDS)
        update = self.system.loop.advance(elapsed)
        for event in update.events:
            if isinstance(event, BreakpointHit):
                self.status_label.setText(f"Breakpoint hit at {event.address:#05x}")
            elif isinstance(event, ExecutionFault):
                self.status_label.setText(f"Halted: {event.describe()}")
            elif isinstance(event, StepCompleted):
                self.status_label.setText(f"Stepped to {event.address:#05x}")
        self.display_view.refresh()
        if update.cycles or update.events or not self.system.debugger.is_paused:
            self._refresh_views()

    def _refresh_views(self):
        debugger = self.system.debugger
        snapshot = debugger.inspect(memory_length=self.system.config.memory_window)
        self.register_view.update_registers()
        self.stack_view.update_stack(snapshot)
        self.code_view.update_code(snapshot.pc)
        self._update_ui_state()

    def _update_ui_state(self):
        loop = self.system.loop
        paused = self.system.debugger.is_paused
        self.run_action.setEnabled(paused)
        self.pause_action.setEnabled(not paused)
        self.step_action.setEnabled(paused)
        self.step_over_action.setEnabled(paused)
        self.open_rom_action.setEnabled(paused)
        sound = " SOUND" if self.system.machine.timers.sound_active else ""
        self.setWindowTitle(
            f"CHIP-8 Tracer [{self.system.debugger.mode.value}] "
            f"{loop.clock_frequency:.0f} Hz  cycles: {loop.cycles}  "
            f"fast-forwarded: {loop.fast_forwarded_cycles}{sound}"
        )

    # --- 実行制御 ---

    @Slot()
    def _run_debugger(self):
        self.system.debugger.resume()
        self.status_label.setText("Running...")
        self._update_ui_state()

    @Slot()
    def _pause_debugger(self):
        self.system.debugger.pause()
        self.status_label.setText("Paused")
        self._refresh_views()

    @Slot()
    def _step_debugger(self):
        self.system.debugger.step_one()
        self._drain_events()

    @Slot()
    def _step_over_debugger(self):
        self.system.debugger.step_over()
        self._drain_events()

    def _drain_events(self):
        for event in self.system.debugger.get_and_clear_events():
            if isinstance(event, ExecutionFault):
                self.status_label.setText(f"Halted: {event.describe()}")
        self._refresh_views()

    @Slot()
    def _reset_machine(self):
        self.system.debugger.reset()
        self.code_view.reset_cache()
        self.status_label.setText("Reset")
        self._refresh_views()

    # --- ブレークポイント ---

    def _sync_breakpoints(self):
        breakpoints = self.system.debugger.get_breakpoints()
        self.breakpoint_view.set_breakpoints(breakpoints)
        self.code_view.set_breakpoints(breakpoints)

    @Slot(int)
    def _add_breakpoint(self, address: int):
        try:
            self.system.debugger.set_breakpoint(address)
        except InvalidBreakpointError as e:
            self.breakpoint_view.show_error(e.message)
            return
        self._sync_breakpoints()

    @Slot(int)
    def _remove_breakpoint(self, address: int):
        self.system.debugger.clear_breakpoint(address)
        self._sync_breakpoints()

    @Slot(int, bool)
    def _toggle_breakpoint(self, address: int, enabled: bool):
        self.system.debugger.enable_breakpoint(address, enabled)
        self._sync_breakpoints()

    # --- ファイル ---

    @Slot()
    def _open_rom(self):
        file_name, _ = QFileDialog.getOpenFileName(self, "Open CHIP-8 ROM", "", "CHIP-8 ROMs (*.ch8 *.c8);;All Files (*)")
        if file_name:
            self.load_rom(file_name)

    # @intent:responsibility ROMを読み込み、マシンをリセットして先頭から実行できる状態にします。
    def load_rom(self, file_name: str) -> bool:
        try:
            data = ProgramLoader().read_file(file_name)
            self.system.machine.load_program(data)
        except (OSError, Chip8Error) as e:
            logger.error("Failed to load ROM %s: %s", file_name, e)
            QMessageBox.critical(self, "Error", f"Failed to load ROM: {e}")
            return False
        self._reset_machine()
        self.status_label.setText(f"Loaded {file_name} ({len(data)} bytes)")
        return True

    @Slot()
    def _load_config(self):
        file_name, _ = QFileDialog.getOpenFileName(self, "Open Config", "", "YAML Files (*.yaml *.yml);;All Files (*)")
        if not file_name:
            return
        try:
            config = ConfigLoader().load_from_file(file_name)
            program = self.system.machine.program or None
            self.system = SystemBuilder().build_system(config, program=program)
        except (OSError, ValueError, Chip8Error) as e:
            logger.error("Failed to load config %s: %s", file_name, e)
            QMessageBox.critical(self, "Error", f"Failed to load config: {e}")
            return
        self._attach_system()
        self.status_label.setText(f"Loaded config {file_name}")

    # --- キーボード ---

    # @intent:responsibility 0-9/A-FをCHIP-8キーパッドに、Return/P/O/F10/F11を実行制御に割り当てます。
    def keyPressEvent(self, event: QKeyEvent):
        if event.isAutoRepeat():
            return
        key = event.key()
        pad_key = keypad_key_for(key)
        if pad_key is not None:
            self.system.machine.handle_key_event(pad_key, True)
        elif key == Qt.Key_Return:
            self.system.debugger.toggle_pause()
            self._update_ui_state()
        elif key == Qt.Key_P:
            self.system.loop.multiply_clock_frequency(CLOCK_SPEED_UP)
        elif key == Qt.Key_O:
            self.system.loop.multiply_clock_frequency(CLOCK_SLOW_DOWN)
        elif key == Qt.Key_F10:
            self._step_over_debugger()
        elif key == Qt.Key_F11:
            self._step_debugger()
        elif key == Qt.Key_Escape:
            self.close()
        else:
            super().keyPressEvent(event)

    def keyReleaseEvent(self, event: QKeyEvent):
        if event.isAutoRepeat():
            return
        pad_key = keypad_key_for(event.key())
        if pad_key is not None:
            self.system.machine.handle_key_event(pad_key, False)
        else:
            super().keyReleaseEvent(event)

    def _set_dark_theme(self):
        dark_palette = QPalette()
        dark_palette.setColor(QPalette.Window, QColor(29, 29, 29))
        dark_palette.setColor(QPalette.WindowText, QColor(224, 224, 224))
        dark_palette.setColor(QPalette.Base, QColor(30, 30, 30))
        dark_palette.setColor(QPalette.Text, QColor(224, 224, 224))
        dark_palette.setColor(QPalette.Button, QColor(53, 53, 53))
        dark_palette.setColor(QPalette.ButtonText, QColor(224, 224, 224))
        dark_palette.setColor(QPalette.Highlight, QColor(42, 130, 218))
        dark_palette.setColor(QPalette.HighlightedText, QColor(0, 0, 0))
        QApplication.setPalette(dark_palette)

        font_family = get_monospace_font_family()
        self.setStyleSheet(f"""
            QWidget {{ font-family: '{font_family}', monospace; font-size: 10pt; }}
            QMainWindow, QToolBar {{ background-color: #1D1D1D; border: none; }}
            QDockWidget::title {{ text-align: left; background: #101010; padding: 4px; font-weight: bold; }}
            QTabWidget::pane {{ border-top: 2px solid #2A82DA; }}
            QTabBar::tab {{ background: #1E1E1E; padding: 8px 12px; min-width: 80px; }}
            QTabBar::tab:selected {{ background: #101010; border: 1px solid #2A82DA; }}
        """)

    # @intent:responsibility 終了時に駆動ループのタイマーを停止します。
    def closeEvent(self, event: QCloseEvent):
        self._frame_timer.stop()
        event.accept()
