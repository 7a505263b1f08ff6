# src/chip8_tracer/ui/main_window.py
"""
メインウィンドウの実装。
アプリケーションの主要なUIコンポーネントを保持し、レイアウトとフレームループを管理します。
"""
import logging
from typing import Optional

from PySide6.QtCore import Qt, QTimer, Slot
from PySide6.QtGui import QAction, QCloseEvent, QKeyEvent
from PySide6.QtWidgets import QDockWidget, QFileDialog, QMainWindow, QMessageBox, QTabWidget, QToolBar

from chip8_tracer.common.errors import Chip8Error, ConfigError
from chip8_tracer.config.builder import SystemBuilder
from chip8_tracer.config.loader import ConfigLoader
from chip8_tracer.config.models import SystemConfig
from chip8_tracer.debugger.debugger import BreakpointCondition, Debugger
from chip8_tracer.driver.runner import FrameDriver, FrameResult
from chip8_tracer.loader.loader import AssemblyLoader, RomLoader
from .breakpoint_view import BreakpointView
from .code_view import CodeView
from .display_view import DisplayView
from .hex_view import HexView
from .keymap import KeyMapper
from .register_view import RegisterView
from .theme import apply_dark_theme

logger = logging.getLogger(__name__)


# @intent:responsibility アプリケーションのメインウィンドウを定義し、UIの主要なコンポーネントを組み立てます。
class MainWindow(QMainWindow):
    """
    アプリケーションのメインウィンドウクラス。

    実行はGUIスレッド上のQTimerで駆動します。タイマーが発火するたびに1フレーム
    （cycles_per_tick 命令 + タイマー1回）を実行し、ブレークポイントやエラーで停止します。
    """
    def __init__(self, config: Optional[SystemConfig] = None, parent=None):
        super(MainWindow, self).__init__(parent)
        self.setWindowTitle("CHIP-8 Core Tracer")
        self.setGeometry(100, 100, 1200, 800)
        self.setDockNestingEnabled(True)

        self.frame_timer = QTimer(self)
        self.frame_timer.timeout.connect(self._on_frame)

        self._create_views()
        self._create_toolbar()
        self._create_menus()
        self.setStyleSheet(apply_dark_theme())

        self._setup_backend(config or SystemConfig())
        self._update_ui_state(False)

    # @intent:responsibility 設定に基づいてバックエンド（CPU、デバッガ、ドライバ）を構築します。
    def _setup_backend(self, config: SystemConfig) -> None:
        self.frame_timer.stop()
        self.config = config
        self.cpu, self.bus = SystemBuilder().build_system(config)
        self.debugger = Debugger(self.cpu)
        for address in config.breakpoints:
            self.debugger.add_breakpoint(address)
        self.driver = FrameDriver(
            self.cpu, self.debugger,
            cycles_per_tick=config.machine.cycles_per_tick,
            tick_rate=config.machine.tick_rate,
        )
        self.key_mapper = KeyMapper(config.keymap)
        self.frame_timer.setInterval(max(1, round(1000 / config.machine.tick_rate)))

        self.register_view.set_cpu(self.cpu)
        self.code_view.set_cpu(self.cpu)
        self.breakpoint_view.set_symbol_map(self.cpu.get_symbol_map())
        self._refresh_breakpoints()
        self._refresh_views()

    def _create_views(self) -> None:
        self.display_view = DisplayView()
        self.display_view.setFocusPolicy(Qt.StrongFocus)
        self.setCentralWidget(self.display_view)

        nav_dock = QDockWidget("Navigation", self)
        nav_dock.setAllowedAreas(Qt.LeftDockWidgetArea)
        tab_widget = QTabWidget()
        self.code_view = CodeView()
        self.code_view.breakpoint_toggled.connect(self._toggle_breakpoint)
        tab_widget.addTab(self.code_view, "Assembler")
        self.hex_view = HexView()
        tab_widget.addTab(self.hex_view, "HEX View")
        self.breakpoint_view = BreakpointView()
        self.breakpoint_view.breakpoint_added.connect(self._add_breakpoint)
        self.breakpoint_view.breakpoint_removed.connect(self._remove_breakpoint)
        self.breakpoint_view.condition_added.connect(self._add_condition)
        self.breakpoint_view.condition_removed.connect(self._remove_condition)
        self.breakpoint_view.condition_updated.connect(self._update_condition)
        tab_widget.addTab(self.breakpoint_view, "Breakpoints")
        nav_dock.setWidget(tab_widget)
        self.addDockWidget(Qt.LeftDockWidgetArea, nav_dock)

        status_dock = QDockWidget("Status Inspector", self)
        status_dock.setAllowedAreas(Qt.RightDockWidgetArea)
        self.register_view = RegisterView()
        status_dock.setWidget(self.register_view)
        self.addDockWidget(Qt.RightDockWidgetArea, status_dock)

    # @intent:responsibility 実行制御用のツールバーを作成します。
    def _create_toolbar(self) -> None:
        toolbar = QToolBar("Main Toolbar")
        self.addToolBar(toolbar)

        self.run_action = QAction("Run", self)
        self.run_action.setShortcut("F5")
        self.run_action.triggered.connect(self.run)
        toolbar.addAction(self.run_action)

        self.stop_action = QAction("Stop", self)
        self.stop_action.setShortcut("Shift+F5")
        self.stop_action.triggered.connect(self.stop)
        toolbar.addAction(self.stop_action)

        self.step_action = QAction("Step", self)
        self.step_action.setShortcut("F10")
        self.step_action.triggered.connect(self.step)
        toolbar.addAction(self.step_action)

        self.reset_action = QAction("Reset", self)
        self.reset_action.triggered.connect(self.reset)
        toolbar.addAction(self.reset_action)

    def _create_menus(self) -> None:
        file_menu = self.menuBar().addMenu("File")

        self.load_config_action = QAction("Load System Config...", self)
        self.load_config_action.triggered.connect(self._load_system_config)
        file_menu.addAction(self.load_config_action)

        self.load_rom_action = QAction("Load ROM...", self)
        self.load_rom_action.setShortcut("Ctrl+O")
        self.load_rom_action.triggered.connect(self._load_rom_dialog)
        file_menu.addAction(self.load_rom_action)

        self.load_asm_action = QAction("Load Assembly...", self)
        self.load_asm_action.triggered.connect(self._load_assembly_dialog)
        file_menu.addAction(self.load_asm_action)

    # @intent:responsibility 実行状態に応じてUIコンポーネントの有効/無効を切り替えます。
    def _update_ui_state(self, is_running: bool) -> None:
        self.load_config_action.setEnabled(not is_running)
        self.load_rom_action.setEnabled(not is_running)
        self.load_asm_action.setEnabled(not is_running)
        self.run_action.setEnabled(not is_running)
        self.step_action.setEnabled(not is_running)
        self.reset_action.setEnabled(not is_running)
        self.stop_action.setEnabled(is_running)

    @property
    def is_running(self) -> bool:
        return self.frame_timer.isActive()

    # --- Run control ---

    @Slot()
    def run(self) -> None:
        self._update_ui_state(True)
        self.statusBar().showMessage("Running...")
        self.display_view.setFocus()
        self.frame_timer.start()

    @Slot()
    def stop(self) -> None:
        self.frame_timer.stop()
        self.debugger.stop()
        self._update_ui_state(False)
        self.statusBar().showMessage("Stopped")
        self._refresh_views()

    @Slot()
    def step(self) -> None:
        snapshot = self.debugger.step_instruction()
        if snapshot.failed:
            self.statusBar().showMessage(f"{snapshot.error.kind}: {snapshot.error}")
        else:
            self.statusBar().showMessage(snapshot.metadata.symbol_info or snapshot.operation.text)
        self._refresh_views()

    @Slot()
    def reset(self) -> None:
        self.frame_timer.stop()
        self.cpu.reset(reload=True)
        self.driver.reset()
        self._update_ui_state(False)
        self.statusBar().showMessage("Reset")
        self._refresh_views()

    # @intent:responsibility 1フレームを実行し、表示を更新します。停止理由があればタイマーを止めます。
    @Slot()
    def _on_frame(self) -> FrameResult:
        result = self.driver.run_frame()
        self.display_view.update_frame(self.cpu.framebuffer(), self.cpu.sound_active)
        if result.halted:
            self.frame_timer.stop()
            self._update_ui_state(False)
            self.statusBar().showMessage(str(result.stop_reason) if result.stop_reason else str(result.error))
            self._refresh_views()
        return result

    def _refresh_views(self) -> None:
        state = self.cpu.get_state()
        self.display_view.update_frame(self.cpu.framebuffer(), self.cpu.sound_active)
        self.register_view.update_registers()
        self.code_view.update_code(state.pc)
        self.hex_view.update_memory(self.bus, highlight_address=state.i)

    # --- Breakpoints ---

    def _refresh_breakpoints(self) -> None:
        breakpoints = self.debugger.get_breakpoints()
        self.breakpoint_view.set_contents(breakpoints, self.debugger.get_conditions())
        self.code_view.set_breakpoints(breakpoints)

    @Slot(int)
    def _toggle_breakpoint(self, address: int) -> None:
        if address in self.debugger.get_breakpoints():
            self.debugger.remove_breakpoint(address)
        else:
            self.debugger.add_breakpoint(address)
        self._refresh_breakpoints()

    @Slot(int)
    def _add_breakpoint(self, address: int) -> None:
        self.debugger.add_breakpoint(address)
        self._refresh_breakpoints()

    @Slot(int)
    def _remove_breakpoint(self, address: int) -> None:
        self.debugger.remove_breakpoint(address)
        self._refresh_breakpoints()

    @Slot(BreakpointCondition)
    def _add_condition(self, condition: BreakpointCondition) -> None:
        self.debugger.add_condition(condition)
        self._refresh_breakpoints()

    @Slot(BreakpointCondition)
    def _remove_condition(self, condition: BreakpointCondition) -> None:
        self.debugger.remove_condition(condition)
        self._refresh_breakpoints()

    @Slot(BreakpointCondition, BreakpointCondition)
    def _update_condition(self, old: BreakpointCondition, new: BreakpointCondition) -> None:
        self.debugger.update_condition(old, new)
        self._refresh_breakpoints()

    # --- Keyboard input ---

    def keyPressEvent(self, event: QKeyEvent) -> None:
        if not self._forward_key(event, True):
            super().keyPressEvent(event)

    def keyReleaseEvent(self, event: QKeyEvent) -> None:
        if not self._forward_key(event, False):
            super().keyReleaseEvent(event)

    # @intent:responsibility ホストキーの押下/解放を論理キーに変換してエンジンに伝えます。
    def _forward_key(self, event: QKeyEvent, pressed: bool) -> bool:
        logical = self.key_mapper.logical_key(event.key())
        if logical is None:
            return False
        if not event.isAutoRepeat():
            self.cpu.set_key(logical, pressed)
        return True

    # --- Loading ---

    # @intent:responsibility ROMイメージを読み込み、CPUをリセットして表示を更新します。
    def load_rom(self, path: str) -> None:
        self.frame_timer.stop()
        RomLoader().load(path, self.cpu)
        self._after_load(path)

    def load_assembly(self, path: str) -> None:
        self.frame_timer.stop()
        symbol_map = AssemblyLoader().load_assembly(path, self.cpu)
        self.breakpoint_view.set_symbol_map(symbol_map)
        self._after_load(path)

    def _after_load(self, path: str) -> None:
        self.cpu.reset()
        self.driver.reset()
        self.code_view.reset_cache()
        self._update_ui_state(False)
        self._refresh_views()
        self.statusBar().showMessage(f"Loaded {path}")

    @Slot()
    def _load_rom_dialog(self) -> None:
        file_name, _ = QFileDialog.getOpenFileName(self, "Open ROM", "", "CHIP-8 ROM (*.ch8 *.c8);;All Files (*)")
        if file_name:
            try:
                self.load_rom(file_name)
            except (OSError, Chip8Error) as e:
                QMessageBox.critical(self, "Error", f"Failed to load ROM: {e}")

    @Slot()
    def _load_assembly_dialog(self) -> None:
        file_name, _ = QFileDialog.getOpenFileName(self, "Open Assembly", "", "Assembly (*.asm *.s);;All Files (*)")
        if file_name:
            try:
                self.load_assembly(file_name)
            except (OSError, ValueError, Chip8Error) as e:
                QMessageBox.critical(self, "Error", f"Failed to load assembly: {e}")

    @Slot()
    def _load_system_config(self) -> None:
        file_name, _ = QFileDialog.getOpenFileName(self, "Open System Config", "", "YAML Files (*.yaml *.yml);;All Files (*)")
        if file_name:
            try:
                self._setup_backend(ConfigLoader().load_from_file(file_name))
                self.statusBar().showMessage(f"Loaded system config from {file_name}")
            except (OSError, ConfigError) as e:
                QMessageBox.critical(self, "Error", f"Failed to load system config: {e}")

    # @intent:responsibility アプリケーション終了時にフレームタイマーを停止します。
    def closeEvent(self, event: QCloseEvent):
        self.frame_timer.stop()
        event.accept()
