# src/chip8_tracer/arch/chip8/machine.py
"""
CHIP-8マシンの状態集約。

メモリ(Bus/RAM)、レジスタ、タイマー、ディスプレイ、キーパッド、乱数源を1つのオブジェクトにまとめ、
実行関数・CPU・デバッガへ参照として渡します。プロセス全体で共有される可変状態は持たないため、
複数のマシンを独立して生成できます。
"""
import logging
import random
from dataclasses import dataclass
from typing import Optional

from chip8_tracer.common.errors import MemoryAccessError
from chip8_tracer.transport.bus import Bus, RAM
from chip8_tracer.loader.loader import ProgramLoader, load_font
from .state import Chip8CpuState, MEMORY_SIZE, PROGRAM_START
from .timers import Timers
from .display import DisplayBuffer
from .keypad import KeypadState

logger = logging.getLogger(__name__)

DEFAULT_SEED = 222


# @intent:responsibility 歴史的に挙動が分かれる命令の解釈を選択します。
@dataclass(frozen=True)
class Quirks:
    """
    shift_uses_vy: 8XY6/8XYEでVYをシフト元にする（旧来の挙動）。Falseの場合はVX自身をシフトします。
    load_store_increments_i: FX55/FX65の後にIを X+1 進める（旧来の挙動）。Falseの場合Iは変化しません。
    """
    shift_uses_vy: bool = False
    load_store_increments_i: bool = False


# @intent:responsibility 1台分のCHIP-8マシンの全状態を保持します。
class Chip8Machine:
    def __init__(self, quirks: Optional[Quirks] = None, seed: Optional[int] = DEFAULT_SEED):
        self.quirks = quirks or Quirks()
        self.seed = seed
        self.bus = Bus()
        self._ram = RAM(MEMORY_SIZE)
        self.bus.register_device(0x000, MEMORY_SIZE - 1, self._ram)
        self.state = Chip8CpuState()
        self.timers = Timers()
        self.display = DisplayBuffer()
        self.keypad = KeypadState()
        self.rng = random.Random(seed)
        self.program = b""
        self._loader = ProgramLoader()
        load_font(self.bus)

    # @intent:responsibility プログラムイメージを0x200から配置します。
    # @intent:pre-condition 0xE00バイトを超える場合はProgramTooLargeErrorを送出し、メモリは変更しません。
    def load_program(self, data: bytes) -> None:
        self._loader.load_bytes(self.bus, data)
        self.program = bytes(data)
        self.state.pc = PROGRAM_START

    # @intent:responsibility 電源投入直後の状態に戻し、読み込み済みのプログラムを再配置します。
    def reset(self) -> None:
        self._ram.clear()
        load_font(self.bus)
        if self.program:
            self._loader.load_bytes(self.bus, self.program)
        self.state = Chip8CpuState()
        self.timers.delay = 0
        self.timers.sound = 0
        self.display.clear()
        self.keypad.reset()
        self.rng.seed(self.seed)
        self.bus.get_and_clear_activity_log()
        logger.info("Machine reset (program %d bytes)", len(self.program))

    # @intent:responsibility ホストからのキーイベントをキーパッドへ反映します。
    # @intent:rationale FX0Aの待機完了はCPUが次のサイクルでキーダウン遷移を取り出して行います。
    def handle_key_event(self, key: int, pressed: bool) -> None:
        self.keypad.set_key(key, pressed)

    # @intent:responsibility 命令が参照するメモリ範囲[start, start+length)がアドレス空間内にあるか検証します。
    # @intent:post-condition 範囲外であれば、書き込み前にMemoryAccessErrorを送出します。
    def check_range(self, start: int, length: int, operation: str) -> None:
        if start < 0 or start + length > MEMORY_SIZE:
            raise MemoryAccessError(
                f"{operation} touches {start:#05x}..{start + length - 1:#05x} outside memory",
                context={"operation": operation, "I": start, "length": length},
            )
