# chip8_tracer/core/snapshot.py
"""
実行状態の不変スナップショット

このモジュールは、実行された命令の記録と、ある時点のCPU・バスの状態を記録した
不変のデータ構造を定義します。
UIへの情報提供と、デバッグ時の状態記録に用いる責務を負います。
"""
from dataclasses import dataclass, field
from typing import ClassVar, List, Optional

from chip8_tracer.core.state import CpuState
from chip8_tracer.transport.bus import BusAccess


# @intent:responsibility デコードされた命令（タグ付きの値）の共通基底です。
@dataclass(frozen=True)
class Instruction:
    """
    デコーダが生成し、実行器と逆アセンブラの双方が消費する命令。
    具体的な命令はアーキテクチャ層でこのクラスを拡張し、オペランドのフィールドを追加します。
    """
    opcode: int

    MNEMONIC: ClassVar[str] = "???"
    LENGTH: ClassVar[int] = 2

    def operands(self) -> List[str]:
        return []

    @property
    def mnemonic(self) -> str:
        return self.MNEMONIC

    # @intent:responsibility ニーモニックとオペランドを結合した表示用テキストを返します。
    @property
    def text(self) -> str:
        ops = self.operands()
        if ops:
            return f"{self.MNEMONIC} {', '.join(ops)}"
        return self.MNEMONIC

    @property
    def opcode_hex(self) -> str:
        return f"{self.opcode:04X}"


# @intent:responsibility 実行に関するメタデータを記録します。
@dataclass(frozen=True)
class Metadata:
    """
    実行に関するメタデータ（累計サイクル数、トレース文字列など）を記録するデータクラス。
    """
    cycle_count: int
    trace_text: Optional[str] = None # 例: "0x200: LD V0, 0xFF"


# @intent:responsibility 1命令サイクル後のCPUとバスの状態を不変に記録します。
@dataclass(frozen=True)
class Snapshot:
    """
    1サイクル実行後の状態記録。
    state は実行後の状態の独立したコピーであり、以後の実行で変化しません。
    instruction が None の場合、そのサイクルでは命令が実行されていません（キー入力待ちなど）。
    """
    address: int
    state: CpuState
    instruction: Optional[Instruction]
    metadata: Metadata
    bus_activity: List[BusAccess] = field(default_factory=list)
