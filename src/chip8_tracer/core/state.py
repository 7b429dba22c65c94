# chip8_tracer/core/state.py
"""
Core Layer (CPU状態)

命令サイクルが読み書きする最小限のレジスタ(PC, SP)です。
CHIP-8固有のレジスタは arch/chip8/state.py の派生クラスが追加します。
"""
from dataclasses import dataclass, replace


@dataclass
class CpuState:
    pc: int = 0x0000
    sp: int = 0x0000

    # @intent:post-condition 返り値への変更は元の状態に影響しません。リストを持つ派生クラスはオーバーライドします。
    def copy(self) -> 'CpuState':
        return replace(self)
