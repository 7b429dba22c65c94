# src/chip8_tracer/arch/chip8/instructions/graphics.py
"""
画面命令（クリア、スプライト描画）の実装。
"""
from dataclasses import dataclass
from typing import List

from chip8_tracer.arch.chip8.machine import Chip8Machine
from chip8_tracer.arch.chip8.state import register_name
from chip8_tracer.core.snapshot import Instruction
from .base import NoOperandInstruction, field_x, field_y, field_n

# --- CLS (00E0) ---
class ClearScreen(NoOperandInstruction):
    MNEMONIC = "CLS"

def execute_cls(machine: Chip8Machine, op: ClearScreen) -> None:
    machine.display.clear()


# --- DRW Vx, Vy, nibble (DXYN) ---
@dataclass(frozen=True)
class Draw(Instruction):
    x: int
    y: int
    height: int

    MNEMONIC = "DRW"

    @classmethod
    def from_opcode(cls, opcode: int) -> 'Draw':
        return cls(opcode, field_x(opcode), field_y(opcode), field_n(opcode))

    def operands(self) -> List[str]:
        return [register_name(self.x), register_name(self.y), str(self.height)]

# @intent:responsibility Iから読んだ8xNのスプライトを(VX, VY)にXOR描画し、衝突をVFに記録します。
def execute_drw(machine: Chip8Machine, op: Draw) -> None:
    state = machine.state
    machine.check_range(state.i, op.height, "DRW")
    rows = [machine.bus.read(state.i + dy) for dy in range(op.height)]
    collision = machine.display.draw_sprite(state.v[op.x], state.v[op.y], rows)
    state.vf = 1 if collision else 0
