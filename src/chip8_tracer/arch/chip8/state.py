# src/chip8_tracer/arch/chip8/state.py
"""
CHIP-8 CPU固有の状態定義（レジスタファイル）。
"""
from dataclasses import dataclass, field
from typing import List, Optional

from chip8_tracer.core.state import CpuState
from chip8_tracer.common.errors import StackOverflowError, StackUnderflowError

# @intent:constant CHIP-8のアドレス空間とレジスタ構成を定義します。
MEMORY_SIZE = 0x1000
PROGRAM_START = 0x200
MAX_PROGRAM_SIZE = MEMORY_SIZE - PROGRAM_START  # 0xE00
REGISTER_COUNT = 16
STACK_DEPTH = 16
FLAG_REGISTER = 0xF


# @intent:responsibility レジスタ番号から表示名を生成します。
# @intent:rationale 逆アセンブラとインスペクタが同じ名前を使うよう、命名を一箇所に集約します。
def register_name(index: int) -> str:
    return f"V{index:X}"


# @intent:responsibility CHIP-8 CPUの全てのレジスタ（V0-VF, I, PC, SP）とコールスタックを保持します。
@dataclass
class Chip8CpuState(CpuState):
    """
    CHIP-8 CPUのレジスタ状態を保持するデータクラス。

    pc は 0x200 から開始し、spはスタックに積まれた戻りアドレスの数 (0-16) を表します。
    key_wait_register は FX0A がキー入力を待っている間、格納先のレジスタ番号を保持します。
    """
    pc: int = PROGRAM_START
    sp: int = 0
    v: List[int] = field(default_factory=lambda: [0] * REGISTER_COUNT)
    i: int = 0x000
    stack: List[int] = field(default_factory=lambda: [0] * STACK_DEPTH)
    key_wait_register: Optional[int] = None

    @property
    def vf(self) -> int:
        return self.v[FLAG_REGISTER]

    @vf.setter
    def vf(self, value: int) -> None:
        self.v[FLAG_REGISTER] = value & 0xFF

    @property
    def waiting_for_key(self) -> bool:
        return self.key_wait_register is not None

    # @intent:responsibility 戻りアドレスをコールスタックにプッシュします。
    # @intent:pre-condition sp < 16。満杯の場合はStackOverflowErrorを送出し、状態は変更しません。
    def push(self, return_address: int) -> None:
        if self.sp >= STACK_DEPTH:
            raise StackOverflowError(
                f"Call stack full ({STACK_DEPTH} entries)",
                context={"operation": "CALL", "SP": self.sp, "return": return_address},
            )
        self.stack[self.sp] = return_address & 0xFFFF
        self.sp += 1

    # @intent:responsibility コールスタックから戻りアドレスをポップします。
    def pop(self) -> int:
        if self.sp <= 0:
            raise StackUnderflowError(
                "Return with empty call stack",
                context={"operation": "RET", "SP": self.sp},
            )
        self.sp -= 1
        return self.stack[self.sp]

    # @intent:responsibility 現在積まれている戻りアドレスのみを返します。
    def active_stack(self) -> List[int]:
        return list(self.stack[:self.sp])

    # @intent:responsibility スナップショット用に、リストを含めて独立したコピーを返します。
    def copy(self) -> 'Chip8CpuState':
        return Chip8CpuState(
            pc=self.pc,
            sp=self.sp,
            v=list(self.v),
            i=self.i,
            stack=list(self.stack),
            key_wait_register=self.key_wait_register,
        )
