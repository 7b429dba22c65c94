# src/chip8_tracer/arch/chip8/instructions/base.py
"""
CHIP-8命令実装用の共通ユーティリティ。

オペコードからのフィールド抽出と、オペランドの形ごとの命令基底クラスを定義します。
具体的な命令クラスはこれらを継承し、ニーモニックだけを与えます。
"""
from dataclasses import dataclass
from typing import List

from chip8_tracer.core.snapshot import Instruction
from chip8_tracer.arch.chip8.state import register_name

# @intent:utility_function オペコードの各フィールドを取り出します。
def field_x(opcode: int) -> int:
    return (opcode >> 8) & 0xF

def field_y(opcode: int) -> int:
    return (opcode >> 4) & 0xF

def field_n(opcode: int) -> int:
    return opcode & 0xF

def field_nn(opcode: int) -> int:
    return opcode & 0xFF

def field_nnn(opcode: int) -> int:
    return opcode & 0xFFF

# @intent:utility_function アドレスとリテラルの表示形式を統一します。
def format_address(address: int) -> str:
    return f"0x{address:03X}"

def format_byte(value: int) -> str:
    return f"0x{value:02X}"


# @intent:responsibility オペランドを持たない命令 (CLS, RET)。
@dataclass(frozen=True)
class NoOperandInstruction(Instruction):
    @classmethod
    def from_opcode(cls, opcode: int) -> 'NoOperandInstruction':
        return cls(opcode)


# @intent:responsibility 12bitアドレスをオペランドに持つ命令 (_NNN)。
@dataclass(frozen=True)
class AddressInstruction(Instruction):
    address: int

    @classmethod
    def from_opcode(cls, opcode: int) -> 'AddressInstruction':
        return cls(opcode, field_nnn(opcode))

    def operands(self) -> List[str]:
        return [format_address(self.address)]


# @intent:responsibility レジスタと8bitリテラルを持つ命令 (_XNN)。
@dataclass(frozen=True)
class RegisterByteInstruction(Instruction):
    x: int
    value: int

    @classmethod
    def from_opcode(cls, opcode: int) -> 'RegisterByteInstruction':
        return cls(opcode, field_x(opcode), field_nn(opcode))

    def operands(self) -> List[str]:
        return [register_name(self.x), format_byte(self.value)]


# @intent:responsibility 2つのレジスタを持つ命令 (_XY_)。
@dataclass(frozen=True)
class RegisterPairInstruction(Instruction):
    x: int
    y: int

    @classmethod
    def from_opcode(cls, opcode: int) -> 'RegisterPairInstruction':
        return cls(opcode, field_x(opcode), field_y(opcode))

    def operands(self) -> List[str]:
        return [register_name(self.x), register_name(self.y)]


# @intent:responsibility 単一のレジスタを持つ命令 (EX__, FX__)。
@dataclass(frozen=True)
class RegisterInstruction(Instruction):
    x: int

    @classmethod
    def from_opcode(cls, opcode: int) -> 'RegisterInstruction':
        return cls(opcode, field_x(opcode))

    def operands(self) -> List[str]:
        return [register_name(self.x)]
