# src/chip8_tracer/arch/chip8/instructions/alu.py
"""
算術論理演算命令の実装。

VFはキャリー/ボローフラグとして使われます。演算結果を書き込んだ後にVFを設定するため、
VF自身がオペランドの場合もフラグ値が優先されます。
"""
from chip8_tracer.arch.chip8.machine import Chip8Machine
from .base import RegisterByteInstruction, RegisterPairInstruction, RegisterInstruction

# --- ADD Vx, byte (7XNN) ---
# フラグは変化しません。
class AddImmediate(RegisterByteInstruction):
    MNEMONIC = "ADD"

def execute_add_imm(machine: Chip8Machine, op: AddImmediate) -> None:
    v = machine.state.v
    v[op.x] = (v[op.x] + op.value) & 0xFF


# --- OR / AND / XOR (8XY1, 8XY2, 8XY3) ---
class Or(RegisterPairInstruction):
    MNEMONIC = "OR"

def execute_or(machine: Chip8Machine, op: Or) -> None:
    v = machine.state.v
    v[op.x] = v[op.x] | v[op.y]

class And(RegisterPairInstruction):
    MNEMONIC = "AND"

def execute_and(machine: Chip8Machine, op: And) -> None:
    v = machine.state.v
    v[op.x] = v[op.x] & v[op.y]

class Xor(RegisterPairInstruction):
    MNEMONIC = "XOR"

def execute_xor(machine: Chip8Machine, op: Xor) -> None:
    v = machine.state.v
    v[op.x] = v[op.x] ^ v[op.y]


# --- ADD Vx, Vy (8XY4) ---
class AddRegister(RegisterPairInstruction):
    MNEMONIC = "ADD"

# @intent:responsibility VX += VY。8bitを超えた場合VF=1、それ以外はVF=0。
def execute_add_reg(machine: Chip8Machine, op: AddRegister) -> None:
    state = machine.state
    result = state.v[op.x] + state.v[op.y]
    state.v[op.x] = result & 0xFF
    state.vf = 1 if result > 0xFF else 0


# --- SUB Vx, Vy (8XY5) ---
class Sub(RegisterPairInstruction):
    MNEMONIC = "SUB"

# @intent:responsibility VX -= VY。ボローが発生しなければVF=1、発生すればVF=0。
def execute_sub(machine: Chip8Machine, op: Sub) -> None:
    state = machine.state
    minuend, subtrahend = state.v[op.x], state.v[op.y]
    state.v[op.x] = (minuend - subtrahend) & 0xFF
    state.vf = 1 if minuend >= subtrahend else 0


# --- SUBN Vx, Vy (8XY7) ---
class SubReverse(RegisterPairInstruction):
    MNEMONIC = "SUBN"

# @intent:responsibility VX = VY - VX。フラグの規約はSUBと同じです。
def execute_subn(machine: Chip8Machine, op: SubReverse) -> None:
    state = machine.state
    minuend, subtrahend = state.v[op.y], state.v[op.x]
    state.v[op.x] = (minuend - subtrahend) & 0xFF
    state.vf = 1 if minuend >= subtrahend else 0


# --- SHR / SHL (8XY6, 8XYE) ---
# @intent:rationale シフト元はquirks.shift_uses_vyで選択します。
#                  既定はVX自身をシフトする方式で、Trueの場合はVYをシフトしてVXに格納します。
class ShiftRight(RegisterPairInstruction):
    MNEMONIC = "SHR"

def execute_shr(machine: Chip8Machine, op: ShiftRight) -> None:
    state = machine.state
    source = state.v[op.y] if machine.quirks.shift_uses_vy else state.v[op.x]
    state.v[op.x] = source >> 1
    state.vf = source & 0x01

class ShiftLeft(RegisterPairInstruction):
    MNEMONIC = "SHL"

def execute_shl(machine: Chip8Machine, op: ShiftLeft) -> None:
    state = machine.state
    source = state.v[op.y] if machine.quirks.shift_uses_vy else state.v[op.x]
    state.v[op.x] = (source << 1) & 0xFF
    state.vf = (source >> 7) & 0x01


# --- RND Vx, byte (CXNN) ---
class RandomByte(RegisterByteInstruction):
    MNEMONIC = "RND"

def execute_rnd(machine: Chip8Machine, op: RandomByte) -> None:
    machine.state.v[op.x] = machine.rng.randrange(0x100) & op.value


# --- ADD I, Vx (FX1E) ---
class AddIndex(RegisterInstruction):
    MNEMONIC = "ADD"

    def operands(self):
        return ["I"] + super().operands()

def execute_add_index(machine: Chip8Machine, op: AddIndex) -> None:
    state = machine.state
    state.i = (state.i + state.v[op.x]) & 0xFFFF
