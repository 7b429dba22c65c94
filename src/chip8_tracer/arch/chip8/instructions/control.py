# src/chip8_tracer/arch/chip8/instructions/control.py
"""
制御命令（ジャンプ、サブルーチン、条件スキップ、キー入力）の実装。

実行関数が呼ばれる時点で、PCは既に次の命令（+2）を指しています。
"""
from chip8_tracer.arch.chip8.machine import Chip8Machine
from chip8_tracer.arch.chip8.state import Chip8CpuState
from .base import (
    NoOperandInstruction, AddressInstruction, RegisterByteInstruction,
    RegisterPairInstruction, RegisterInstruction, format_address,
)

# @intent:utility_function 条件が成立したスキップ命令のために、次の命令を飛ばします。
def skip_next(state: Chip8CpuState) -> None:
    state.pc = (state.pc + 2) & 0xFFFF


# --- RET (00EE) ---
class Return(NoOperandInstruction):
    MNEMONIC = "RET"

# @intent:responsibility コールスタックから戻りアドレスをポップしてPCに設定します。
def execute_ret(machine: Chip8Machine, op: Return) -> None:
    machine.state.pc = machine.state.pop()


# --- SYS (0NNN) ---
# @intent:rationale 機械語ルーチン呼び出しは実機のCPU依存のため、通常のサブルーチン呼び出しとして扱います。
class SysCall(AddressInstruction):
    MNEMONIC = "SYS"

# --- CALL (2NNN) ---
class Call(AddressInstruction):
    MNEMONIC = "CALL"

# @intent:responsibility 戻りアドレス(PC+2)をプッシュしてからジャンプします。
def execute_call(machine: Chip8Machine, op: AddressInstruction) -> None:
    state = machine.state
    state.push(state.pc)
    state.pc = op.address


# --- JP (1NNN) ---
class Jump(AddressInstruction):
    MNEMONIC = "JP"

def execute_jp(machine: Chip8Machine, op: Jump) -> None:
    machine.state.pc = op.address


# --- JP V0, addr (BNNN) ---
class JumpOffset(AddressInstruction):
    MNEMONIC = "JP"

    def operands(self):
        return ["V0", format_address(self.address)]

def execute_jp_offset(machine: Chip8Machine, op: JumpOffset) -> None:
    machine.state.pc = (machine.state.v[0] + op.address) & 0xFFFF


# --- SE Vx, byte (3XNN) ---
class SkipEqualImmediate(RegisterByteInstruction):
    MNEMONIC = "SE"

def execute_se_imm(machine: Chip8Machine, op: SkipEqualImmediate) -> None:
    if machine.state.v[op.x] == op.value:
        skip_next(machine.state)


# --- SNE Vx, byte (4XNN) ---
class SkipNotEqualImmediate(RegisterByteInstruction):
    MNEMONIC = "SNE"

def execute_sne_imm(machine: Chip8Machine, op: SkipNotEqualImmediate) -> None:
    if machine.state.v[op.x] != op.value:
        skip_next(machine.state)


# --- SE Vx, Vy (5XY0) ---
class SkipEqualRegister(RegisterPairInstruction):
    MNEMONIC = "SE"

def execute_se_reg(machine: Chip8Machine, op: SkipEqualRegister) -> None:
    v = machine.state.v
    if v[op.x] == v[op.y]:
        skip_next(machine.state)


# --- SNE Vx, Vy (9XY0) ---
class SkipNotEqualRegister(RegisterPairInstruction):
    MNEMONIC = "SNE"

def execute_sne_reg(machine: Chip8Machine, op: SkipNotEqualRegister) -> None:
    v = machine.state.v
    if v[op.x] != v[op.y]:
        skip_next(machine.state)


# --- SKP Vx (EX9E) ---
class SkipKeyPressed(RegisterInstruction):
    MNEMONIC = "SKP"

def execute_skp(machine: Chip8Machine, op: SkipKeyPressed) -> None:
    if machine.keypad.is_pressed(machine.state.v[op.x]):
        skip_next(machine.state)


# --- SKNP Vx (EXA1) ---
class SkipKeyNotPressed(RegisterInstruction):
    MNEMONIC = "SKNP"

def execute_sknp(machine: Chip8Machine, op: SkipKeyNotPressed) -> None:
    if not machine.keypad.is_pressed(machine.state.v[op.x]):
        skip_next(machine.state)


# --- LD Vx, K (FX0A) ---
class WaitKey(RegisterInstruction):
    MNEMONIC = "LD"

    def operands(self):
        return super().operands() + ["K"]

# @intent:responsibility キー入力待ちを開始します。
# @intent:rationale PCはこの命令に留まり、キーダウン遷移が観測された時点でCPUが完了させます。
def execute_wait_key(machine: Chip8Machine, op: WaitKey) -> None:
    state = machine.state
    machine.keypad.clear_transitions()
    state.key_wait_register = op.x
    state.pc = (state.pc - op.LENGTH) & 0xFFFF
