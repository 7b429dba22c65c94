# src/chip8_tracer/arch/chip8/instructions/load.py
"""
ロード/ストア命令（レジスタ、インデックスレジスタ、タイマー、メモリ）の実装。
"""
from chip8_tracer.arch.chip8.machine import Chip8Machine
from chip8_tracer.arch.chip8.font import glyph_address
from chip8_tracer.arch.chip8.state import register_name
from .base import (
    AddressInstruction, RegisterByteInstruction, RegisterPairInstruction,
    RegisterInstruction,
)

# --- LD Vx, byte (6XNN) ---
class LoadImmediate(RegisterByteInstruction):
    MNEMONIC = "LD"

def execute_ld_imm(machine: Chip8Machine, op: LoadImmediate) -> None:
    machine.state.v[op.x] = op.value


# --- LD Vx, Vy (8XY0) ---
class LoadRegister(RegisterPairInstruction):
    MNEMONIC = "LD"

def execute_ld_reg(machine: Chip8Machine, op: LoadRegister) -> None:
    v = machine.state.v
    v[op.x] = v[op.y]


# --- LD I, addr (ANNN) ---
class LoadIndex(AddressInstruction):
    MNEMONIC = "LD"

    def operands(self):
        return ["I"] + super().operands()

def execute_ld_index(machine: Chip8Machine, op: LoadIndex) -> None:
    machine.state.i = op.address


# --- LD Vx, DT (FX07) ---
class ReadDelayTimer(RegisterInstruction):
    MNEMONIC = "LD"

    def operands(self):
        return [register_name(self.x), "DT"]

def execute_ld_read_dt(machine: Chip8Machine, op: ReadDelayTimer) -> None:
    machine.state.v[op.x] = machine.timers.delay


# --- LD DT, Vx (FX15) ---
class SetDelayTimer(RegisterInstruction):
    MNEMONIC = "LD"

    def operands(self):
        return ["DT", register_name(self.x)]

def execute_ld_set_dt(machine: Chip8Machine, op: SetDelayTimer) -> None:
    machine.timers.delay = machine.state.v[op.x]


# --- LD ST, Vx (FX18) ---
class SetSoundTimer(RegisterInstruction):
    MNEMONIC = "LD"

    def operands(self):
        return ["ST", register_name(self.x)]

def execute_ld_set_st(machine: Chip8Machine, op: SetSoundTimer) -> None:
    machine.timers.sound = machine.state.v[op.x]


# --- LD F, Vx (FX29) ---
class LoadFontAddress(RegisterInstruction):
    MNEMONIC = "LD"

    def operands(self):
        return ["F", register_name(self.x)]

# @intent:responsibility VXの下位ニブルに対応する組み込みフォントのアドレスをIに設定します。
def execute_ld_font(machine: Chip8Machine, op: LoadFontAddress) -> None:
    machine.state.i = glyph_address(machine.state.v[op.x])


# --- LD B, Vx (FX33) ---
class StoreBcd(RegisterInstruction):
    MNEMONIC = "LD"

    def operands(self):
        return ["B", register_name(self.x)]

# @intent:responsibility VXの10進表現（百の位、十の位、一の位）をI, I+1, I+2に格納します。
def execute_ld_bcd(machine: Chip8Machine, op: StoreBcd) -> None:
    value = machine.state.v[op.x]
    base = machine.state.i
    machine.check_range(base, 3, "BCD")
    machine.bus.write(base, value // 100)
    machine.bus.write(base + 1, (value // 10) % 10)
    machine.bus.write(base + 2, value % 10)


# --- LD [I], Vx (FX55) ---
# @intent:rationale Iの後置インクリメントはquirks.load_store_increments_iで選択します（既定は変更しない）。
class StoreRegisters(RegisterInstruction):
    MNEMONIC = "LD"

    def operands(self):
        return ["[I]", register_name(self.x)]

def execute_ld_store(machine: Chip8Machine, op: StoreRegisters) -> None:
    state = machine.state
    machine.check_range(state.i, op.x + 1, "STORE")
    for index in range(op.x + 1):
        machine.bus.write(state.i + index, state.v[index])
    if machine.quirks.load_store_increments_i:
        state.i = (state.i + op.x + 1) & 0xFFFF


# --- LD Vx, [I] (FX65) ---
class LoadRegisters(RegisterInstruction):
    MNEMONIC = "LD"

    def operands(self):
        return [register_name(self.x), "[I]"]

def execute_ld_load(machine: Chip8Machine, op: LoadRegisters) -> None:
    state = machine.state
    machine.check_range(state.i, op.x + 1, "LOAD")
    for index in range(op.x + 1):
        state.v[index] = machine.bus.read(state.i + index)
    if machine.quirks.load_store_increments_i:
        state.i = (state.i + op.x + 1) & 0xFFFF
