# src/chip8_tracer/arch/chip8/instructions/maps.py
"""
CHIP-8 命令マップ。

デコードは上位ニブルで命令ファミリーを選び、5XY_/8XY_/9XY_は下位ニブル、
EX__/FX__は下位バイトで命令を確定します。実行マップは命令クラスから実行関数を引きます。
"""
from typing import Callable, Dict, List, Type

from chip8_tracer.core.snapshot import Instruction
from . import alu, control, graphics, load

# 0___: 00E0/00EE 以外は全て SYS addr
SYSTEM_MAP: Dict[int, Type[Instruction]] = {
    0x00E0: graphics.ClearScreen,
    0x00EE: control.Return,
}
SYSTEM_FALLBACK = control.SysCall

# 上位ニブルだけで確定するファミリー
TOP_NIBBLE_MAP: Dict[int, Type[Instruction]] = {
    0x1: control.Jump,
    0x2: control.Call,
    0x3: control.SkipEqualImmediate,
    0x4: control.SkipNotEqualImmediate,
    0x6: load.LoadImmediate,
    0x7: alu.AddImmediate,
    0xA: load.LoadIndex,
    0xB: control.JumpOffset,
    0xC: alu.RandomByte,
    0xD: graphics.Draw,
}

# 下位ニブルで区別するファミリー
LOW_NIBBLE_MAP: Dict[int, Dict[int, Type[Instruction]]] = {
    0x5: {
        0x0: control.SkipEqualRegister,
    },
    0x8: {
        0x0: load.LoadRegister,
        0x1: alu.Or,
        0x2: alu.And,
        0x3: alu.Xor,
        0x4: alu.AddRegister,
        0x5: alu.Sub,
        0x6: alu.ShiftRight,
        0x7: alu.SubReverse,
        0xE: alu.ShiftLeft,
    },
    0x9: {
        0x0: control.SkipNotEqualRegister,
    },
}

# 下位バイトで区別するファミリー
LOW_BYTE_MAP: Dict[int, Dict[int, Type[Instruction]]] = {
    0xE: {
        0x9E: control.SkipKeyPressed,
        0xA1: control.SkipKeyNotPressed,
    },
    0xF: {
        0x07: load.ReadDelayTimer,
        0x0A: control.WaitKey,
        0x15: load.SetDelayTimer,
        0x18: load.SetSoundTimer,
        0x1E: alu.AddIndex,
        0x29: load.LoadFontAddress,
        0x33: load.StoreBcd,
        0x55: load.StoreRegisters,
        0x65: load.LoadRegisters,
    },
}

ExecFunc = Callable[..., None]

EXECUTE_MAP: Dict[Type[Instruction], ExecFunc] = {
    graphics.ClearScreen: graphics.execute_cls,
    graphics.Draw: graphics.execute_drw,
    control.Return: control.execute_ret,
    control.SysCall: control.execute_call,
    control.Call: control.execute_call,
    control.Jump: control.execute_jp,
    control.JumpOffset: control.execute_jp_offset,
    control.SkipEqualImmediate: control.execute_se_imm,
    control.SkipNotEqualImmediate: control.execute_sne_imm,
    control.SkipEqualRegister: control.execute_se_reg,
    control.SkipNotEqualRegister: control.execute_sne_reg,
    control.SkipKeyPressed: control.execute_skp,
    control.SkipKeyNotPressed: control.execute_sknp,
    control.WaitKey: control.execute_wait_key,
    load.LoadImmediate: load.execute_ld_imm,
    load.LoadRegister: load.execute_ld_reg,
    load.LoadIndex: load.execute_ld_index,
    load.ReadDelayTimer: load.execute_ld_read_dt,
    load.SetDelayTimer: load.execute_ld_set_dt,
    load.SetSoundTimer: load.execute_ld_set_st,
    load.LoadFontAddress: load.execute_ld_font,
    load.StoreBcd: load.execute_ld_bcd,
    load.StoreRegisters: load.execute_ld_store,
    load.LoadRegisters: load.execute_ld_load,
    alu.AddImmediate: alu.execute_add_imm,
    alu.Or: alu.execute_or,
    alu.And: alu.execute_and,
    alu.Xor: alu.execute_xor,
    alu.AddRegister: alu.execute_add_reg,
    alu.Sub: alu.execute_sub,
    alu.SubReverse: alu.execute_subn,
    alu.ShiftRight: alu.execute_shr,
    alu.ShiftLeft: alu.execute_shl,
    alu.RandomByte: alu.execute_rnd,
    alu.AddIndex: alu.execute_add_index,
}


# @intent:responsibility デコーダが生成し得る全ての命令クラスを列挙します。
def all_forms() -> List[Type[Instruction]]:
    forms: List[Type[Instruction]] = list(SYSTEM_MAP.values()) + [SYSTEM_FALLBACK]
    forms += TOP_NIBBLE_MAP.values()
    for family in (LOW_NIBBLE_MAP, LOW_BYTE_MAP):
        for table in family.values():
            forms += table.values()
    return forms
