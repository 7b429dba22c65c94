"""
CHIP-8命令セット実装パッケージ。

デコーダは生の2バイトから命令オブジェクトを生成する純粋関数で、
CPU（実行）と逆アセンブラ（表示）の双方がこの1つの定義を共有します。
"""
from typing import Optional

from chip8_tracer.common.errors import DecodeError
from chip8_tracer.core.snapshot import Instruction
from chip8_tracer.transport.bus import Bus
from chip8_tracer.arch.chip8.machine import Chip8Machine
from .maps import (
    SYSTEM_MAP, SYSTEM_FALLBACK, TOP_NIBBLE_MAP, LOW_NIBBLE_MAP, LOW_BYTE_MAP, EXECUTE_MAP,
)

# @intent:responsibility 16bitのオペコードをCHIP-8の命令としてデコードします。
# @intent:post-condition 定義表に無いビットパターンはDecodeError(UnknownOpcode)を送出します。
def decode_opcode(opcode: int, address: Optional[int] = None) -> Instruction:
    """
    ビッグエンディアンの2バイトから組み立てたオペコードをデコードし、命令オブジェクトを返します。
    addressはエラー報告にのみ使用されます。
    """
    opcode &= 0xFFFF
    family = opcode >> 12

    if family == 0x0:
        form = SYSTEM_MAP.get(opcode, SYSTEM_FALLBACK)
    elif family in TOP_NIBBLE_MAP:
        form = TOP_NIBBLE_MAP[family]
    elif family in LOW_NIBBLE_MAP:
        form = LOW_NIBBLE_MAP[family].get(opcode & 0xF)
    else:
        form = LOW_BYTE_MAP[family].get(opcode & 0xFF)

    if form is None:
        raise DecodeError(opcode, address)
    return form.from_opcode(opcode)

# @intent:responsibility バス上の指定アドレスから2バイトを読み（ログなし）、デコードします。
def decode_at(bus: Bus, address: int) -> Instruction:
    opcode = (bus.peek(address) << 8) | bus.peek(address + 1)
    return decode_opcode(opcode, address)

# @intent:responsibility デコードされた命令を実行し、マシンの状態を変更します。
# @intent:pre-condition 呼び出し時点でPCは次の命令（+2）を指している必要があります。
def execute_instruction(instruction: Instruction, machine: Chip8Machine) -> None:
    executor = EXECUTE_MAP[type(instruction)]
    executor(machine, instruction)
