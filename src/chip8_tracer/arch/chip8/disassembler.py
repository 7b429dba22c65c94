# src/chip8_tracer/arch/chip8/disassembler.py
"""
CHIP-8 逆アセンブラ。

ライブのCPU状態には一切依存せず、実行系と同じデコーダだけを共有します。
デコードできない位置ではプレースホルダを出力して1バイト進み、
プログラム中に埋め込まれたデータ領域を越えて解析を続けます。
"""
from dataclasses import dataclass
from typing import Iterator, List, Optional, Set

from chip8_tracer.common.errors import DecodeError
from chip8_tracer.core.snapshot import Instruction
from chip8_tracer.arch.chip8.state import PROGRAM_START
from chip8_tracer.arch.chip8.instructions import decode_opcode
from chip8_tracer.arch.chip8.instructions.control import Jump


# @intent:responsibility 逆アセンブル結果の1行分を保持します。
@dataclass(frozen=True)
class DisassemblyEntry:
    """
    instruction が None の場合はデコードできなかった生バイトのプレースホルダです。
    """
    address: int
    instruction: Optional[Instruction]
    text: str
    raw: bytes

    @property
    def hex_bytes(self) -> str:
        return " ".join(f"{b:02X}" for b in self.raw)


def placeholder_text(raw: bytes) -> str:
    if len(raw) == 2:
        return f"DATA[0x{(raw[0] << 8) | raw[1]:04X}]"
    return f"DATA[0x{raw[0]:02X}]"


# @intent:responsibility 出力形式 "<hex address>: <mnemonic>" の1行を生成します。
def format_line(entry: DisassemblyEntry) -> str:
    return f"{entry.address:03X}: {entry.text}"


# @intent:responsibility 1アドレス分をデコードし、失敗した場合はプレースホルダを返します。
def _decode_entry(data: bytes, offset: int, address: int) -> DisassemblyEntry:
    raw = bytes(data[offset:offset + 2])
    if len(raw) < 2:
        return DisassemblyEntry(address, None, placeholder_text(raw), raw)
    try:
        instruction = decode_opcode((raw[0] << 8) | raw[1], address)
    except DecodeError:
        return DisassemblyEntry(address, None, placeholder_text(raw), raw)
    return DisassemblyEntry(address, instruction, instruction.text, raw)


# @intent:responsibility バイト列を先頭から線形に逆アセンブルする、再走査可能なシーケンスです。
class Disassembler:
    """
    for entry in Disassembler(data, base=0x200): ...

    イテレートするたびに先頭から同じ結果を生成します。
    """
    def __init__(self, data: bytes, base: int = PROGRAM_START):
        self._data = bytes(data)
        self._base = base

    @property
    def base(self) -> int:
        return self._base

    def __iter__(self) -> Iterator[DisassemblyEntry]:
        offset = 0
        while offset < len(self._data):
            entry = _decode_entry(self._data, offset, self._base + offset)
            yield entry
            # デコード失敗時は1バイトだけ進めて再同期する
            offset += 2 if entry.instruction is not None else 1

    def entries(self) -> List[DisassemblyEntry]:
        return list(self)

    def lines(self) -> List[str]:
        return [format_line(entry) for entry in self]


# @intent:responsibility 無条件ジャンプを辿りながら逆アセンブルします。
# @intent:rationale ジャンプ先は奇数アドレスの場合があるため、到達したアドレスを起点に2バイトずつ解析します。
#                  各ジャンプ先は初回のみ辿り、2回目以降はジャンプを読み飛ばして次へ進みます。
def trace_disassemble(data: bytes, base: int = PROGRAM_START) -> List[DisassemblyEntry]:
    """
    baseから開始し、データ範囲外に出るまで解析したエントリをアドレス順に返します。
    """
    found = {}
    visited: Set[int] = set()
    pc = base
    while base <= pc and pc - base + 1 < len(data):
        entry = _decode_entry(data, pc - base, pc)
        found[pc] = entry
        if isinstance(entry.instruction, Jump) and entry.instruction.address not in visited:
            visited.add(entry.instruction.address)
            pc = entry.instruction.address
        else:
            pc += 2
    return [found[address] for address in sorted(found)]
