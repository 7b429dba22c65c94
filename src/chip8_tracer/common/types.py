# chip8_tracer/common/types.py
"""
レイヤー間で受け渡すレジスタ情報の型。
"""
from typing import Dict, List, NamedTuple

# レジスタ名 -> 値 (例: {"V0": 0x2A, "PC": 0x200})
RegisterMap = Dict[str, int]


# @intent:data_structure 表示用のレジスタ定義。widthはビット幅で、16進の桁数を決めます。
class RegisterInfo(NamedTuple):
    name: str
    width: int


# @intent:data_structure パネル上でまとめて表示するレジスタの組。
class RegisterLayoutInfo(NamedTuple):
    group_name: str
    registers: List[RegisterInfo]
