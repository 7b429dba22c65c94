# src/chip8_tracer/common/errors.py
"""
エミュレータ全体で共有する例外階層。

致命的なエラー（未定義オペコード、スタック破綻、範囲外メモリアクセスなど）は
種別・アドレス・レジスタ文脈を持つ構造化された例外として送出され、
デバッガUIが停止理由を表示できるようにします。
"""
from enum import Enum
from typing import Any, Dict, Optional


# @intent:responsibility エラーの種別を列挙します。
class ErrorKind(Enum):
    UNKNOWN_OPCODE = "UnknownOpcode"
    STACK_OVERFLOW = "StackOverflow"
    STACK_UNDERFLOW = "StackUnderflow"
    MEMORY_ACCESS = "MemoryAccess"
    PROGRAM_TOO_LARGE = "ProgramTooLarge"
    INVALID_BREAKPOINT = "InvalidBreakpoint"


# @intent:responsibility 全てのエミュレータ例外の基底クラスです。
class Chip8Error(Exception):
    """
    種別(kind)、アドレス(address)、関連レジスタの文脈(context)を保持する例外。
    """
    kind: ErrorKind = ErrorKind.MEMORY_ACCESS

    def __init__(self, message: str, address: Optional[int] = None, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.address = address
        self.context: Dict[str, Any] = dict(context or {})

    # @intent:responsibility UI表示用の1行の停止理由を生成します。
    def describe(self) -> str:
        parts = [self.kind.value]
        if self.address is not None:
            parts.append(f"at {self.address:#05x}")
        text = " ".join(parts) + f": {self.message}"
        if self.context:
            details = ", ".join(
                f"{key}={value:#x}" if isinstance(value, int) else f"{key}={value}"
                for key, value in self.context.items()
            )
            text += f" ({details})"
        return text


class DecodeError(Chip8Error):
    """定義表に存在しないビットパターンをデコードしようとした。"""
    kind = ErrorKind.UNKNOWN_OPCODE

    def __init__(self, opcode: int, address: Optional[int] = None):
        raw = bytes([(opcode >> 8) & 0xFF, opcode & 0xFF])
        super().__init__(f"Unknown opcode {opcode:#06x}", address, {"opcode": opcode})
        self.opcode = opcode
        self.raw = raw


class StackOverflowError(Chip8Error):
    kind = ErrorKind.STACK_OVERFLOW


class StackUnderflowError(Chip8Error):
    kind = ErrorKind.STACK_UNDERFLOW


# @intent:rationale バス層は範囲外アドレスをIndexErrorで報告してきたため、互換性のためIndexErrorも継承します。
class MemoryAccessError(Chip8Error, IndexError):
    kind = ErrorKind.MEMORY_ACCESS


class ProgramTooLargeError(Chip8Error):
    kind = ErrorKind.PROGRAM_TOO_LARGE


# @intent:responsibility ブレークポイント設定時の検証エラー。致命的ではありません。
class InvalidBreakpointError(Chip8Error, ValueError):
    kind = ErrorKind.INVALID_BREAKPOINT
