# src/chip8_tracer/loader/loader.py
"""
コードローダーモジュール。
生のCHIP-8プログラムイメージ（ヘッダなしのバイナリ）と組み込みフォントのロードをサポートします。
"""
import logging
from pathlib import Path
from typing import Union

from chip8_tracer.common.errors import ProgramTooLargeError
from chip8_tracer.transport.bus import Bus
from chip8_tracer.arch.chip8.state import PROGRAM_START, MAX_PROGRAM_SIZE
from chip8_tracer.arch.chip8.font import FONT_ADDRESS, FONT_SPRITES

logger = logging.getLogger(__name__)


# @intent:responsibility 16進フォント(0-F)をフォント領域へ配置します。
def load_font(bus: Bus) -> None:
    bus.load(FONT_ADDRESS, FONT_SPRITES)


class ProgramLoader:
    """
    生バイナリのプログラムイメージを検証し、0x200からバスにロードするローダー。
    """
    # @intent:pre-condition 長さは0xE00バイト以下である必要があります。
    # @intent:post-condition 検証に失敗した場合、メモリは一切変更されません。
    def load_bytes(self, bus: Bus, data: bytes) -> int:
        size = len(data)
        if size > MAX_PROGRAM_SIZE:
            raise ProgramTooLargeError(
                f"Program is {size} bytes; at most {MAX_PROGRAM_SIZE} bytes fit above {PROGRAM_START:#05x}",
                PROGRAM_START,
                {"size": size, "limit": MAX_PROGRAM_SIZE},
            )
        bus.load(PROGRAM_START, bytes(data))
        logger.info("Loaded %d bytes at %#05x", size, PROGRAM_START)
        return size

    def read_file(self, file_path: Union[str, Path]) -> bytes:
        with open(file_path, 'rb') as f:
            return f.read()

    def load_file(self, file_path: Union[str, Path], bus: Bus) -> bytes:
        data = self.read_file(file_path)
        self.load_bytes(bus, data)
        return data
