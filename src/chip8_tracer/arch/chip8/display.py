# src/chip8_tracer/arch/chip8/display.py
"""
64x32 モノクロのディスプレイバッファ。

画面クリアとスプライト描画命令からのみ変更され、外部のレンダラには読み取り専用で公開されます。
"""
from typing import Iterable, List, Tuple

SCREEN_WIDTH = 64
SCREEN_HEIGHT = 32
SPRITE_WIDTH = 8


# @intent:responsibility 画面のビットグリッドを保持し、XORによるスプライト描画を提供します。
class DisplayBuffer:
    def __init__(self, width: int = SCREEN_WIDTH, height: int = SCREEN_HEIGHT):
        self.width = width
        self.height = height
        self._pixels: List[bool] = [False] * (width * height)
        # レンダラが再描画の要否を判断するためのフラグ
        self.dirty = True

    def clear(self) -> None:
        self._pixels = [False] * (self.width * self.height)
        self.dirty = True

    def get_pixel(self, x: int, y: int) -> bool:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height} display")
        return self._pixels[y * self.width + x]

    # @intent:responsibility スプライトを(x, y)にXOR描画します。
    # @intent:rationale 開始座標は画面サイズで折り返しますが、はみ出した部分は折り返さずに切り捨てます。
    # @intent:return 既に点灯していたピクセルが消えた（衝突した）場合True。
    def draw_sprite(self, x: int, y: int, rows: Iterable[int]) -> bool:
        origin_x = x % self.width
        origin_y = y % self.height
        collision = False
        for dy, row_data in enumerate(rows):
            py = origin_y + dy
            if py >= self.height:
                break
            for dx in range(SPRITE_WIDTH):
                if not row_data & (0x80 >> dx):
                    continue
                px = origin_x + dx
                if px >= self.width:
                    break
                index = py * self.width + px
                if self._pixels[index]:
                    collision = True
                self._pixels[index] = not self._pixels[index]
        self.dirty = True
        return collision

    # @intent:responsibility 読み取り専用の行単位ビューを返します。
    def rows(self) -> Tuple[Tuple[bool, ...], ...]:
        return tuple(
            tuple(self._pixels[y * self.width:(y + 1) * self.width]) for y in range(self.height)
        )

    def lit_count(self) -> int:
        return sum(self._pixels)

    def __str__(self) -> str:
        return "\n".join("".join("O" if p else " " for p in row) for row in self.rows())
