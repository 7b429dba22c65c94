# src/chip8_tracer/arch/chip8/keypad.py
"""
16キーの入力状態。外部の入力コラボレータからのみ書き込まれます。
"""
from collections import deque
from typing import Deque, List, Optional

KEY_COUNT = 16


# @intent:responsibility キー押下フラグと、キーダウン遷移の履歴を保持します。
class KeypadState:
    """
    各キーの押下状態(is_pressed)と、FX0A用のキーダウン遷移キューを管理します。
    遷移は「離されていたキーが押された」瞬間にのみ記録されます。
    """
    def __init__(self):
        self._pressed: List[bool] = [False] * KEY_COUNT
        # FX0Aを使わないプログラムでも増え続けないよう、直近の遷移だけを保持する
        self._key_downs: Deque[int] = deque(maxlen=KEY_COUNT)

    @staticmethod
    def _check_key(key: int) -> None:
        if not 0 <= key < KEY_COUNT:
            raise ValueError(f"Key {key} outside 0x0-0xF")

    def set_key(self, key: int, pressed: bool) -> None:
        self._check_key(key)
        if pressed and not self._pressed[key]:
            self._key_downs.append(key)
        self._pressed[key] = pressed

    def press(self, key: int) -> None:
        self.set_key(key, True)

    def release(self, key: int) -> None:
        self.set_key(key, False)

    # @intent:rationale VXの値がキー範囲外の場合でも命令を致命的にしないよう、下位ニブルで判定します。
    def is_pressed(self, key: int) -> bool:
        return self._pressed[key & 0xF]

    # @intent:responsibility 最も古い未処理のキーダウン遷移を取り出します。
    def take_key_down(self) -> Optional[int]:
        if self._key_downs:
            return self._key_downs.popleft()
        return None

    # @intent:responsibility これまでの遷移を破棄します。FX0Aの待機開始時に呼ばれます。
    def clear_transitions(self) -> None:
        self._key_downs.clear()

    def reset(self) -> None:
        self._pressed = [False] * KEY_COUNT
        self._key_downs.clear()

    def snapshot(self) -> tuple:
        return tuple(self._pressed)
