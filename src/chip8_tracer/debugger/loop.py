# chip8_tracer/debugger/loop.py
"""
駆動ループ。

経過時間（実時間またはシミュレーション時間）を受け取り、設定された命令レートで
借りのある命令数をデバッガに実行させ、60Hzの境界を跨いだ回数だけタイマーを減算します。
命令ループとタイマーは周期の異なる2つの状態遷移であり、スレッドは使いません。
"""
import logging
from dataclasses import dataclass, field
from typing import List

from chip8_tracer.arch.chip8.timers import TimerClock
from .debugger import Debugger, DebugEvent

logger = logging.getLogger(__name__)

DEFAULT_CLOCK_FREQUENCY = 500


# @intent:responsibility 1回の更新で起きたことをホストへ伝えます。
@dataclass(frozen=True)
class LoopUpdate:
    cycles: int = 0
    sound_stopped: bool = False
    events: List[DebugEvent] = field(default_factory=list)


class MachineLoop:
    """
    ホスト（UIのタイマーやCLIのシミュレーション）から advance(elapsed) を呼び出して駆動します。
    一時停止中は命令もタイマーも進まず、その間の経過時間は破棄されます。
    """
    def __init__(self, debugger: Debugger, timer_clock: TimerClock,
                 clock_frequency: float = DEFAULT_CLOCK_FREQUENCY):
        self._debugger = debugger
        self._timer_clock = timer_clock
        self._clock_frequency = 0.0
        self._cycle_debt = 0.0
        self.cycles = 0
        self.fast_forwarded_cycles = 0
        self.set_clock_frequency(clock_frequency)

    @property
    def debugger(self) -> Debugger:
        return self._debugger

    @property
    def timer_clock(self) -> TimerClock:
        return self._timer_clock

    @property
    def clock_frequency(self) -> float:
        return self._clock_frequency

    # @intent:pre-condition frequencyは正の値である必要があります。
    def set_clock_frequency(self, frequency: float) -> None:
        if frequency <= 0:
            raise ValueError(f"Clock frequency must be positive, got {frequency}")
        self._clock_frequency = float(frequency)
        logger.info("Clock frequency: %.1f Hz", self._clock_frequency)

    def multiply_clock_frequency(self, factor: float) -> None:
        self.set_clock_frequency(self._clock_frequency * factor)

    # @intent:responsibility 経過時間に応じて命令を実行し、タイマーを減算します。
    # @intent:post-condition 1回の更新で2サイクル以上実行した場合、超過分をfast_forwarded_cyclesに加算します。
    def advance(self, elapsed: float) -> LoopUpdate:
        if elapsed < 0:
            raise ValueError(f"Elapsed time must be non-negative, got {elapsed}")

        if self._debugger.is_paused:
            self._discard_elapsed()
            # リセットなどで一時停止中に止まった音も通知する
            return LoopUpdate(sound_stopped=self._timer_clock.timers.take_sound_stop(),
                              events=self._debugger.get_and_clear_events())

        self._cycle_debt += elapsed * self._clock_frequency
        # 浮動小数点誤差で1サイクル取りこぼさないよう、微小な許容値を設ける
        owed = int(self._cycle_debt + 1e-9)
        self._cycle_debt = max(0.0, self._cycle_debt - owed)

        executed = self._debugger.run_cycles(owed)
        self.cycles += executed
        if executed > 1:
            self.fast_forwarded_cycles += executed - 1

        sound_stopped = self._timer_clock.advance(elapsed)
        if sound_stopped:
            logger.debug("Sound timer reached zero")
        if self._debugger.is_paused:
            self._discard_elapsed()
        return LoopUpdate(executed, sound_stopped, self._debugger.get_and_clear_events())

    def _discard_elapsed(self) -> None:
        self._cycle_debt = 0.0
        self._timer_clock.reset_phase()
