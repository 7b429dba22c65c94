# src/chip8_tracer/arch/chip8/timers.py
"""
遅延タイマーとサウンドタイマー、およびそれらを60Hzで減算するTimerClock。

タイマーの減算は命令実行レートとは独立しています。
"""
from dataclasses import dataclass

TIMER_FREQUENCY = 60
TIMER_INTERVAL = 1.0 / TIMER_FREQUENCY


def _clamp8(value: int) -> int:
    return max(0, min(0xFF, value))


# @intent:responsibility 2つの8bitタイマー（delay, sound）を保持します。値は常に[0,255]に収まります。
# @intent:post-condition サウンドタイマーが非ゼロからゼロになった場合、経路（減算、FX18、リセット）にかかわらず停止通知が1回保留されます。
@dataclass
class Timers:
    delay: int = 0
    sound: int = 0

    def __setattr__(self, name, value):
        if name in ("delay", "sound"):
            value = _clamp8(int(value))
        if name == "sound" and value == 0 and self.__dict__.get("sound", 0) > 0:
            super().__setattr__("_sound_stop_pending", True)
        super().__setattr__(name, value)

    # @intent:return 保留中の停止通知があればTrue。通知は取り出した時点で消えます。
    def take_sound_stop(self) -> bool:
        pending = self.__dict__.get("_sound_stop_pending", False)
        self._sound_stop_pending = False
        return pending

    @property
    def sound_active(self) -> bool:
        return self.sound > 0

    # @intent:responsibility 両タイマーを1ずつ減算します（0未満にはなりません）。
    # @intent:return 前回の通知以降にサウンドタイマーがゼロへ遷移していればTrue。
    def tick(self) -> bool:
        if self.delay > 0:
            self.delay -= 1
        if self.sound > 0:
            self.sound -= 1
        return self.take_sound_stop()


# @intent:responsibility 経過時間を蓄積し、1/60秒の境界を跨ぐたびにTimersを1回減算します。
class TimerClock:
    """
    実時間(またはシミュレーション時間)に対して60Hzでタイマーを減算するクロック。
    """
    def __init__(self, timers: Timers, interval: float = TIMER_INTERVAL):
        self._timers = timers
        self._interval = interval
        self._elapsed = 0.0
        self.tick_count = 0

    @property
    def timers(self) -> Timers:
        return self._timers

    # @intent:responsibility 経過時間を進め、跨いだ境界の数だけタイマーを減算します。
    # @intent:return サウンドタイマーがこの呼び出し中にゼロへ遷移したかどうか。
    def advance(self, elapsed: float) -> bool:
        if elapsed < 0:
            raise ValueError(f"Elapsed time must be non-negative, got {elapsed}")
        self._elapsed += elapsed
        sound_stopped = False
        # 浮動小数点誤差で境界をわずかに取りこぼさないよう、微小な許容値を設ける
        while self._elapsed + 1e-9 >= self._interval:
            self._elapsed -= self._interval
            self.tick_count += 1
            if self._timers.tick():
                sound_stopped = True
        # 境界を跨がない更新でも、命令による停止は報告する
        return self._timers.take_sound_stop() or sound_stopped

    # @intent:responsibility 端数の経過時間を破棄します（一時停止からの再開時など）。
    def reset_phase(self) -> None:
        self._elapsed = 0.0
