# tests/arch/chip8/test_timers.py
"""
chip8_tracer.arch.chip8.timers の単体テスト。
"""
import pytest

from chip8_tracer.arch.chip8.timers import Timers, TimerClock

# @intent:test_suite 60Hzのタイマー減算と、命令レートから独立していることを検証します。


class TestTimers:
    # @intent:test_case_clamped 値は常に0-255に収まること。
    def test_clamped(self):
        timers = Timers()
        timers.delay = 300
        timers.sound = -4
        assert timers.delay == 255
        assert timers.sound == 0

    # @intent:test_case_tick_floors_at_zero 減算は0で止まること。
    def test_tick_floors_at_zero(self):
        timers = Timers(delay=1, sound=0)
        timers.tick()
        timers.tick()
        assert timers.delay == 0
        assert timers.sound == 0

    # @intent:test_case_sound_transition サウンドタイマーが0に到達した時だけTrueを返すこと。
    def test_sound_transition(self):
        timers = Timers(sound=2)
        assert timers.sound_active
        assert timers.tick() is False
        assert timers.tick() is True
        assert timers.tick() is False
        assert not timers.sound_active

    # @intent:test_case_direct_write_stop 減算以外でゼロにされた場合も停止通知が1回だけ残ること。
    def test_direct_write_stop(self):
        timers = Timers(sound=5)
        timers.sound = 0
        assert timers.take_sound_stop() is True
        assert timers.take_sound_stop() is False
        timers.sound = 0
        assert timers.take_sound_stop() is False


class TestTimerClock:
    # @intent:test_case_ten_ticks_in_sixth_second 1/6秒でタイマーが10減ること。
    def test_ten_ticks_in_sixth_second(self):
        timers = Timers(delay=10)
        clock = TimerClock(timers)
        clock.advance(1 / 6)
        assert timers.delay == 0
        assert clock.tick_count == 10

    # @intent:test_case_fractional_accumulation 端数の経過時間が蓄積されること。
    def test_fractional_accumulation(self):
        timers = Timers(delay=5)
        clock = TimerClock(timers)
        clock.advance(1 / 120)
        assert timers.delay == 5
        clock.advance(1 / 120)
        assert timers.delay == 4

    # @intent:test_case_reset_phase 端数を破棄すると次の境界までの時間がリセットされること。
    def test_reset_phase(self):
        timers = Timers(delay=5)
        clock = TimerClock(timers)
        clock.advance(1 / 120)
        clock.reset_phase()
        clock.advance(1 / 120)
        assert timers.delay == 5

    # @intent:test_case_reports_sound_stop サウンドタイマーの停止を報告すること。
    def test_reports_sound_stop(self):
        clock = TimerClock(Timers(sound=3))
        assert clock.advance(1 / 60) is False
        assert clock.advance(1.0) is True
        assert clock.timers.sound == 0

    # @intent:test_case_negative_elapsed 負の経過時間は拒否されること。
    def test_negative_elapsed(self):
        with pytest.raises(ValueError):
            TimerClock(Timers()).advance(-0.1)

    # @intent:test_case_reports_written_stop 境界を跨がない更新でも、書き込みによる停止を報告すること。
    def test_reports_written_stop(self):
        clock = TimerClock(Timers(sound=30))
        clock.timers.sound = 0
        assert clock.advance(0.0) is True
        assert clock.advance(1 / 60) is False
