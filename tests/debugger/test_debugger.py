# tests/debugger/test_debugger.py
"""
chip8_tracer.debugger.debuggerモジュールの単体テスト。
Debuggerの実行モード遷移、ブレークポイント管理、ステップ実行、および状態の観測を検証します。
"""
import dataclasses

import pytest
from unittest.mock import patch

from chip8_tracer.common.errors import InvalidBreakpointError, ErrorKind
from chip8_tracer.arch.chip8.machine import Chip8Machine
from chip8_tracer.arch.chip8.cpu import Chip8Cpu
from chip8_tracer.debugger.debugger import (
    Debugger, ExecutionMode, BreakpointHit, StepCompleted, ExecutionFault,
)

# @intent:test_suite デバッガのブレークポイントと実行制御機能の検証。

# LD V0, 1 / ADD V0, 1 / ADD V0, 1 / JP 0x206
COUNTER_PROGRAM = bytes([0x60, 0x01, 0x70, 0x01, 0x70, 0x01, 0x12, 0x06])


def build_debugger(program: bytes, start_paused: bool = False, extra=None):
    machine = Chip8Machine()
    machine.load_program(program)
    for address, data in (extra or {}).items():
        machine.bus.load(address, data)
    cpu = Chip8Cpu(machine)
    return Debugger(cpu, start_paused=start_paused), cpu


class TestDebugger:
    """
    Debuggerの単体テスト。
    """
    @pytest.fixture
    def setup_debugger(self):
        return build_debugger(COUNTER_PROGRAM)

    @pytest.fixture
    def setup_subroutine(self):
        # 0x200: CALL 0x300 / LD V0, 5   0x300: LD V1, 1 / RET
        return build_debugger(
            bytes([0x23, 0x00, 0x60, 0x05, 0x12, 0x04]),
            start_paused=True,
            extra={0x300: bytes([0x61, 0x01, 0x00, 0xEE])},
        )

    # @intent:test_case_initial_mode start_pausedに応じて初期モードが決まること。
    def test_initial_mode(self):
        running, _ = build_debugger(COUNTER_PROGRAM)
        paused, _ = build_debugger(COUNTER_PROGRAM, start_paused=True)
        assert running.mode == ExecutionMode.RUNNING
        assert paused.mode == ExecutionMode.PAUSED

    # @intent:test_case_breakpoint_management ブレークポイントの追加、無効化、削除が正しく行われること。
    def test_breakpoint_management(self, setup_debugger):
        debugger, _ = setup_debugger
        debugger.set_breakpoint(0x204)
        debugger.set_breakpoint(0x300, enabled=False)
        assert debugger.get_breakpoints() == {0x204: True, 0x300: False}

        debugger.disable_breakpoint(0x204)
        debugger.enable_breakpoint(0x300)
        debugger.enable_breakpoint(0x500)  # 未登録のアドレスは無視される
        assert debugger.get_breakpoints() == {0x204: False, 0x300: True}

        debugger.clear_breakpoint(0x204)
        debugger.clear_breakpoint(0x204)  # 存在しないブレークポイントの削除はエラーにならない
        assert debugger.get_breakpoints() == {0x300: True}

        debugger.clear_all_breakpoints()
        assert debugger.get_breakpoints() == {}

    # @intent:test_case_invalid_breakpoint 範囲外のアドレスは拒否され、集合は変更されないこと。
    @pytest.mark.parametrize("address", [-1, 0x1000, 0xFFFF])
    def test_invalid_breakpoint(self, setup_debugger, address):
        debugger, _ = setup_debugger
        debugger.set_breakpoint(0x200)
        with pytest.raises(InvalidBreakpointError) as excinfo:
            debugger.set_breakpoint(address)
        assert excinfo.value.kind == ErrorKind.INVALID_BREAKPOINT
        assert isinstance(excinfo.value, ValueError)
        assert debugger.get_breakpoints() == {0x200: True}

    # @intent:test_case_breakpoint_hit ブレークポイントのアドレスの命令は実行されずに一時停止すること。
    def test_breakpoint_hit(self, setup_debugger):
        debugger, cpu = setup_debugger
        debugger.set_breakpoint(0x204)

        executed = debugger.run_cycles(100)

        assert executed == 2
        assert cpu.get_state().pc == 0x204
        assert cpu.get_state().v[0] == 2
        assert debugger.mode == ExecutionMode.PAUSED
        assert debugger.get_and_clear_events() == [BreakpointHit(0x204)]
        assert debugger.get_and_clear_events() == []

    # @intent:test_case_disabled_breakpoint 無効なブレークポイントでは停止しないこと。
    def test_disabled_breakpoint(self, setup_debugger):
        debugger, cpu = setup_debugger
        debugger.set_breakpoint(0x204, enabled=False)
        assert debugger.run_cycles(5) == 5
        assert debugger.mode == ExecutionMode.RUNNING
        assert cpu.get_state().v[0] == 3

    # @intent:test_case_resume_from_breakpoint ブレークポイント上から再開した場合、その命令を実行して次回また停止すること。
    def test_resume_from_breakpoint(self, setup_debugger):
        debugger, cpu = setup_debugger
        debugger.set_breakpoint(0x206)
        debugger.run_cycles(100)
        assert cpu.get_state().pc == 0x206
        debugger.get_and_clear_events()

        debugger.resume()
        executed = debugger.run_cycles(100)

        # JP 0x206 を1回実行し、再び 0x206 で停止する
        assert executed == 1
        assert debugger.is_paused
        assert debugger.get_and_clear_events() == [BreakpointHit(0x206)]

    # @intent:test_case_run_cycles_when_paused 一時停止中はrun_cyclesが何も実行しないこと。
    def test_run_cycles_when_paused(self, setup_debugger):
        debugger, cpu = setup_debugger
        debugger.pause()
        assert debugger.run_cycles(10) == 0
        assert cpu.get_state().pc == 0x200

    # @intent:test_case_toggle_pause toggle_pauseでRunningとPausedが切り替わること。
    def test_toggle_pause(self, setup_debugger):
        debugger, _ = setup_debugger
        debugger.toggle_pause()
        assert debugger.mode == ExecutionMode.PAUSED
        debugger.toggle_pause()
        assert debugger.mode == ExecutionMode.RUNNING

    # @intent:test_case_step_one 一時停止中に1命令だけ実行し、StepCompletedを報告すること。
    def test_step_one(self, setup_debugger):
        debugger, cpu = setup_debugger
        debugger.set_breakpoint(0x200)
        debugger.pause()

        snapshot = debugger.step_one()

        assert snapshot.address == 0x200
        assert cpu.get_state().pc == 0x202
        assert debugger.mode == ExecutionMode.PAUSED
        assert debugger.get_and_clear_events() == [StepCompleted(0x202)]
        assert debugger.get_last_snapshot() is snapshot

    # @intent:test_case_step_one_ignored_when_running 実行中のstep_oneは何もしないこと。
    def test_step_one_ignored_when_running(self, setup_debugger):
        debugger, cpu = setup_debugger
        with patch.object(cpu, 'step') as mock_step:
            assert debugger.step_one() is None
            assert debugger.step_over() is None
            mock_step.assert_not_called()

    # @intent:test_case_step_over_subroutine サブルーチン呼び出しを戻り先まで1ステップとして実行すること。
    def test_step_over_subroutine(self, setup_subroutine):
        debugger, cpu = setup_subroutine

        debugger.step_over()
        assert debugger.mode == ExecutionMode.STEPPING_OVER
        assert cpu.get_state().pc == 0x300

        debugger.run_cycles(100)

        state = cpu.get_state()
        assert state.pc == 0x202
        assert state.sp == 0
        assert state.v[1] == 1
        assert state.v[0] == 0
        assert debugger.mode == ExecutionMode.PAUSED
        assert debugger.get_and_clear_events() == [StepCompleted(0x202)]

    # @intent:test_case_pause_discards_resume_skip 再開直後に一時停止した場合、判定の省略は別のアドレスへ持ち越されないこと。
    def test_pause_discards_resume_skip(self, setup_subroutine):
        debugger, cpu = setup_subroutine
        debugger.set_breakpoint(0x200)
        debugger.set_breakpoint(0x300)

        debugger.resume()
        debugger.pause()
        debugger.step_over()
        debugger.run_cycles(100)

        state = cpu.get_state()
        assert state.pc == 0x300
        assert state.v[1] == 0
        assert debugger.is_paused
        assert debugger.get_and_clear_events() == [BreakpointHit(0x300)]

    # @intent:test_case_resume_skip_consumed_while_waiting キー入力待ちの間に再開しても、待機明けの次の命令のブレークポイントで停止すること。
    def test_resume_skip_consumed_while_waiting(self):
        # LD V0, K / LD V0, 7 / JP 0x204
        debugger, cpu = build_debugger(bytes([0xF0, 0x0A, 0x60, 0x07, 0x12, 0x04]))
        debugger.run_cycles(1)
        assert cpu.get_state().waiting_for_key
        debugger.pause()
        debugger.set_breakpoint(0x200)
        debugger.set_breakpoint(0x202)

        debugger.resume()
        assert debugger.run_cycles(10) == 1
        cpu.machine.handle_key_event(0x5, True)
        debugger.run_cycles(10)

        state = cpu.get_state()
        assert state.pc == 0x202
        assert state.v[0] == 0x5
        assert debugger.is_paused
        assert debugger.get_and_clear_events() == [BreakpointHit(0x202)]

    # @intent:test_case_step_over_recursive 再帰呼び出しを含むサブルーチンも、最初の呼び出しの戻り先まで1ステップで実行すること。
    def test_step_over_recursive(self):
        # 0x200: CALL 0x300 / LD V0, 5
        # 0x300: ADD V2, 1 / SE V2, 3 / CALL 0x300 / RET
        debugger, cpu = build_debugger(
            bytes([0x23, 0x00, 0x60, 0x05, 0x12, 0x04]),
            start_paused=True,
            extra={0x300: bytes([0x72, 0x01, 0x32, 0x03, 0x23, 0x00, 0x00, 0xEE])},
        )

        debugger.step_over()
        debugger.run_cycles(100)

        state = cpu.get_state()
        assert state.pc == 0x202
        assert state.sp == 0
        assert state.v[2] == 3
        assert state.v[0] == 0
        assert debugger.mode == ExecutionMode.PAUSED
        assert debugger.get_and_clear_events() == [StepCompleted(0x202)]

    # @intent:test_case_step_over_plain_instruction 呼び出し以外の命令ではstep_oneと同じ動作をすること。
    def test_step_over_plain_instruction(self, setup_subroutine):
        debugger, cpu = setup_subroutine
        cpu.get_state().pc = 0x202
        debugger.step_over()
        assert cpu.get_state().pc == 0x204
        assert debugger.mode == ExecutionMode.PAUSED
        assert debugger.get_and_clear_events() == [StepCompleted(0x204)]

    # @intent:test_case_step_over_interrupted_by_breakpoint サブルーチン内のブレークポイントで中断されること。
    def test_step_over_interrupted_by_breakpoint(self, setup_subroutine):
        debugger, cpu = setup_subroutine
        debugger.set_breakpoint(0x302)

        debugger.step_over()
        debugger.run_cycles(100)

        assert cpu.get_state().pc == 0x302
        assert debugger.mode == ExecutionMode.PAUSED
        assert debugger.get_and_clear_events() == [BreakpointHit(0x302)]

        # 再開後は戻り先で止まらず走り続ける
        debugger.resume()
        assert debugger.run_cycles(3) == 3
        assert debugger.mode == ExecutionMode.RUNNING

    # @intent:test_case_execution_fault 致命的エラーで一時停止し、アドレス付きの障害が報告されること。
    def test_execution_fault(self):
        debugger, cpu = build_debugger(bytes([0x60, 0x01, 0x51, 0x21]))

        executed = debugger.run_cycles(100)

        assert executed == 1
        assert debugger.is_paused
        assert cpu.get_state().pc == 0x202
        events = debugger.get_and_clear_events()
        assert len(events) == 1
        assert isinstance(events[0], ExecutionFault)
        assert events[0].address == 0x202
        assert events[0].error.kind == ErrorKind.UNKNOWN_OPCODE
        assert debugger.last_fault is events[0].error
        assert events[0].describe().startswith("UnknownOpcode at 0x202")

    # @intent:test_case_fault_on_step 1ステップ実行でも障害は報告され、StepCompletedは出ないこと。
    def test_fault_on_step(self):
        debugger, _ = build_debugger(bytes([0x00, 0xEE]), start_paused=True)
        assert debugger.step_one() is None
        events = debugger.get_and_clear_events()
        assert [type(e) for e in events] == [ExecutionFault]
        assert events[0].error.kind == ErrorKind.STACK_UNDERFLOW

    # @intent:test_case_wait_key_one_poll_per_call キー入力待ち中は1回の呼び出しにつき1回だけ確認すること。
    def test_wait_key_one_poll_per_call(self):
        debugger, cpu = build_debugger(bytes([0xF3, 0x0A, 0x12, 0x02]))
        debugger.set_breakpoint(0x200)
        debugger.resume()

        assert debugger.run_cycles(10) == 1
        assert cpu.get_state().waiting_for_key
        # 待機中はブレークポイント判定を行わない
        assert debugger.run_cycles(10) == 1
        assert debugger.mode == ExecutionMode.RUNNING

        cpu.machine.handle_key_event(0xE, True)
        debugger.run_cycles(1)
        assert cpu.get_state().v[3] == 0xE
        assert cpu.get_state().pc == 0x202

    # @intent:test_case_inspect 全レジスタとIが指すメモリ窓を含むスナップショットを返すこと。
    def test_inspect(self, setup_subroutine):
        debugger, cpu = setup_subroutine
        debugger.step_one()
        cpu.get_state().i = 0x300
        cpu.machine.timers.sound = 4

        snapshot = debugger.inspect()

        assert snapshot.pc == 0x300
        assert snapshot.sp == 1
        assert snapshot.stack == (0x202,)
        assert snapshot.sound_timer == 4
        assert snapshot.memory_start == 0x300
        assert snapshot.memory[:4] == bytes([0x61, 0x01, 0x00, 0xEE])
        assert len(snapshot.memory) == 16
        assert snapshot.mode == ExecutionMode.PAUSED
        assert snapshot.register_map()["PC"] == 0x300

    # @intent:test_case_inspect_is_immutable スナップショットは以後の実行で変化しないこと。
    def test_inspect_is_immutable(self, setup_debugger):
        debugger, _ = setup_debugger
        snapshot = debugger.inspect()
        debugger.run_cycles(3)
        assert snapshot.v[0] == 0
        assert snapshot.pc == 0x200
        with pytest.raises(dataclasses.FrozenInstanceError):
            snapshot.pc = 0x300

    # @intent:test_case_inspect_clipped メモリ窓がアドレス空間の末尾で切り詰められること。
    def test_inspect_clipped(self, setup_debugger):
        debugger, _ = setup_debugger
        snapshot = debugger.inspect(memory_start=0xFF8, memory_length=16)
        assert snapshot.memory_start == 0xFF8
        assert len(snapshot.memory) == 8

    # @intent:test_case_reset リセットでCPUと実行状態が初期化され、ブレークポイントは保持されること。
    def test_reset(self, setup_debugger):
        debugger, cpu = setup_debugger
        debugger.set_breakpoint(0x204)
        debugger.run_cycles(100)

        debugger.reset()

        assert cpu.get_state().pc == 0x200
        assert cpu.get_state().v[0] == 0
        assert debugger.mode == ExecutionMode.RUNNING
        assert debugger.get_and_clear_events() == []
        assert debugger.get_breakpoints() == {0x204: True}
