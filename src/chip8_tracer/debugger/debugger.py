# chip8_tracer/debugger/debugger.py
"""
デバッガモジュール。

コアエンジンの実行を制御し、ユーザーが指定した条件（ブレークポイント）で
実行を中断させる責務を負います。

実行モードは Running / Paused / SteppingOne / SteppingOver の状態機械で、
遷移はこのクラスの操作を通してのみ起こります。ブレークポイントの判定は
各フェッチの直前に同期的に行われ、有効なブレークポイントがあるアドレスの命令は
一時停止するまで実行されません。
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

from chip8_tracer.common.errors import Chip8Error, InvalidBreakpointError
from chip8_tracer.common.types import RegisterMap
from chip8_tracer.core.snapshot import Snapshot
from chip8_tracer.arch.chip8.cpu import Chip8Cpu
from chip8_tracer.arch.chip8.state import MEMORY_SIZE, REGISTER_COUNT, register_name
from chip8_tracer.arch.chip8.instructions import decode_at
from chip8_tracer.arch.chip8.instructions.control import Call, SysCall

logger = logging.getLogger(__name__)

DEFAULT_MEMORY_WINDOW = 16


# @intent:responsibility デバッガの実行モードを定義します。
class ExecutionMode(Enum):
    RUNNING = "Running"
    PAUSED = "Paused"
    STEPPING_ONE = "SteppingOne"
    STEPPING_OVER = "SteppingOver"


# --- デバッガが報告するイベント ---

@dataclass(frozen=True)
class BreakpointHit:
    address: int


@dataclass(frozen=True)
class StepCompleted:
    address: int  # ステップ完了後のPC


@dataclass(frozen=True)
class ExecutionFault:
    error: Chip8Error

    @property
    def address(self) -> Optional[int]:
        return self.error.address

    def describe(self) -> str:
        return self.error.describe()


DebugEvent = Union[BreakpointHit, StepCompleted, ExecutionFault]


# @intent:responsibility ある時点のマシン状態を不変に記録し、外部UIへ提供します。
@dataclass(frozen=True)
class InspectionSnapshot:
    """
    レジスタ(V0-VF)、PC、I、SP、積まれている戻りアドレス、両タイマー、
    および要求されたメモリ窓の内容。以後の実行で変化しません。
    """
    pc: int
    i: int
    sp: int
    v: Tuple[int, ...]
    stack: Tuple[int, ...]
    delay_timer: int
    sound_timer: int
    memory_start: int
    memory: bytes
    mode: ExecutionMode
    waiting_for_key: bool = False

    # @intent:responsibility 逆アセンブラと同じレジスタ名で値を引けるようにします。
    def register_map(self) -> RegisterMap:
        registers = {register_name(i): value for i, value in enumerate(self.v)}
        registers.update({
            "I": self.i, "PC": self.pc, "SP": self.sp,
            "DT": self.delay_timer, "ST": self.sound_timer,
        })
        return registers


# @intent:responsibility コアエンジンの実行制御とブレークポイント管理を行います。
class Debugger:
    """
    CPUの実行を制御し、ブレークポイントの管理を行うクラス。
    連続実行は外部の駆動ループが run_cycles() を呼ぶことで進みます。
    """
    def __init__(self, cpu: Chip8Cpu, start_paused: bool = False):
        self._cpu = cpu
        self._start_paused = start_paused
        self._mode = ExecutionMode.PAUSED if start_paused else ExecutionMode.RUNNING
        # アドレス -> 有効フラグ
        self._breakpoints: Dict[int, bool] = {}
        self._events: List[DebugEvent] = []
        # resume() 直後に1回だけ判定を省くアドレス
        self._skip_breakpoint_at: Optional[int] = None
        # ステップオーバーの終了条件 (戻り先PC, 呼び出し時のSP)
        self._step_over_target: Optional[Tuple[int, int]] = None
        self._last_snapshot: Optional[Snapshot] = None
        self.last_fault: Optional[Chip8Error] = None

    @property
    def cpu(self) -> Chip8Cpu:
        return self._cpu

    @property
    def mode(self) -> ExecutionMode:
        return self._mode

    @property
    def is_paused(self) -> bool:
        return self._mode == ExecutionMode.PAUSED

    def get_last_snapshot(self) -> Optional[Snapshot]:
        return self._last_snapshot

    def _set_mode(self, mode: ExecutionMode) -> None:
        if mode != self._mode:
            logger.info("Mode %s -> %s", self._mode.value, mode.value)
        self._mode = mode

    def _emit(self, event: DebugEvent) -> None:
        self._events.append(event)

    # @intent:responsibility 記録されたイベントを取得し、クリアします。
    def get_and_clear_events(self) -> List[DebugEvent]:
        events = self._events
        self._events = []
        return events

    # --- ブレークポイント管理 ---

    # @intent:pre-condition addressは[0, 4095]の範囲内である必要があります。範囲外の場合、集合は変更されません。
    def set_breakpoint(self, address: int, enabled: bool = True) -> None:
        if not isinstance(address, int) or not 0 <= address < MEMORY_SIZE:
            logger.warning("Rejected breakpoint %r: outside 0x000-0xFFF", address)
            raise InvalidBreakpointError(f"Breakpoint address {address!r} outside 0x000-0xFFF",
                                         context={"operation": "set_breakpoint"})
        self._breakpoints[address] = enabled

    def clear_breakpoint(self, address: int) -> None:
        self._breakpoints.pop(address, None)

    def clear_all_breakpoints(self) -> None:
        self._breakpoints.clear()

    def enable_breakpoint(self, address: int, enabled: bool = True) -> None:
        if address in self._breakpoints:
            self._breakpoints[address] = enabled

    def disable_breakpoint(self, address: int) -> None:
        self.enable_breakpoint(address, False)

    def get_breakpoints(self) -> Dict[int, bool]:
        return dict(self._breakpoints)

    def _is_breakpoint(self, address: int) -> bool:
        return self._breakpoints.get(address, False)

    # --- 実行モード遷移 ---

    def pause(self) -> None:
        self._step_over_target = None
        self._skip_breakpoint_at = None
        self._set_mode(ExecutionMode.PAUSED)

    # @intent:rationale 現在のPCにブレークポイントがある状態から再開した場合、そのアドレスの命令だけは1回判定を省いて実行します。
    #                  省略は次に実行されるサイクルで消費され、一時停止やステップ実行でも破棄されます。
    def resume(self) -> None:
        self._step_over_target = None
        self.last_fault = None
        pc = self._cpu.get_state().pc
        self._skip_breakpoint_at = pc if self._is_breakpoint(pc) else None
        self._set_mode(ExecutionMode.RUNNING)

    def toggle_pause(self) -> None:
        if self.is_paused:
            self.resume()
        else:
            self.pause()

    # @intent:responsibility CPUとデバッガの実行状態を初期化します。ブレークポイントは保持されます。
    def reset(self) -> None:
        self._cpu.reset()
        self._events.clear()
        self._step_over_target = None
        self._skip_breakpoint_at = None
        self._last_snapshot = None
        self.last_fault = None
        self._set_mode(ExecutionMode.PAUSED if self._start_paused else ExecutionMode.RUNNING)

    # @intent:responsibility 1サイクルを実行します。致命的エラーはExecutionFaultに変換し、一時停止します。
    def _execute_cycle(self) -> Optional[Snapshot]:
        # 再開時の判定省略は、成否にかかわらず最初のサイクルで消費する
        self._skip_breakpoint_at = None
        try:
            snapshot = self._cpu.step()
        except Chip8Error as e:
            self.last_fault = e
            self._step_over_target = None
            self._set_mode(ExecutionMode.PAUSED)
            self._emit(ExecutionFault(e))
            logger.error("Execution halted: %s", e.describe())
            return None
        self._last_snapshot = snapshot
        return snapshot

    # @intent:responsibility 一時停止中に、ブレークポイントを無視して1命令サイクルだけ実行します。
    # @intent:return 実行結果のSnapshot。一時停止中でない場合や致命的エラーの場合はNone。
    def step_one(self) -> Optional[Snapshot]:
        if not self.is_paused:
            return None
        self._set_mode(ExecutionMode.STEPPING_ONE)
        snapshot = self._execute_cycle()
        if snapshot is not None:
            self._set_mode(ExecutionMode.PAUSED)
            self._emit(StepCompleted(self._cpu.get_state().pc))
        return snapshot

    # @intent:responsibility 現在の命令がサブルーチン呼び出しなら、戻ってくるまでを1ステップとして実行します。
    # @intent:rationale 呼び出し時のSPを記録し、PCが呼び出しの次の命令に戻り、かつSPが記録値以下になった時点で完了とします。
    #                  呼び出し以外の命令ではstep_oneと同じです。
    def step_over(self) -> Optional[Snapshot]:
        if not self.is_paused:
            return None
        state = self._cpu.get_state()
        if state.waiting_for_key:
            return self.step_one()
        try:
            instruction = decode_at(self._cpu.bus, state.pc)
        except Chip8Error:
            # デコードできない命令はstep_oneで実行し、障害として報告させる
            return self.step_one()
        if not isinstance(instruction, (Call, SysCall)):
            return self.step_one()

        return_address = (state.pc + instruction.LENGTH) & 0xFFFF
        recorded_sp = state.sp
        self._set_mode(ExecutionMode.STEPPING_OVER)
        snapshot = self._execute_cycle()
        if snapshot is not None:
            self._step_over_target = (return_address, recorded_sp)
        return snapshot

    def _step_over_finished(self) -> bool:
        return_address, recorded_sp = self._step_over_target
        state = self._cpu.get_state()
        return state.pc == return_address and state.sp <= recorded_sp

    # @intent:responsibility Running/SteppingOverモードで、最大budgetサイクルを実行します。
    # @intent:post-condition 各フェッチの直前にブレークポイントを判定し、ヒットした命令は実行しません。
    #                        キー入力待ちに入った場合は、待機確認を駆動ループの1回の更新につき1回にするため処理を打ち切ります。
    # @intent:return 実行したサイクル数。
    def run_cycles(self, budget: int) -> int:
        executed = 0
        while executed < budget and self._mode in (ExecutionMode.RUNNING, ExecutionMode.STEPPING_OVER):
            state = self._cpu.get_state()
            if not state.waiting_for_key:
                if state.pc != self._skip_breakpoint_at and self._is_breakpoint(state.pc):
                    self._step_over_target = None
                    self._set_mode(ExecutionMode.PAUSED)
                    self._emit(BreakpointHit(state.pc))
                    logger.info("Breakpoint hit at PC: %#05x", state.pc)
                    break

            if self._execute_cycle() is None:
                break
            executed += 1

            if self._mode == ExecutionMode.STEPPING_OVER and self._step_over_finished():
                self._step_over_target = None
                self._set_mode(ExecutionMode.PAUSED)
                self._emit(StepCompleted(self._cpu.get_state().pc))
                break
            if self._cpu.get_state().waiting_for_key:
                break
        return executed

    # --- 状態の観測 ---

    # @intent:responsibility 全レジスタ、スタック、タイマー、メモリ窓の不変スナップショットを返します。
    # @intent:rationale memory_start省略時はIが指す領域を表示します。窓はアドレス空間の範囲に切り詰めます。
    def inspect(self, memory_start: Optional[int] = None,
                memory_length: int = DEFAULT_MEMORY_WINDOW) -> InspectionSnapshot:
        machine = self._cpu.machine
        state = self._cpu.get_state()
        start = state.i if memory_start is None else memory_start
        start = max(0, min(start, MEMORY_SIZE))
        length = max(0, min(memory_length, MEMORY_SIZE - start))
        return InspectionSnapshot(
            pc=state.pc,
            i=state.i,
            sp=state.sp,
            v=tuple(state.v[:REGISTER_COUNT]),
            stack=tuple(state.active_stack()),
            delay_timer=machine.timers.delay,
            sound_timer=machine.timers.sound,
            memory_start=start,
            memory=self._cpu.bus.dump(start, length),
            mode=self._mode,
            waiting_for_key=state.waiting_for_key,
        )
