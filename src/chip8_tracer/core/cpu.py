# chip8_tracer/core/cpu.py
"""
Core Layer (命令サイクル)

フェッチ、デコード、実行の順序と、失敗時のロールバック、Snapshotの生成を1箇所に定めます。
命令の意味はアーキテクチャ層（arch/chip8）が与え、このモジュールは手順だけを持ちます。
"""
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from chip8_tracer.transport.bus import Bus
from chip8_tracer.core.snapshot import Snapshot, Instruction, Metadata
from chip8_tracer.core.state import CpuState
from chip8_tracer.common.errors import Chip8Error
from chip8_tracer.common.types import RegisterLayoutInfo, RegisterMap


# @intent:responsibility 命令サイクルの骨格と、UIが参照するCPU情報のインターフェースを定義します。
class AbstractCpu(ABC):
    def __init__(self, bus: Bus):
        self._bus = bus
        # 状態は get_state() を通して公開し、直接の差し替えはreset()だけが行う
        self._state: CpuState = self._create_initial_state()
        self._cycle_count = 0

    @abstractmethod
    def _create_initial_state(self) -> CpuState:
        pass

    def reset(self) -> None:
        self._state = self._create_initial_state()
        self._cycle_count = 0

    def get_state(self) -> CpuState:
        return self._state

    @property
    def bus(self) -> Bus:
        return self._bus

    # 完了したサイクル数（失敗したサイクルは数えない）
    @property
    def cycle_count(self) -> int:
        return self._cycle_count

    # @intent:responsibility PCの位置からオペコードを読み出します。PCは変更しません。
    @abstractmethod
    def _fetch(self) -> int:
        pass

    # @intent:post-condition 未定義のオペコードはChip8Errorの派生例外で報告します。
    @abstractmethod
    def _decode(self, opcode: int, address: int) -> Instruction:
        pass

    @abstractmethod
    def _execute(self, instruction: Instruction) -> None:
        pass

    # @intent:responsibility 1サイクルを実行し、実行後の状態をSnapshotとして返します。
    # @intent:post-condition Chip8Errorで中断した場合、PCはサイクル開始時の値に戻り、例外にはその命令のアドレスが入ります。
    def step(self) -> Snapshot:
        """
        手順: バスログの破棄 -> 待機フック -> フェッチ -> デコード -> PC前進 -> 実行 -> Snapshot。
        実行関数から見たPCは常に次の命令を指しています。
        """
        self._bus.get_and_clear_activity_log()
        initial_pc = self._state.pc

        waiting = self._handle_halt(initial_pc)
        if waiting is not None:
            return waiting

        try:
            opcode = self._fetch()
            instruction = self._decode(opcode, initial_pc)
            self._update_pc(instruction)
            self._execute(instruction)
        except Chip8Error as e:
            self._state.pc = initial_pc
            if e.address is None:
                e.address = initial_pc
            raise

        return self._create_snapshot(initial_pc, instruction)

    # @intent:return 命令を実行せずにサイクルを終える場合はそのSnapshot、通常はNone。
    def _handle_halt(self, current_pc: int) -> Optional[Snapshot]:
        return None

    def _update_pc(self, instruction: Instruction) -> None:
        self._state.pc = (self._state.pc + instruction.LENGTH) & 0xFFFF

    def _create_snapshot(self, initial_pc: int, instruction: Optional[Instruction]) -> Snapshot:
        self._cycle_count += 1
        trace_text = f"{initial_pc:#05x}: {instruction.text}" if instruction is not None else None
        return Snapshot(
            address=initial_pc,
            state=self._state.copy(),
            instruction=instruction,
            metadata=Metadata(cycle_count=self._cycle_count, trace_text=trace_text),
            bus_activity=self._bus.get_and_clear_activity_log(),
        )

    # @intent:responsibility レジスタ名から現在値を引ける辞書を返します。UIはCPUの種類を知らずに表示できます。
    @abstractmethod
    def get_register_map(self) -> RegisterMap:
        pass

    # @intent:responsibility レジスタの表示グループとビット幅を返します。
    @abstractmethod
    def get_register_layout(self) -> List[RegisterLayoutInfo]:
        pass

    # @intent:return (address, hex_bytes, mnemonic) のリスト。
    @abstractmethod
    def disassemble(self, start_addr: int, length: int) -> List[Tuple[int, str, str]]:
        pass
