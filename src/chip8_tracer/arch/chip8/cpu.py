# src/chip8_tracer/arch/chip8/cpu.py
"""
CHIP-8 CPUエミュレーションの中心モジュール。

このモジュールはCHIP-8 CPUの具体的な実装を提供し、
AbstractCpuインターフェースを実装します。
"""
import logging
from typing import List, Optional, Tuple

from chip8_tracer.core.cpu import AbstractCpu
from chip8_tracer.core.snapshot import Instruction, Snapshot
from chip8_tracer.common.types import RegisterLayoutInfo, RegisterInfo, RegisterMap
from chip8_tracer.arch.chip8.machine import Chip8Machine
from chip8_tracer.arch.chip8.state import Chip8CpuState, MEMORY_SIZE, REGISTER_COUNT, register_name
from chip8_tracer.arch.chip8.instructions import decode_opcode, execute_instruction
from chip8_tracer.arch.chip8.disassembler import Disassembler

logger = logging.getLogger(__name__)


# @intent:responsibility CHIP-8 CPUの具体的なエミュレーションロジックを提供します。
class Chip8Cpu(AbstractCpu):
    """
    CHIP-8 CPUをエミュレートするクラス。
    状態はChip8Machineが所有し、CPUはその参照を通して命令を実行します。
    """
    def __init__(self, machine: Chip8Machine):
        self.machine = machine
        super().__init__(machine.bus)

    # @intent:rationale レジスタファイルはマシンの状態集約の一部であるため、新規に生成せずマシンのものを共有します。
    def _create_initial_state(self) -> Chip8CpuState:
        return self.machine.state

    def reset(self) -> None:
        self.machine.reset()
        super().reset()

    def get_state(self) -> Chip8CpuState:
        return self._state

    # @intent:responsibility 現在のPCからビッグエンディアンの2バイトをフェッチします。
    def _fetch(self) -> int:
        pc = self._state.pc
        return (self._bus.read(pc) << 8) | self._bus.read(pc + 1)

    def _decode(self, opcode: int, address: int) -> Instruction:
        return decode_opcode(opcode, address)

    def _execute(self, instruction: Instruction) -> None:
        execute_instruction(instruction, self.machine)

    # @intent:responsibility FX0Aによるキー入力待ちの間、命令を実行せずにキーダウン遷移を1回だけ確認します。
    # @intent:post-condition 遷移が観測された場合はVXに格納し、PCを次の命令へ進めます。
    def _handle_halt(self, current_pc: int) -> Optional[Snapshot]:
        state = self._state
        if not state.waiting_for_key:
            return None
        key = self.machine.keypad.take_key_down()
        if key is not None:
            state.v[state.key_wait_register] = key
            state.key_wait_register = None
            state.pc = (state.pc + 2) & 0xFFFF
            logger.debug("[%#05x] key %X received", current_pc, key)
        return self._create_snapshot(current_pc, None)

    def _create_snapshot(self, initial_pc: int, instruction: Optional[Instruction]) -> Snapshot:
        if instruction is not None:
            logger.debug("[%#05x] %s", initial_pc, instruction.text)
        return super()._create_snapshot(initial_pc, instruction)

    def get_register_map(self) -> RegisterMap:
        s = self._state
        registers = {register_name(i): s.v[i] for i in range(REGISTER_COUNT)}
        registers.update({
            "I": s.i, "PC": s.pc, "SP": s.sp,
            "DT": self.machine.timers.delay, "ST": self.machine.timers.sound,
        })
        return registers

    def get_register_layout(self) -> List[RegisterLayoutInfo]:
        return [
            RegisterLayoutInfo("General Registers", [
                RegisterInfo(register_name(i), 8) for i in range(REGISTER_COUNT)
            ]),
            RegisterLayoutInfo("Index & Control", [
                RegisterInfo("I", 16), RegisterInfo("PC", 16), RegisterInfo("SP", 8)
            ]),
            RegisterLayoutInfo("Timers", [
                RegisterInfo("DT", 8), RegisterInfo("ST", 8)
            ]),
        ]

    # @intent:responsibility メモリ上の範囲を逆アセンブルします（バスログは残しません）。
    def disassemble(self, start_addr: int, length: int) -> List[Tuple[int, str, str]]:
        start = max(0, start_addr)
        end = min(MEMORY_SIZE, start_addr + length)
        if end <= start:
            return []
        data = self._bus.dump(start, end - start)
        return [(e.address, e.hex_bytes, e.text) for e in Disassembler(data, base=start)]
