# tests/core/test_snapshot.py
"""
chip8_tracer.core.snapshotモジュールの単体テスト。
"""
import dataclasses

import pytest

from chip8_tracer.core.state import CpuState
from chip8_tracer.core.snapshot import Instruction, Metadata, Snapshot
from chip8_tracer.transport.bus import BusAccess, BusAccessType

# @intent:test_suite 命令の表示テキストと、不変スナップショットデータ構造の検証。


@dataclasses.dataclass(frozen=True)
class FakeInstruction(Instruction):
    target: int = 0

    MNEMONIC = "FAKE"

    def operands(self):
        return [f"{self.target:03X}"]


class TestInstruction:
    # @intent:test_case_text ニーモニックとオペランドが結合されること。
    def test_text(self):
        instruction = FakeInstruction(0x1ABC, 0xABC)
        assert instruction.mnemonic == "FAKE"
        assert instruction.text == "FAKE ABC"
        assert instruction.opcode_hex == "1ABC"
        assert instruction.LENGTH == 2

    # @intent:test_case_no_operands オペランドがない場合はニーモニックのみ。
    def test_no_operands(self):
        assert Instruction(0x0000).text == "???"

    # @intent:test_case_frozen 命令は不変であること。
    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            FakeInstruction(0x1000).opcode = 1


class TestSnapshot:
    # @intent:test_case_init Snapshotが正しく初期化され、不変であること。
    def test_init_and_frozen(self):
        state = CpuState(pc=0x202, sp=0)
        access = BusAccess(0x200, 0x60, BusAccessType.READ)
        snapshot = Snapshot(
            address=0x200,
            state=state,
            instruction=FakeInstruction(0x6000),
            metadata=Metadata(cycle_count=1, trace_text="0x200: FAKE 000"),
            bus_activity=[access],
        )
        assert snapshot.address == 0x200
        assert snapshot.metadata.cycle_count == 1
        assert snapshot.bus_activity == [access]
        with pytest.raises(dataclasses.FrozenInstanceError):
            snapshot.address = 0

    # @intent:test_case_default_activity bus_activityの既定値は空リスト。
    def test_default_activity(self):
        snapshot = Snapshot(0x200, CpuState(), None, Metadata(0))
        assert snapshot.bus_activity == []
        assert snapshot.metadata.trace_text is None

    # @intent:test_case_state_copy CpuStateのコピーは独立していること。
    def test_state_copy(self):
        state = CpuState(pc=0x200)
        copied = state.copy()
        state.pc = 0x300
        assert copied.pc == 0x200
