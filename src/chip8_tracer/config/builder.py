import logging
from dataclasses import dataclass
from typing import Optional

from chip8_tracer.transport.bus import Bus
from chip8_tracer.arch.chip8.machine import Chip8Machine, Quirks
from chip8_tracer.arch.chip8.cpu import Chip8Cpu
from chip8_tracer.arch.chip8.timers import TimerClock
from chip8_tracer.debugger.debugger import Debugger
from chip8_tracer.debugger.loop import MachineLoop
from chip8_tracer.loader.loader import ProgramLoader
from .models import EmulatorConfig

logger = logging.getLogger(__name__)


# @intent:responsibility 組み立て済みのシステム一式を保持します。
@dataclass
class Chip8System:
    config: EmulatorConfig
    machine: Chip8Machine
    cpu: Chip8Cpu
    debugger: Debugger
    loop: MachineLoop

    @property
    def bus(self) -> Bus:
        return self.machine.bus


# @intent:responsibility システム構成（Config）に基づいて、マシン、CPU、デバッガ、駆動ループを生成・接続し、初期状態を適用します。
class SystemBuilder:
    def build_system(self, config: EmulatorConfig, program: Optional[bytes] = None) -> Chip8System:
        """
        programが省略され、config.programにパスが設定されている場合はそのファイルをロードします。
        """
        quirks = Quirks(
            shift_uses_vy=config.quirks.shift_uses_vy,
            load_store_increments_i=config.quirks.load_store_increments_i,
        )
        machine = Chip8Machine(quirks=quirks, seed=config.random_seed)

        if program is None and config.program:
            program = ProgramLoader().read_file(config.program)
        if program is not None:
            machine.load_program(program)

        cpu = Chip8Cpu(machine)
        debugger = Debugger(cpu, start_paused=config.start_paused)
        for address in config.breakpoints:
            debugger.set_breakpoint(address)

        loop = MachineLoop(debugger, TimerClock(machine.timers), config.clock_frequency)
        logger.info("Built system: %.0f Hz, %s, %d breakpoint(s)",
                    config.clock_frequency, debugger.mode.value, len(config.breakpoints))
        return Chip8System(config, machine, cpu, debugger, loop)
