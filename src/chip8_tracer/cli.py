# src/chip8_tracer/cli.py
"""
コマンドラインのエントリポイント (chip8-tracer)。

  chip8-tracer run ROM [--clock HZ] [--debug] [--config FILE]
  chip8-tracer disasm ROM [OUTPUT] [--base ADDR] [--follow-jumps]
  chip8-tracer exec ROM [--seconds S] [--clock HZ] [--break ADDR ...]
"""
import argparse
import logging
import sys
from typing import List, Optional, TextIO

from chip8_tracer.common.errors import Chip8Error
from chip8_tracer.config.models import EmulatorConfig
from chip8_tracer.config.loader import ConfigLoader
from chip8_tracer.config.builder import SystemBuilder, Chip8System
from chip8_tracer.debugger.debugger import InspectionSnapshot
from chip8_tracer.loader.loader import ProgramLoader
from chip8_tracer.arch.chip8.state import PROGRAM_START
from chip8_tracer.arch.chip8.disassembler import Disassembler, trace_disassemble, format_line

logger = logging.getLogger(__name__)

SIMULATION_STEP = 1.0 / 60


def _parse_address(text: str) -> int:
    try:
        return int(text, 0)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid address: {text!r}")


def _positive_float(text: str) -> float:
    value = float(text)
    if value <= 0:
        raise argparse.ArgumentTypeError(f"must be positive: {text}")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chip8-tracer", description="CHIP-8 emulator, debugger and disassembler")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Log every executed instruction")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Only log errors")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Run a ROM in the graphical debugger")
    run.add_argument("rom")
    run.add_argument("--clock", type=_positive_float, help="Instructions per second")
    run.add_argument("--debug", action="store_true", help="Start paused")
    run.add_argument("--config", help="YAML configuration file")

    disasm = subparsers.add_parser("disasm", help="Disassemble a ROM")
    disasm.add_argument("rom")
    disasm.add_argument("output", nargs="?", help="Output file (default: stdout)")
    disasm.add_argument("--base", type=_parse_address, default=PROGRAM_START, help="Load address (default 0x200)")
    disasm.add_argument("--follow-jumps", action="store_true", help="Follow unconditional jumps")

    execute = subparsers.add_parser("exec", help="Run a ROM headless on simulated time")
    execute.add_argument("rom")
    execute.add_argument("--seconds", type=_positive_float, default=1.0)
    execute.add_argument("--clock", type=_positive_float, help="Instructions per second")
    execute.add_argument("--config", help="YAML configuration file")
    execute.add_argument("--break", dest="breakpoints", type=_parse_address, action="append", default=[],
                         metavar="ADDR", help="Stop before executing ADDR (repeatable)")
    return parser


def _load_config(args: argparse.Namespace) -> EmulatorConfig:
    config = ConfigLoader().load_from_file(args.config) if getattr(args, "config", None) else EmulatorConfig()
    if getattr(args, "clock", None):
        config.clock_frequency = args.clock
    return config


def _build(args: argparse.Namespace, config: EmulatorConfig) -> Chip8System:
    program = ProgramLoader().read_file(args.rom)
    return SystemBuilder().build_system(config, program=program)


# @intent:responsibility インスペクションの内容を人が読めるテキストに整形します。
def format_inspection(snapshot: InspectionSnapshot) -> List[str]:
    registers = " ".join(f"V{i:X}={value:02X}" for i, value in enumerate(snapshot.v))
    stack = " ".join(f"{address:03X}" for address in snapshot.stack) or "-"
    return [
        f"PC={snapshot.pc:03X} I={snapshot.i:03X} SP={snapshot.sp} DT={snapshot.delay_timer} ST={snapshot.sound_timer}",
        registers,
        f"stack: {stack}",
        f"mode: {snapshot.mode.value}",
    ]


def cmd_run(args: argparse.Namespace) -> int:
    from chip8_tracer.ui.app import run_app

    config = _load_config(args)
    if args.debug:
        config.start_paused = True
    system = _build(args, config)
    logger.info("Running %s at %.0f Hz", args.rom, config.clock_frequency)
    return run_app(system)


def cmd_disasm(args: argparse.Namespace, stdout: TextIO) -> int:
    data = ProgramLoader().read_file(args.rom)
    if args.follow_jumps:
        entries = trace_disassemble(data, base=args.base)
    else:
        entries = Disassembler(data, base=args.base)
    lines = [format_line(entry) for entry in entries]
    if args.output:
        with open(args.output, 'w') as f:
            f.write("\n".join(lines) + "\n")
    else:
        for line in lines:
            print(line, file=stdout)
    return 0


# @intent:responsibility シミュレーション時間で実行し、停止理由と最終状態を出力します。
def cmd_exec(args: argparse.Namespace, stdout: TextIO) -> int:
    config = _load_config(args)
    config.start_paused = False
    system = _build(args, config)
    for address in args.breakpoints:
        system.debugger.set_breakpoint(address)

    frames = max(1, round(args.seconds / SIMULATION_STEP))
    for _ in range(frames):
        if system.debugger.is_paused:
            break
        system.loop.advance(SIMULATION_STEP)

    fault = system.debugger.last_fault
    if fault is not None:
        print(f"Halted: {fault.describe()}", file=stdout)
    elif system.debugger.is_paused:
        print(f"Breakpoint hit at {system.cpu.get_state().pc:#05x}", file=stdout)
    print(f"cycles: {system.loop.cycles}", file=stdout)
    for line in format_inspection(system.debugger.inspect(memory_length=config.memory_window)):
        print(line, file=stdout)
    return 1 if fault is not None else 0


def main(argv: Optional[List[str]] = None, stdout: TextIO = sys.stdout) -> int:
    args = build_parser().parse_args(argv)
    level = logging.DEBUG if args.verbose else logging.ERROR if args.quiet else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    try:
        if args.command == "run":
            return cmd_run(args)
        if args.command == "disasm":
            return cmd_disasm(args, stdout)
        return cmd_exec(args, stdout)
    except (OSError, ValueError, Chip8Error) as e:
        logger.error("%s", e.describe() if isinstance(e, Chip8Error) else e)
        return 2


if __name__ == '__main__':
    sys.exit(main())
