# src/chip8_tracer/cli.py
"""
コマンドラインエントリポイント。

ROM（またはアセンブリソース）を読み込み、GUIデバッガを起動するか、
--headless 指定時はフレームループを端末上で実行します。
"""
import argparse
import logging
import sys
from dataclasses import replace
from typing import List, Optional

from chip8_tracer.arch.chip8.state import PROGRAM_START
from chip8_tracer.common.errors import Chip8Error, ConfigError
from chip8_tracer.config.builder import SystemBuilder
from chip8_tracer.config.loader import ConfigLoader, configure_logging
from chip8_tracer.config.models import SystemConfig
from chip8_tracer.debugger.debugger import Debugger, StopKind
from chip8_tracer.driver.runner import FrameDriver
from chip8_tracer.loader.loader import AssemblyLoader, RomLoader

logger = logging.getLogger(__name__)


def _hex_int(text: str) -> int:
    try:
        return int(text, 0) if text.lower().startswith("0x") else int(text, 16)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid address: {text!r}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chip8-tracer", description="CHIP-8 execution tracer and debugger")
    parser.add_argument("rom", nargs="?", help="Raw CHIP-8 program image (.ch8)")
    parser.add_argument("--asm", type=str, help="Assemble and load a source file instead of a ROM image")
    parser.add_argument("--config", type=str, help="System configuration YAML")
    parser.add_argument("--headless", action="store_true", help="Run without the GUI")
    parser.add_argument("--frames", type=int, default=None, help="Stop after this many frames (headless)")
    parser.add_argument("--cycles-per-tick", type=int, default=None, help="Instructions executed per timer tick")
    parser.add_argument("--tick-rate", type=int, default=None, help="Timer ticks per second")
    parser.add_argument("--seed", type=int, default=None, help="Seed for the RND instruction")
    parser.add_argument(
        "--break", dest="breakpoints", type=_hex_int, action="append", default=[],
        help="Breakpoint address in hex (repeatable)",
    )
    parser.add_argument("--fast", action="store_true", help="Do not pace frames to the tick rate (headless)")
    parser.add_argument("--disassemble", action="store_true", help="Print the loaded program listing and exit")
    parser.add_argument(
        "--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level when the configuration has no logging section",
    )
    return parser


# @intent:responsibility 設定ファイルとコマンドライン引数を合成してSystemConfigを作ります。
def resolve_config(args: argparse.Namespace) -> SystemConfig:
    config = ConfigLoader().load_from_file(args.config) if args.config else SystemConfig()
    machine = config.machine
    if args.cycles_per_tick is not None:
        machine = replace(machine, cycles_per_tick=args.cycles_per_tick)
    if args.tick_rate is not None:
        machine = replace(machine, tick_rate=args.tick_rate)
    if args.seed is not None:
        machine = replace(machine, seed=args.seed)
    if machine.cycles_per_tick <= 0 or machine.tick_rate <= 0:
        raise ConfigError("cycles per tick and tick rate must be positive.")
    return replace(config, machine=machine, breakpoints=list(config.breakpoints) + list(args.breakpoints))


def _print_listing(cpu, end: int) -> None:
    for address, hex_dump, text in cpu.disassemble(PROGRAM_START, max(end - PROGRAM_START, 2)):
        print(f"{address:04X}  {hex_dump:<5}  {text}")


# @intent:responsibility GUIなしでフレームループを実行し、終了コードを返します。
def run_headless(args: argparse.Namespace, config: SystemConfig) -> int:
    cpu, _ = SystemBuilder().build_system(config)
    if args.asm:
        AssemblyLoader().load_assembly(args.asm, cpu)
    else:
        RomLoader().load(args.rom, cpu)
    program_end = PROGRAM_START + len(cpu.program)

    if args.disassemble:
        _print_listing(cpu, program_end)
        return 0

    debugger = Debugger(cpu)
    for address in config.breakpoints:
        debugger.add_breakpoint(address)
    driver = FrameDriver(
        cpu, debugger,
        cycles_per_tick=config.machine.cycles_per_tick,
        tick_rate=config.machine.tick_rate,
    )
    result = driver.run(max_frames=args.frames, realtime=not args.fast)

    state = cpu.get_state()
    if result.error is not None:
        print(f"error: {result.error.kind}: {result.error}", file=sys.stderr)
        return 1
    if result.stop_reason is not None and result.stop_reason.kind != StopKind.STEP_LIMIT:
        print(f"stopped: {result.stop_reason}")
    print(f"frames={driver.frame_count} pc={state.pc:#05x} i={state.i:#05x} "
          f"v={' '.join(f'{v:02X}' for v in state.v)}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if (args.headless or args.disassemble) and not (args.rom or args.asm):
        parser.error("a ROM image or --asm source is required in headless mode")

    try:
        config = resolve_config(args)
        configure_logging(config, args.log_level)
    except (OSError, ConfigError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    if not (args.headless or args.disassemble):
        from chip8_tracer.ui.app import run_app
        return run_app(config, rom_path=args.rom, asm_path=args.asm)

    try:
        return run_headless(args, config)
    except (OSError, ValueError, Chip8Error) as e:
        logger.error("Failed: %s", e)
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
