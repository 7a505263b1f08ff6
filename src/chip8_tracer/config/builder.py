# chip8_tracer/config/builder.py
import logging
import random
from typing import Tuple

from chip8_tracer.arch.chip8.cpu import Chip8Cpu
from chip8_tracer.arch.chip8.state import MEMORY_SIZE, PROGRAM_START
from chip8_tracer.common.errors import ConfigError
from chip8_tracer.transport.bus import Bus, RAM, ROM
from .models import SystemConfig

logger = logging.getLogger(__name__)


# @intent:responsibility システム構成（Config）に基づいて、Bus、Device、CPUを生成・接続します。
class SystemBuilder:
    def build_system(self, config: SystemConfig) -> Tuple[Chip8Cpu, Bus]:
        self._check_memory_map(config)
        bus = Bus()

        for region in config.memory_map:
            size = region.end - region.start + 1
            device = ROM(size) if region.type == "ROM" else RAM(size)
            bus.register_device(region.start, region.end, device)
            logger.debug("Mapped %s %#05x-%#05x (%s)", region.type, region.start, region.end, region.label)

        rng = random.Random(config.machine.seed) if config.machine.seed is not None else None
        cpu = Chip8Cpu(bus, quirks=config.quirks, rng=rng)
        return cpu, bus

    # @intent:responsibility メモリマップが0番地から隙間なく続き、プログラム領域を含むことを検証します。
    # @intent:rationale フォントセットは0番地に、プログラムは0x200からプログラム領域の終端まで書き込まれる。
    def _check_memory_map(self, config: SystemConfig) -> None:
        regions = sorted(config.memory_map, key=lambda r: r.start)
        if not regions or regions[0].start != 0:
            raise ConfigError("Memory map must start at address 0x000.")
        for previous, current in zip(regions, regions[1:]):
            if current.start != previous.end + 1:
                raise ConfigError(
                    f"Memory regions must be contiguous: {previous.start:#05x}-{previous.end:#05x} "
                    f"is followed by {current.start:#05x}-{current.end:#05x}"
                )
        if regions[-1].end < PROGRAM_START:
            raise ConfigError(f"Memory map must cover the program entry {PROGRAM_START:#05x}.")
        if regions[-1].end >= MEMORY_SIZE:
            raise ConfigError(f"Memory map must end within the {MEMORY_SIZE}-byte address space.")
