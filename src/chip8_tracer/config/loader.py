# chip8_tracer/config/loader.py
"""
YAML設定ファイルの読み込み。
"""
import logging.config
from typing import Any, Dict, List, Optional

import yaml

from chip8_tracer.arch.chip8.instructions.base import Quirks
from chip8_tracer.arch.chip8.keypad import KEY_COUNT
from chip8_tracer.common.errors import ConfigError
from .models import MachineConfig, MemoryRegion, SystemConfig, default_memory_map, DEFAULT_KEYMAP

_SECTIONS = {"machine", "quirks", "memory_map", "keymap", "breakpoints", "logging"}


class ConfigLoader:
    def load_from_file(self, path: str) -> SystemConfig:
        try:
            with open(path, 'r', encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e
        return self.parse(data or {})

    # @intent:responsibility 辞書（YAMLのトップレベル）をSystemConfigに変換します。
    # @intent:pre-condition 未知のセクションや不正な値はConfigErrorとして拒否します。
    def parse(self, data: Dict[str, Any]) -> SystemConfig:
        if not isinstance(data, dict):
            raise ConfigError("Configuration root must be a mapping.")
        unknown = set(data) - _SECTIONS
        if unknown:
            raise ConfigError(f"Unknown configuration section(s): {', '.join(sorted(unknown))}")

        logging_config = data.get("logging")
        if logging_config is not None and not isinstance(logging_config, dict):
            raise ConfigError("'logging' must be a dictConfig mapping.")

        return SystemConfig(
            machine=self._parse_machine(data.get("machine") or {}),
            quirks=self._parse_quirks(data.get("quirks") or {}),
            memory_map=self._parse_memory_map(data.get("memory_map")),
            keymap=self._parse_keymap(data.get("keymap")),
            breakpoints=[self._parse_int(bp) for bp in data.get("breakpoints") or []],
            logging=logging_config,
        )

    def _parse_machine(self, data: Dict[str, Any]) -> MachineConfig:
        machine = MachineConfig(
            cycles_per_tick=self._parse_int(data.get("cycles_per_tick", MachineConfig.cycles_per_tick)),
            tick_rate=self._parse_int(data.get("tick_rate", MachineConfig.tick_rate)),
            seed=self._parse_int(data["seed"]) if data.get("seed") is not None else None,
        )
        if machine.cycles_per_tick <= 0:
            raise ConfigError("machine.cycles_per_tick must be positive.")
        if machine.tick_rate <= 0:
            raise ConfigError("machine.tick_rate must be positive.")
        return machine

    def _parse_quirks(self, data: Dict[str, Any]) -> Quirks:
        try:
            return Quirks(**{name: bool(value) for name, value in data.items()})
        except TypeError as e:
            raise ConfigError(f"Unknown quirk: {e}") from e

    def _parse_memory_map(self, regions: Optional[List[Dict[str, Any]]]) -> List[MemoryRegion]:
        if not regions:
            return default_memory_map()

        memory_map = []
        for region_data in regions:
            region = MemoryRegion(
                start=self._parse_int(region_data.get("start")),
                end=self._parse_int(region_data.get("end")),
                type=str(region_data.get("type", "RAM")).upper(),
                label=region_data.get("label", ""),
            )
            if region.start > region.end:
                raise ConfigError(f"Memory region {region.label or region.type} has start > end.")
            if region.type not in ("RAM", "ROM"):
                raise ConfigError(f"Unknown device type '{region.type}'")
            memory_map.append(region)
        return memory_map

    def _parse_keymap(self, data: Optional[Dict[Any, Any]]) -> Dict[str, int]:
        if data is None:
            return dict(DEFAULT_KEYMAP)
        keymap = {}
        for host_key, logical in data.items():
            value = self._parse_int(logical)
            if not 0 <= value < KEY_COUNT:
                raise ConfigError(f"Key mapping {host_key!r} -> {value} is outside 0x0-0xF.")
            keymap[str(host_key).upper()] = value
        return keymap

    def _parse_int(self, value: Any) -> int:
        if isinstance(value, bool):
            raise ConfigError(f"Invalid integer format: {value}")
        if isinstance(value, int):
            return value
        if isinstance(value, str):
            text = value.strip().replace("$", "0x")
            try:
                if text.lower().startswith("0x"):
                    return int(text, 16)
                return int(text)
            except ValueError:
                pass
        raise ConfigError(f"Invalid integer format: {value}")


# @intent:responsibility 設定ファイルのloggingセクション、またはログレベルからロギングを構成します。
def configure_logging(config: Optional[SystemConfig] = None, level: str = "WARNING") -> None:
    if config is not None and config.logging:
        try:
            logging.config.dictConfig(config.logging)
        except (ValueError, TypeError, AttributeError, ImportError) as e:
            raise ConfigError(f"Invalid logging configuration: {e}") from e
        return
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
