# tests/conftest.py
"""
テスト全体で共有するフィクスチャ。
既定のメモリマップ（ROM 0x000-0x1FF / RAM 0x200-0xFFF）でバスとCPUを組み立てます。
"""
import os
import random

import pytest

# GUIテストはディスプレイのない環境でも実行できるようにする
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from chip8_tracer.arch.chip8.cpu import Chip8Cpu
from chip8_tracer.arch.chip8.instructions.base import Quirks
from chip8_tracer.transport.bus import Bus, RAM, ROM


def build_bus() -> Bus:
    bus = Bus()
    bus.register_device(0x000, 0x1FF, ROM(0x200))
    bus.register_device(0x200, 0xFFF, RAM(0xE00))
    return bus


@pytest.fixture
def bus():
    return build_bus()


@pytest.fixture
def cpu(bus):
    return Chip8Cpu(bus, rng=random.Random(1234))


@pytest.fixture
def make_cpu():
    """quirksを指定してCPUを生成するファクトリ。"""
    def _make(quirks: Quirks = None, seed: int = 1234) -> Chip8Cpu:
        return Chip8Cpu(build_bus(), quirks=quirks, rng=random.Random(seed))
    return _make


@pytest.fixture
def load_words():
    """16bit命令語のリストをプログラムとしてロードするヘルパー。"""
    def _load(cpu: Chip8Cpu, words):
        data = bytearray()
        for word in words:
            data.extend([(word >> 8) & 0xFF, word & 0xFF])
        cpu.load_program(bytes(data))
    return _load


# PySide6のテストにはQApplicationのインスタンスが必要
@pytest.fixture(scope="session")
def qapp():
    from PySide6.QtWidgets import QApplication
    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    yield app
