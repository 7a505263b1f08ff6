# tests/transport/test_bus.py
"""
chip8_tracer.transport.busモジュールの単体テスト。
"""
import logging

import pytest

from chip8_tracer.common.errors import OutOfBounds
from chip8_tracer.transport.bus import Bus, BusAccess, BusAccessType, Device, RAM, ROM

# @intent:test_suite 共通バスとデバイスの基本的な機能とエラーハンドリングを検証します。

class TestRAM:
    # @intent:test_case_init 無効なサイズでRAMを初期化するとValueErrorが発生することを検証します。
    def test_ram_init_invalid_size(self):
        with pytest.raises(ValueError, match="RAM size must be a positive integer."):
            RAM(0)
        with pytest.raises(ValueError, match="RAM size must be a positive integer."):
            RAM(1.5)

    def test_ram_read_write(self):
        ram = RAM(4)
        ram.write(3, 0x78)
        assert ram.read(3) == 0x78
        with pytest.raises(IndexError):
            ram.read(4)

    # @intent:test_case_data 8bitを超えるデータの書き込みはValueError。
    def test_ram_write_invalid_data(self):
        ram = RAM(1)
        with pytest.raises(ValueError, match="Data 256 is not an 8-bit value."):
            ram.write(0, 0x100)


class TestROM:
    # @intent:test_case_rom 通常の書き込みは無視され、load_dataでのみ内容を設定できることを検証します。
    def test_rom_ignores_write(self):
        rom = ROM(2)
        rom.load_data(0, 0xAB)
        rom.write(0, 0x00)
        assert rom.read(0) == 0xAB


class TestBus:
    # @intent:test_case_register デバイスサイズとアドレス範囲の不一致はValueError。
    def test_register_device_size_mismatch(self):
        bus = Bus()
        with pytest.raises(ValueError):
            bus.register_device(0x000, 0x0FF, RAM(0x200))
        with pytest.raises(TypeError):
            bus.register_device(0x000, 0x0FF, object())

    def test_address_limit(self, bus):
        assert bus.get_address_limit() == 0x1000
        assert Bus().get_address_limit() == 0

    # @intent:test_case_unmapped マップされていないアドレスへのアクセスはOutOfBoundsになることを検証します。
    def test_unmapped_access_raises_out_of_bounds(self, bus):
        with pytest.raises(OutOfBounds) as excinfo:
            bus.read(0x1000)
        assert excinfo.value.address == 0x1000
        with pytest.raises(OutOfBounds):
            bus.write(0x1000, 0x00)
        with pytest.raises(OutOfBounds):
            bus.peek(0x1000)

    # @intent:test_case_log 読み書きがアクセスログに記録され、取得時にクリアされることを検証します。
    def test_activity_log(self, bus):
        bus.write(0x300, 0x12)
        bus.write(0x300, 0x34)
        assert bus.read(0x300) == 0x34
        log = bus.get_and_clear_activity_log()
        assert log == [
            BusAccess(0x300, 0x12, BusAccessType.WRITE, previous_data=0x00),
            BusAccess(0x300, 0x34, BusAccessType.WRITE, previous_data=0x12),
            BusAccess(0x300, 0x34, BusAccessType.READ),
        ]
        assert bus.get_and_clear_activity_log() == []

    # @intent:test_case_peek peekとloadはログを残さないことを検証します。
    def test_peek_and_load_do_not_log(self, bus):
        bus.load(0x010, 0x55)
        assert bus.peek(0x010) == 0x55
        assert bus.get_and_clear_activity_log() == []

    # @intent:test_case_rom_write 実行中のROM書き込みは無視され、警告が記録されることを検証します。
    def test_rom_write_is_ignored_with_warning(self, bus, caplog):
        bus.load(0x000, 0xF0)
        with caplog.at_level(logging.WARNING, logger="chip8_tracer.transport.bus"):
            bus.write(0x000, 0x00)
        assert bus.peek(0x000) == 0xF0
        assert "read-only" in caplog.text

    def test_write_rejects_wide_values(self, bus):
        with pytest.raises(ValueError):
            bus.write(0x200, 0x100)

    # @intent:test_case_device Deviceを継承した独自デバイスも登録できることを検証します。
    def test_custom_device(self):
        class Register(Device):
            def __init__(self):
                self.value = 0x42

            def read(self, address):
                return self.value

            def write(self, address, data):
                self.value = data

        bus = Bus()
        bus.register_device(0x000, 0x000, Register())
        bus.write(0x000, 0x99)
        assert bus.read(0x000) == 0x99
