# tests/loader/test_loader.py
"""
chip8_tracer.loader.loaderモジュールの単体テスト。
ROMイメージとアセンブリソースのロード機能を検証します。
"""
import pytest

from chip8_tracer.common.errors import CapacityExceeded
from chip8_tracer.loader.loader import AssemblyLoader, RomLoader

# @intent:test_suite コードローダー機能の検証。


class TestRomLoader:
    def test_load_rom_image(self, cpu, tmp_path):
        rom = tmp_path / "test.ch8"
        rom.write_bytes(bytes([0x60, 0x2A, 0x12, 0x02]))

        data = RomLoader().load(str(rom), cpu)

        assert data == bytes([0x60, 0x2A, 0x12, 0x02])
        assert cpu.bus.peek(0x200) == 0x60
        cpu.step()
        assert cpu.get_state().v[0] == 0x2A

    def test_oversized_rom(self, cpu, tmp_path):
        rom = tmp_path / "big.ch8"
        rom.write_bytes(bytes(0xE01))
        with pytest.raises(CapacityExceeded):
            RomLoader().load(rom, cpu)

    def test_missing_file(self, cpu, tmp_path):
        with pytest.raises(OSError):
            RomLoader().load(tmp_path / "missing.ch8", cpu)


class TestAssemblyLoader:
    # @intent:test_case_symbols アセンブル結果がロードされ、シンボル情報がSnapshotに反映されることを検証します。
    def test_symbol_integration(self, cpu, tmp_path):
        source = tmp_path / "prog.asm"
        source.write_text(
            "START:\n"
            "    LD V1, $AA\n"
            "LOOP:\n"
            "    JP LOOP\n",
            encoding="utf-8",
        )

        symbols = AssemblyLoader().load_assembly(str(source), cpu)

        assert symbols == {"START": 0x200, "LOOP": 0x202}
        assert cpu.get_symbol_map() == symbols
        snapshot = cpu.step()
        assert snapshot.metadata.symbol_info == "START: LD V1, 0xAA"
        snapshot = cpu.step()
        assert snapshot.metadata.symbol_info == "LOOP: JP 0x202"

    # @intent:test_case_gap ORGによる空きは0で埋められることを検証します。
    def test_org_gap_is_zero_filled(self, cpu, tmp_path):
        source = tmp_path / "gap.asm"
        source.write_text("CLS\nORG 0x210\nDB 0x42\n", encoding="utf-8")
        cpu.bus.load(0x204, 0x99)

        AssemblyLoader().load_assembly(source, cpu)

        assert cpu.bus.peek(0x201) == 0xE0
        assert cpu.bus.peek(0x204) == 0x00
        assert cpu.bus.peek(0x210) == 0x42
        assert len(cpu.program) == 0x11

    def test_data_below_program_region(self, cpu, tmp_path):
        source = tmp_path / "low.asm"
        source.write_text("ORG 0x100\nCLS\n", encoding="utf-8")
        with pytest.raises(ValueError, match="below the program region"):
            AssemblyLoader().load_assembly(source, cpu)

    def test_syntax_error_reports_line(self, cpu, tmp_path):
        source = tmp_path / "bad.asm"
        source.write_text("CLS\nLD V0\n", encoding="utf-8")
        with pytest.raises(ValueError, match="line 2"):
            AssemblyLoader().load_assembly(source, cpu)
