import unittest

from chip8_tracer.arch.chip8.assembler import Chip8Assembler


class TestAssembler(unittest.TestCase):
    def test_basic_program(self):
        assembler = Chip8Assembler()
        lines = [
            "  CLS",
            "  LD I, sprite",
            "  DRW V0, V1, 2",
            "END: JP END",
            "sprite: DB 0xF0, $90",
        ]
        symbol_map, binary = assembler.assemble(lines)

        self.assertEqual(symbol_map["END"], 0x206)
        self.assertEqual(symbol_map["sprite"], 0x208)
        self.assertEqual(binary[0], (0x200, 0x00))
        self.assertEqual(binary[1], (0x201, 0xE0))
        # LD I, sprite -> A2 08
        self.assertEqual(binary[2], (0x202, 0xA2))
        self.assertEqual(binary[3], (0x203, 0x08))
        self.assertEqual(binary[-2:], [(0x208, 0xF0), (0x209, 0x90)])

    def test_org_and_dw(self):
        assembler = Chip8Assembler()
        lines = [
            "ORG 0x300",
            "table: DW 0x1234, table",
        ]
        symbol_map, binary = assembler.assemble(lines)

        self.assertEqual(symbol_map["table"], 0x300)
        self.assertEqual(binary, [(0x300, 0x12), (0x301, 0x34), (0x302, 0x03), (0x303, 0x00)])

    def test_number_formats(self):
        _, binary = Chip8Assembler().assemble(["DB 10, 0x10, $10, 10h, 0Fh"])
        self.assertEqual([byte for _, byte in binary], [10, 0x10, 0x10, 0x10, 0x0F])

    def test_label_on_its_own_line(self):
        symbol_map, _ = Chip8Assembler().assemble(["start:", "  RET", "; comment only", "", "next: CLS"])
        self.assertEqual(symbol_map, {"start": 0x200, "next": 0x202})

    def test_custom_origin(self):
        symbol_map, binary = Chip8Assembler(origin=0x400).assemble(["here: JP here"])
        self.assertEqual(symbol_map["here"], 0x400)
        self.assertEqual(binary, [(0x400, 0x14), (0x401, 0x00)])

    def test_duplicate_label(self):
        with self.assertRaisesRegex(ValueError, "Duplicate label 'a' on line 2"):
            Chip8Assembler().assemble(["a: CLS", "a: RET"])

    def test_db_value_out_of_range(self):
        with self.assertRaisesRegex(ValueError, "Error assembling line 2"):
            Chip8Assembler().assemble(["CLS", "DB 256"])


if __name__ == '__main__':
    unittest.main()
