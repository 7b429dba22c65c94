import unittest

from chip8_tracer.common.errors import MemoryAccessError
from chip8_tracer.transport.bus import Bus, RAM


class TestBusAbnormal(unittest.TestCase):
    def setUp(self):
        self.bus = Bus()
        self.bus.register_device(0x000, 0xFFF, RAM(0x1000))  # 4KB RAM

    def test_write_out_of_bounds(self):
        with self.assertRaises(MemoryAccessError):
            self.bus.write(0x1000, 0xFF)
        self.assertEqual(self.bus.get_and_clear_activity_log(), [])

    def test_load_past_end(self):
        with self.assertRaises(MemoryAccessError):
            self.bus.load(0xFFF, b"\x01\x02")

    def test_ram_invalid_init(self):
        with self.assertRaises(ValueError):
            RAM(-1)
        with self.assertRaises(ValueError):
            RAM(1.5)

    def test_register_device_invalid_range(self):
        # Start > End
        with self.assertRaises(ValueError):
            self.bus.register_device(0x2000, 0x1000, RAM(0x100))
        with self.assertRaises(ValueError):
            self.bus.register_device(-1, 0x100, RAM(0x100))

    def test_register_device_size_mismatch(self):
        with self.assertRaises(ValueError):
            Bus().register_device(0x000, 0x0FF, RAM(0x200))

    def test_register_non_device(self):
        with self.assertRaises(TypeError):
            Bus().register_device(0x000, 0x0FF, bytearray(0x100))


if __name__ == '__main__':
    unittest.main()
