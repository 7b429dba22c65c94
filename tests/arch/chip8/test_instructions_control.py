import unittest

from chip8_tracer.common.errors import StackOverflowError, StackUnderflowError, ErrorKind
from chip8_tracer.arch.chip8.machine import Chip8Machine
from chip8_tracer.arch.chip8.cpu import Chip8Cpu


class TestChip8ControlInstructions(unittest.TestCase):
    def setUp(self):
        self.machine = Chip8Machine()
        self.cpu = Chip8Cpu(self.machine)
        self.state = self.cpu.get_state()

    def _write_words(self, address, *words):
        for i, word in enumerate(words):
            self.machine.bus.load(address + i * 2, bytes([word >> 8, word & 0xFF]))

    def _run(self, *words):
        self._write_words(0x200, *words)
        self.state.pc = 0x200
        return self.cpu.step()

    def test_jump(self):
        self._run(0x1ABC)
        self.assertEqual(self.state.pc, 0xABC)

    def test_jump_offset(self):
        self.state.v[0] = 0x10
        self._run(0xB300)
        self.assertEqual(self.state.pc, 0x310)

    def test_call_and_return(self):
        # CALL 0x300 / ... / 0x300: RET
        self._write_words(0x300, 0x00EE)
        self._run(0x2300)
        self.assertEqual(self.state.pc, 0x300)
        self.assertEqual(self.state.sp, 1)
        self.assertEqual(self.state.active_stack(), [0x202])

        self.cpu.step()
        self.assertEqual(self.state.pc, 0x202)
        self.assertEqual(self.state.sp, 0)

    def test_sys_behaves_like_call(self):
        self._run(0x0400)
        self.assertEqual(self.state.pc, 0x400)
        self.assertEqual(self.state.active_stack(), [0x202])

    def test_return_on_empty_stack(self):
        with self.assertRaises(StackUnderflowError) as ctx:
            self._run(0x00EE)
        self.assertEqual(ctx.exception.kind, ErrorKind.STACK_UNDERFLOW)
        self.assertEqual(ctx.exception.address, 0x200)
        self.assertEqual(self.state.pc, 0x200)

    def test_call_overflow_leaves_state_unchanged(self):
        self.state.sp = 16
        with self.assertRaises(StackOverflowError) as ctx:
            self._run(0x2300)
        self.assertEqual(ctx.exception.address, 0x200)
        self.assertEqual(self.state.pc, 0x200)
        self.assertEqual(self.state.sp, 16)

    def test_skip_equal_immediate(self):
        self.state.v[1] = 0x42
        self._run(0x3142)
        self.assertEqual(self.state.pc, 0x204)
        self._run(0x3143)
        self.assertEqual(self.state.pc, 0x202)

    def test_skip_not_equal_immediate(self):
        self.state.v[1] = 0x42
        self._run(0x4142)
        self.assertEqual(self.state.pc, 0x202)
        self._run(0x4143)
        self.assertEqual(self.state.pc, 0x204)

    def test_skip_register_compare(self):
        self.state.v[1] = 7
        self.state.v[2] = 7
        self._run(0x5120)
        self.assertEqual(self.state.pc, 0x204)
        self._run(0x9120)
        self.assertEqual(self.state.pc, 0x202)

    def test_skip_key_pressed(self):
        self.state.v[2] = 0xA
        self._run(0xE29E)
        self.assertEqual(self.state.pc, 0x202)
        self._run(0xE2A1)
        self.assertEqual(self.state.pc, 0x204)

        self.machine.handle_key_event(0xA, True)
        self._run(0xE29E)
        self.assertEqual(self.state.pc, 0x204)
        self._run(0xE2A1)
        self.assertEqual(self.state.pc, 0x202)

    def test_skip_key_uses_low_nibble(self):
        self.state.v[2] = 0x1A
        self.machine.handle_key_event(0xA, True)
        self._run(0xE29E)
        self.assertEqual(self.state.pc, 0x204)

    def test_wait_key_holds_pc_until_key_down(self):
        # LD V5, K
        self._run(0xF50A)
        self.assertEqual(self.state.pc, 0x200)
        self.assertTrue(self.state.waiting_for_key)

        snapshot = self.cpu.step()
        self.assertIsNone(snapshot.instruction)
        self.assertEqual(self.state.pc, 0x200)

        self.machine.handle_key_event(0x7, True)
        self.cpu.step()
        self.assertEqual(self.state.v[5], 0x7)
        self.assertFalse(self.state.waiting_for_key)
        self.assertEqual(self.state.pc, 0x202)

    def test_wait_key_ignores_key_already_held(self):
        self.machine.handle_key_event(0x3, True)
        self._run(0xF50A)
        self.cpu.step()
        self.assertTrue(self.state.waiting_for_key)

        self.machine.handle_key_event(0x3, False)
        self.cpu.step()
        self.assertTrue(self.state.waiting_for_key)

        self.machine.handle_key_event(0x3, True)
        self.cpu.step()
        self.assertFalse(self.state.waiting_for_key)
        self.assertEqual(self.state.v[5], 0x3)


if __name__ == '__main__':
    unittest.main()
