# tests/arch/mos6502/test_interrupts.py
"""
リセット、IRQ、NMI、BRK/RTI のシーケンスと実行状態の遷移を検証するテスト。
"""
import unittest

from retro6502.transport.bus import FlatMemory
from retro6502.config.models import CpuConfig
from retro6502.arch.mos6502.cpu import Mos6502Cpu
from retro6502.arch.mos6502.state import RunState

NMI_HANDLER = 0x3000
IRQ_HANDLER = 0x4000

def make_bus(program, bus=None):
    bus = bus if bus is not None else FlatMemory()
    bus.load(0x0600, bytes(program))
    bus.load(0xFFFA, bytes([NMI_HANDLER & 0xFF, NMI_HANDLER >> 8,
                            0x00, 0x06,
                            IRQ_HANDLER & 0xFF, IRQ_HANDLER >> 8]))
    return bus

# ホストの周辺回路が BRK のフェッチ中に NMI を発生させる状況を模したバス
class NmiOnReadBus(FlatMemory):
    def __init__(self, trigger_address):
        super().__init__()
        self.cpu = None
        self._trigger_address = trigger_address

    def read_byte(self, address):
        if self.cpu is not None and address == self._trigger_address:
            self.cpu.request_nmi()
            self.cpu = None
        return super().read_byte(address)


class TestReset(unittest.TestCase):
    def test_fresh_cpu_starts_in_reset_state(self):
        cpu = Mos6502Cpu(make_bus([0xEA]))
        self.assertEqual(cpu.run_state, RunState.RESET)
        self.assertEqual(cpu.step(), 7)
        self.assertEqual(cpu.last_snapshot.operation.mnemonic, "RESET")
        self.assertEqual(cpu.state.pc, 0x0600)
        self.assertEqual(cpu.run_state, RunState.RUNNING)

    # @intent:test_case reset() は直前の状態に関係なく SP=$FD, I=1 にすることを検証します。
    def test_reset_overrides_prior_state(self):
        cpu = Mos6502Cpu(make_bus([0xEA]))
        cpu.state.sp = 0x10
        cpu.state.p.value = 0xFF
        cpu.state.pc = 0x1234
        cpu.state.a = 0x42
        cpu.reset()
        self.assertEqual(cpu.state.sp, 0xFD)
        self.assertTrue(cpu.state.flag_i)
        self.assertFalse(cpu.state.flag_d)
        self.assertEqual(cpu.state.pc, 0x0600)
        self.assertEqual(cpu.state.a, 0x42)
        self.assertEqual(cpu.cycle_count, 7)

    def test_reset_clears_pending_nmi(self):
        cpu = Mos6502Cpu(make_bus([0xEA]))
        cpu.request_nmi()
        cpu.reset()
        cpu.step()
        self.assertEqual(cpu.state.pc, 0x0601)


class TestIrq(unittest.TestCase):
    def setUp(self):
        self.bus = make_bus([0x58, 0xEA, 0xEA])  # CLI, NOP, NOP
        self.bus.write_byte(IRQ_HANDLER, 0x40)   # RTI
        self.cpu = Mos6502Cpu(self.bus)
        self.cpu.reset()

    def test_irq_masked_while_i_set(self):
        self.cpu.request_irq()
        self.assertEqual(self.cpu.run_state, RunState.RUNNING)
        self.assertEqual(self.cpu.step(), 2)  # CLI executes normally
        self.assertEqual(self.cpu.state.pc, 0x0601)
        self.assertEqual(self.cpu.run_state, RunState.INTERRUPT_PENDING)

    def test_irq_entry(self):
        self.cpu.step()  # CLI
        self.cpu.request_irq()
        self.assertEqual(self.cpu.step(), 7)
        self.assertEqual(self.cpu.last_snapshot.operation.mnemonic, "IRQ")
        self.assertEqual(self.cpu.state.pc, IRQ_HANDLER)
        self.assertTrue(self.cpu.state.flag_i)
        self.assertEqual(self.cpu.state.sp, 0xFA)
        self.assertEqual(self.bus.read_byte(0x01FD), 0x06)
        self.assertEqual(self.bus.read_byte(0x01FC), 0x01)
        # B=0 on the stacked flags
        self.assertEqual(self.bus.read_byte(0x01FB), 0x20)

    # @intent:test_case IRQ はレベルトリガ。ラインが解除されるまで、RTI の後に再度受け付けられることを検証します。
    def test_irq_is_level_triggered(self):
        self.cpu.step()  # CLI
        self.cpu.request_irq()
        self.cpu.step()  # IRQ entry
        self.cpu.step()  # RTI
        self.assertEqual(self.cpu.state.pc, 0x0601)
        self.assertEqual(self.cpu.run_state, RunState.INTERRUPT_PENDING)
        self.cpu.step()
        self.assertEqual(self.cpu.state.pc, IRQ_HANDLER)

        self.cpu.step()  # RTI
        self.cpu.release_irq()
        self.assertEqual(self.cpu.run_state, RunState.RUNNING)
        self.cpu.step()
        self.assertEqual(self.cpu.state.pc, 0x0602)


class TestNmi(unittest.TestCase):
    def setUp(self):
        self.bus = make_bus([0xEA, 0xEA])
        self.bus.write_byte(NMI_HANDLER, 0x40)  # RTI
        self.cpu = Mos6502Cpu(self.bus)
        self.cpu.reset()

    def test_nmi_ignores_interrupt_disable(self):
        self.assertTrue(self.cpu.state.flag_i)
        self.cpu.request_nmi()
        self.assertEqual(self.cpu.run_state, RunState.INTERRUPT_PENDING)
        self.assertEqual(self.cpu.step(), 7)
        self.assertEqual(self.cpu.state.pc, NMI_HANDLER)
        self.assertEqual(self.bus.read_byte(0x01FB) & 0x10, 0)

    def test_nmi_is_latched_once(self):
        self.cpu.request_nmi()
        self.cpu.step()  # NMI entry
        self.cpu.step()  # RTI
        self.assertEqual(self.cpu.state.pc, 0x0600)
        self.cpu.step()
        self.assertEqual(self.cpu.state.pc, 0x0601)

    def test_nmi_has_priority_over_irq(self):
        self.cpu.state.p.i = False
        self.cpu.request_irq()
        self.cpu.request_nmi()
        self.cpu.step()
        self.assertEqual(self.cpu.last_snapshot.operation.mnemonic, "NMI")
        self.assertEqual(self.cpu.state.pc, NMI_HANDLER)


class TestBrk(unittest.TestCase):
    # @intent:test_case BRK は PC+2 と B=1 のフラグを積み、I を立てて ($FFFE) へ飛ぶことを検証します。
    def test_brk_entry(self):
        bus = make_bus([0x00, 0xFF, 0xEA])
        cpu = Mos6502Cpu(bus)
        cpu.reset()
        cpu.state.p.value = 0x20 | 0x01  # I=0, C=1
        self.assertEqual(cpu.step(), 7)
        self.assertEqual(cpu.state.pc, IRQ_HANDLER)
        self.assertTrue(cpu.state.flag_i)
        self.assertEqual(bus.read_byte(0x01FD), 0x06)
        self.assertEqual(bus.read_byte(0x01FC), 0x02)
        self.assertEqual(bus.read_byte(0x01FB), 0x31)
        self.assertFalse(cpu.state.p.b)

    # @intent:test_case RTI はフラグを (B を除いて) 正確に復元し、PC を BRK+2 に戻すことを検証します。
    def test_brk_rti_round_trip(self):
        bus = make_bus([0x00, 0xFF, 0xEA])
        bus.write_byte(IRQ_HANDLER, 0x40)
        cpu = Mos6502Cpu(bus)
        cpu.reset()
        cpu.state.p.value = 0xE1
        cpu.step()  # BRK
        self.assertEqual(cpu.step(), 6)  # RTI
        self.assertEqual(cpu.state.pc, 0x0602)
        self.assertEqual(cpu.state.p.value, 0xE1)
        self.assertEqual(cpu.state.sp, 0xFD)

    def test_brk_without_hijack_runs_nmi_afterwards(self):
        bus = make_bus([0x00, 0x00], bus=NmiOnReadBus(0x0600))
        cpu = Mos6502Cpu(bus)
        cpu.reset()
        bus.cpu = cpu
        cpu.step()  # BRK
        self.assertEqual(cpu.state.pc, IRQ_HANDLER)
        self.assertTrue(cpu.state.nmi_pending)
        cpu.step()
        self.assertEqual(cpu.state.pc, NMI_HANDLER)

    # @intent:test_case brk_nmi_hijack 有効時、BRK 中に発生した NMI は BRK を NMI ベクタへ向けることを検証します。
    def test_brk_hijacked_by_nmi(self):
        bus = make_bus([0x00, 0x00], bus=NmiOnReadBus(0x0600))
        cpu = Mos6502Cpu(bus, CpuConfig(brk_nmi_hijack=True))
        cpu.reset()
        bus.cpu = cpu
        cpu.step()
        self.assertEqual(cpu.state.pc, NMI_HANDLER)
        self.assertFalse(cpu.state.nmi_pending)
        # stacked flags still carry B=1
        self.assertEqual(bus.read_byte(0x01FB) & 0x10, 0x10)


if __name__ == '__main__':
    unittest.main()
