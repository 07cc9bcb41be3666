# tests/arch/mos6502/test_instructions.py
"""
MOS 6502 命令セットの振る舞いを Mos6502Cpu 経由で検証するテスト。
"""
import pytest
from retro6502.transport.bus import FlatMemory
from retro6502.config.models import CpuConfig
from retro6502.arch.mos6502.cpu import Mos6502Cpu

ORIGIN = 0x0600

def make_cpu(program, config=None, origin=ORIGIN):
    bus = FlatMemory()
    bus.load(origin, bytes(program))
    bus.load(0xFFFC, bytes([origin & 0xFF, origin >> 8]))
    cpu = Mos6502Cpu(bus, config)
    cpu.reset()
    return cpu, bus

def run(cpu, steps):
    return [cpu.step() for _ in range(steps)]

# --- Load / Store / Transfer ---

class TestLoadStore:
    # @intent:test_case LDA #$00 は直前のフラグに関係なく Z=1, N=0 にすることを検証します。
    def test_lda_zero_sets_z_clears_n(self):
        cpu, _ = make_cpu([0xA9, 0x00])
        cpu.state.p.n = True
        cpu.state.p.z = False
        assert cpu.step() == 2
        assert cpu.state.a == 0x00
        assert cpu.state.flag_z
        assert not cpu.state.flag_n
        assert cpu.state.pc == 0x0602

    def test_ldx_zeropage_negative(self):
        cpu, bus = make_cpu([0xA6, 0x10])
        bus.write_byte(0x0010, 0x80)
        assert cpu.step() == 3
        assert cpu.state.x == 0x80
        assert cpu.state.flag_n

    def test_ldy_absolute_x(self):
        cpu, bus = make_cpu([0xA2, 0x01, 0xBC, 0x00, 0x20])
        bus.write_byte(0x2001, 0x33)
        run(cpu, 2)
        assert cpu.state.y == 0x33

    def test_sta_stx_sty_leave_flags(self):
        cpu, bus = make_cpu([0x85, 0x10, 0x8E, 0x00, 0x30, 0x94, 0x20])
        cpu.state.a, cpu.state.x, cpu.state.y = 0x00, 0x80, 0x7F
        before = cpu.state.p.value
        assert run(cpu, 3) == [3, 4, 4]
        assert bus.read_byte(0x0010) == 0x00
        assert bus.read_byte(0x3000) == 0x80
        assert bus.read_byte(0x00A0) == 0x7F
        assert cpu.state.p.value == before

    def test_transfers_update_nz(self):
        cpu, _ = make_cpu([0xAA, 0xA8, 0x8A])
        cpu.state.a = 0x80
        cpu.step()  # TAX
        assert cpu.state.x == 0x80 and cpu.state.flag_n
        cpu.state.a = 0x00
        cpu.step()  # TAY
        assert cpu.state.y == 0x00 and cpu.state.flag_z
        cpu.step()  # TXA
        assert cpu.state.a == 0x80 and cpu.state.flag_n and not cpu.state.flag_z

    # @intent:test_case TXS はフラグを変更せず、TSX は N, Z を更新することを検証します。
    def test_txs_no_flags_tsx_flags(self):
        cpu, _ = make_cpu([0x9A, 0xBA])
        cpu.state.x = 0x00
        cpu.state.p.z = False
        cpu.step()  # TXS
        assert cpu.state.sp == 0x00
        assert not cpu.state.flag_z
        cpu.state.x = 0x55
        cpu.step()  # TSX
        assert cpu.state.x == 0x00
        assert cpu.state.flag_z

# --- Arithmetic / Logic ---

class TestArithmetic:
    # @intent:test_case ADC #$7F (A=$01, C=0) → A=$80, N=1, V=1, Z=0, C=0
    def test_adc_signed_overflow(self):
        cpu, _ = make_cpu([0x69, 0x7F])
        cpu.state.a = 0x01
        cpu.state.p.c = False
        assert cpu.step() == 2
        assert cpu.state.a == 0x80
        assert cpu.state.flag_n
        assert cpu.state.flag_v
        assert not cpu.state.flag_z
        assert not cpu.state.flag_c

    def test_adc_carry_out_and_zero(self):
        cpu, _ = make_cpu([0x38, 0x69, 0xFE])
        cpu.state.a = 0x01
        run(cpu, 2)
        assert cpu.state.a == 0x00
        assert cpu.state.flag_c
        assert cpu.state.flag_z
        assert not cpu.state.flag_v

    def test_sbc_without_borrow(self):
        cpu, _ = make_cpu([0x38, 0xA9, 0x05, 0xE9, 0x03])
        run(cpu, 3)
        assert cpu.state.a == 0x02
        assert cpu.state.flag_c

    def test_sbc_with_borrow_out(self):
        cpu, _ = make_cpu([0x38, 0xA9, 0x00, 0xE9, 0x01])
        run(cpu, 3)
        assert cpu.state.a == 0xFF
        assert not cpu.state.flag_c
        assert cpu.state.flag_n

    def test_sbc_signed_overflow(self):
        cpu, _ = make_cpu([0x38, 0xA9, 0x80, 0xE9, 0x01])
        run(cpu, 3)
        assert cpu.state.a == 0x7F
        assert cpu.state.flag_v
        assert cpu.state.flag_c

    @pytest.mark.parametrize("opcode, reg", [(0xC9, "a"), (0xE0, "x"), (0xC0, "y")])
    def test_compare(self, opcode, reg):
        cpu, _ = make_cpu([opcode, 0x40, opcode, 0x41, opcode, 0x3F])
        setattr(cpu.state, reg, 0x40)
        cpu.step()
        assert cpu.state.flag_z and cpu.state.flag_c
        cpu.step()
        assert not cpu.state.flag_c and cpu.state.flag_n and not cpu.state.flag_z
        cpu.step()
        assert cpu.state.flag_c and not cpu.state.flag_z
        assert getattr(cpu.state, reg) == 0x40

    def test_logical_ops(self):
        cpu, _ = make_cpu([0xA9, 0xF0, 0x29, 0x3C, 0x09, 0x01, 0x49, 0xFF])
        cpu.step()
        cpu.step()  # AND
        assert cpu.state.a == 0x30
        cpu.step()  # ORA
        assert cpu.state.a == 0x31
        cpu.step()  # EOR
        assert cpu.state.a == 0xCE
        assert cpu.state.flag_n

    # @intent:test_case BIT はメモリのbit7,6をN,Vへ、A&MでZを設定することを検証します。
    def test_bit(self):
        cpu, bus = make_cpu([0x24, 0x10])
        bus.write_byte(0x0010, 0xC0)
        cpu.state.a = 0x01
        cpu.step()
        assert cpu.state.flag_n
        assert cpu.state.flag_v
        assert cpu.state.flag_z
        assert cpu.state.a == 0x01

class TestShiftAndIncrement:
    def test_asl_accumulator(self):
        cpu, _ = make_cpu([0x0A])
        cpu.state.a = 0x81
        assert cpu.step() == 2
        assert cpu.state.a == 0x02
        assert cpu.state.flag_c

    def test_lsr_memory(self):
        cpu, bus = make_cpu([0x46, 0x10])
        bus.write_byte(0x0010, 0x01)
        assert cpu.step() == 5
        assert bus.read_byte(0x0010) == 0x00
        assert cpu.state.flag_c
        assert cpu.state.flag_z
        assert not cpu.state.flag_n

    def test_rol_ror_through_carry(self):
        cpu, bus = make_cpu([0x38, 0x2A, 0x6E, 0x00, 0x20])
        cpu.state.a = 0x80
        bus.write_byte(0x2000, 0x01)
        cpu.step()  # SEC
        cpu.step()  # ROL A
        assert cpu.state.a == 0x01
        assert cpu.state.flag_c
        assert cpu.step() == 6  # ROR $2000
        assert bus.read_byte(0x2000) == 0x80
        assert cpu.state.flag_c
        assert cpu.state.flag_n

    def test_inc_dec_memory_wrap(self):
        cpu, bus = make_cpu([0xE6, 0x10, 0xC6, 0x11])
        bus.write_byte(0x0010, 0xFF)
        bus.write_byte(0x0011, 0x00)
        cpu.step()
        assert bus.read_byte(0x0010) == 0x00
        assert cpu.state.flag_z
        cpu.step()
        assert bus.read_byte(0x0011) == 0xFF
        assert cpu.state.flag_n

    def test_register_increment_wrap(self):
        cpu, _ = make_cpu([0xE8, 0x88])
        cpu.state.x = 0xFF
        cpu.state.y = 0x00
        cpu.step()
        assert cpu.state.x == 0x00 and cpu.state.flag_z
        cpu.step()
        assert cpu.state.y == 0xFF and cpu.state.flag_n

# --- Decimal mode ---

class TestDecimalMode:
    @pytest.mark.parametrize("a, operand, carry_in, result, carry_out", [
        (0x09, 0x01, False, 0x10, False),
        (0x12, 0x34, False, 0x46, False),
        (0x58, 0x46, True, 0x05, True),
        (0x99, 0x01, False, 0x00, True),
    ])
    def test_adc_decimal(self, a, operand, carry_in, result, carry_out):
        cpu, _ = make_cpu([0xF8, 0x69, operand])
        cpu.state.a = a
        cpu.state.p.c = carry_in
        run(cpu, 2)
        assert cpu.state.a == result
        assert cpu.state.flag_c == carry_out

    @pytest.mark.parametrize("a, operand, carry_in, result, carry_out", [
        (0x46, 0x12, True, 0x34, True),
        (0x40, 0x13, True, 0x27, True),
        (0x32, 0x02, False, 0x29, True),
        (0x00, 0x01, True, 0x99, False),
    ])
    def test_sbc_decimal(self, a, operand, carry_in, result, carry_out):
        cpu, _ = make_cpu([0xF8, 0xE9, operand])
        cpu.state.a = a
        cpu.state.p.c = carry_in
        run(cpu, 2)
        assert cpu.state.a == result
        assert cpu.state.flag_c == carry_out

    # @intent:test_case NMOS では 99+01 の Z はバイナリ結果 ($9A) から決まるため 0 になることを検証します。
    def test_adc_decimal_zero_flag_from_binary_sum(self):
        cpu, _ = make_cpu([0xF8, 0x69, 0x01])
        cpu.state.a = 0x99
        cpu.state.p.c = False
        run(cpu, 2)
        assert cpu.state.a == 0x00
        assert not cpu.state.flag_z

    # @intent:test_case decimal_mode=False の構成では D=1 でもバイナリ演算になることを検証します。
    def test_decimal_disabled_by_config(self):
        cpu, _ = make_cpu([0xF8, 0x69, 0x01], config=CpuConfig(decimal_mode=False))
        cpu.state.a = 0x09
        cpu.state.p.c = False
        run(cpu, 2)
        assert cpu.state.flag_d
        assert cpu.state.a == 0x0A

    def test_compare_ignores_decimal_flag(self):
        cpu, _ = make_cpu([0xF8, 0xC9, 0x10])
        cpu.state.a = 0x09
        run(cpu, 2)
        assert not cpu.state.flag_c
        assert cpu.state.flag_n

# --- Control flow ---

class TestControlFlow:
    # @intent:test_case JSR $1234 at $0600 は $06, $02 (戻りアドレス-1) を積み、SP を2減らすことを検証します。
    def test_jsr_pushes_return_address_minus_one(self):
        cpu, bus = make_cpu([0x20, 0x34, 0x12])
        assert cpu.state.sp == 0xFD
        assert cpu.step() == 6
        assert cpu.state.pc == 0x1234
        assert cpu.state.sp == 0xFB
        assert bus.read_byte(0x01FD) == 0x06
        assert bus.read_byte(0x01FC) == 0x02

    def test_jsr_rts_round_trip(self):
        cpu, bus = make_cpu([0x20, 0x00, 0x20, 0xEA])
        bus.write_byte(0x2000, 0x60)  # RTS
        cpu.step()
        assert cpu.step() == 6
        assert cpu.state.pc == 0x0603
        assert cpu.state.sp == 0xFD

    def test_jmp_absolute(self):
        cpu, _ = make_cpu([0x4C, 0x00, 0x30])
        assert cpu.step() == 3
        assert cpu.state.pc == 0x3000

    # @intent:test_case_quirk JMP ($10FF) は $10FF と $1000 からターゲットを読むことを検証します。
    def test_jmp_indirect_page_wrap(self):
        cpu, bus = make_cpu([0x6C, 0xFF, 0x10])
        bus.write_byte(0x10FF, 0x00)
        bus.write_byte(0x1000, 0x40)
        bus.write_byte(0x1100, 0x50)
        assert cpu.step() == 5
        assert cpu.state.pc == 0x4000

    # @intent:test_case 分岐: 不成立=2、成立=3、ページ交差を伴う成立=4
    def test_branch_not_taken(self):
        cpu, _ = make_cpu([0x18, 0xB0, 0x10])
        cpu.step()
        assert cpu.step() == 2
        assert cpu.state.pc == 0x0603

    def test_branch_taken_same_page(self):
        cpu, _ = make_cpu([0x38, 0xB0, 0x02])
        cpu.step()
        assert cpu.step() == 3
        assert cpu.state.pc == 0x0605

    def test_branch_taken_across_page(self):
        cpu, _ = make_cpu([0xD0, 0xFB], origin=0x0600)
        cpu.state.p.z = False
        assert cpu.step() == 4
        assert cpu.state.pc == 0x05FD

    @pytest.mark.parametrize("opcode, flag, value", [
        (0x90, "c", False), (0xB0, "c", True),
        (0xD0, "z", False), (0xF0, "z", True),
        (0x10, "n", False), (0x30, "n", True),
        (0x50, "v", False), (0x70, "v", True),
    ])
    def test_branch_conditions(self, opcode, flag, value):
        cpu, _ = make_cpu([opcode, 0x10])
        setattr(cpu.state.p, flag, value)
        cpu.step()
        assert cpu.state.pc == 0x0612

        cpu, _ = make_cpu([opcode, 0x10])
        setattr(cpu.state.p, flag, not value)
        cpu.step()
        assert cpu.state.pc == 0x0602

    def test_flag_instructions(self):
        cpu, _ = make_cpu([0x38, 0xF8, 0x58, 0x18, 0xD8, 0x78, 0xB8])
        cpu.state.p.v = True
        run(cpu, 3)
        assert cpu.state.flag_c and cpu.state.flag_d and not cpu.state.flag_i
        run(cpu, 4)
        assert not cpu.state.flag_c and not cpu.state.flag_d
        assert cpu.state.flag_i and not cpu.state.flag_v

    def test_nop(self):
        cpu, _ = make_cpu([0xEA])
        before = cpu.state.copy()
        assert cpu.step() == 2
        assert cpu.state.pc == 0x0601
        before.pc = 0x0601
        assert cpu.state == before

# --- Stack ---

class TestStack:
    def test_pha_pla(self):
        cpu, bus = make_cpu([0x48, 0xA9, 0x01, 0x68])
        cpu.state.a = 0x80
        assert cpu.step() == 3
        assert bus.read_byte(0x01FD) == 0x80
        cpu.step()
        assert cpu.step() == 4
        assert cpu.state.a == 0x80
        assert cpu.state.flag_n
        assert cpu.state.sp == 0xFD

    # @intent:test_case PHP は B=1, U=1 で積み、PLP は B を破棄することを検証します。
    def test_php_plp(self):
        cpu, bus = make_cpu([0x08, 0x28])
        cpu.state.p.value = 0x21
        cpu.step()
        assert bus.read_byte(0x01FD) == 0x31
        bus.write_byte(0x01FD, 0xDB)
        cpu.step()
        assert cpu.state.p.value == 0xEB
        assert not cpu.state.p.b
