# retro6502/arch/mos6502/instructions/alu.py
"""
MOS 6502 算術論理演算命令 (ALU)。

ADC/SBC の10進モードは NMOS 6502 の挙動に合わせています:
アキュムレータとキャリーは BCD として補正され、Z はバイナリ演算の結果から、
ADC の N と V は上位ニブル補正前の中間値から決まります。SBC のフラグは
すべてバイナリ演算と同じです。
"""
from retro6502.transport.bus import ByteBus
from retro6502.config.models import CpuConfig
from retro6502.arch.mos6502.state import Mos6502CpuState
from retro6502.arch.mos6502.instructions.base import AddressingResult, read_operand, write_operand

# --- Logical Operations (AND, ORA, EOR, BIT) ---

def and_(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    state.a &= read_operand(state, bus, addr_res)
    state.p.update_nz(state.a)

def ora(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    state.a |= read_operand(state, bus, addr_res)
    state.p.update_nz(state.a)

def eor(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    state.a ^= read_operand(state, bus, addr_res)
    state.p.update_nz(state.a)

# @intent:note メモリ値のビット7, 6をN, Vへコピーし、A & M の結果でZを設定する。
def bit(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    val = read_operand(state, bus, addr_res)
    state.p.z = (state.a & val) == 0
    state.p.v = (val & 0x40) != 0
    state.p.n = (val & 0x80) != 0

# --- Arithmetic Operations (ADC, SBC) ---

def _adc_binary(state: Mos6502CpuState, val: int) -> None:
    a = state.a
    total = a + val + (1 if state.p.c else 0)
    res = total & 0xFF

    state.p.c = total > 0xFF
    state.p.update_overflow_add(a, val, res)
    state.p.update_nz(res)
    state.a = res

def _adc_decimal(state: Mos6502CpuState, val: int) -> None:
    a = state.a
    carry = 1 if state.p.c else 0

    lo = (a & 0x0F) + (val & 0x0F) + carry
    if lo >= 0x0A:
        lo = ((lo + 0x06) & 0x0F) + 0x10
    total = (a & 0xF0) + (val & 0xF0) + lo

    # N, V come from the intermediate sum, Z from the binary sum
    state.p.n = (total & 0x80) != 0
    state.p.update_overflow_add(a, val, total & 0xFF)
    state.p.z = ((a + val + carry) & 0xFF) == 0

    if total >= 0xA0:
        total += 0x60
    state.p.c = total >= 0x100
    state.a = total & 0xFF

def _sbc_binary(state: Mos6502CpuState, val: int) -> int:
    a = state.a
    diff = a - val - (0 if state.p.c else 1)
    res = diff & 0xFF

    state.p.c = diff >= 0  # Carry is the inverse of borrow
    state.p.update_overflow_sub(a, val, res)
    state.p.update_nz(res)
    return res

def _sbc_decimal(state: Mos6502CpuState, val: int) -> None:
    a = state.a
    carry = 1 if state.p.c else 0

    lo = (a & 0x0F) - (val & 0x0F) + carry - 1
    if lo < 0:
        lo = ((lo - 0x06) & 0x0F) - 0x10
    total = (a & 0xF0) - (val & 0xF0) + lo
    if total < 0:
        total -= 0x60

    _sbc_binary(state, val)
    state.a = total & 0xFF

def adc(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    val = read_operand(state, bus, addr_res)
    if state.p.d and config.decimal_mode:
        _adc_decimal(state, val)
    else:
        _adc_binary(state, val)

def sbc(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    val = read_operand(state, bus, addr_res)
    if state.p.d and config.decimal_mode:
        _sbc_decimal(state, val)
    else:
        state.a = _sbc_binary(state, val)

# --- Compare Operations (CMP, CPX, CPY) ---
# @intent:note 結果を格納しない減算。Dフラグに関係なくバイナリで比較し、N, Z, Cのみ更新する。

def _compare(state: Mos6502CpuState, reg_val: int, mem_val: int) -> None:
    state.p.c = reg_val >= mem_val
    state.p.update_nz((reg_val - mem_val) & 0xFF)

def cmp(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    _compare(state, state.a, read_operand(state, bus, addr_res))

def cpx(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    _compare(state, state.x, read_operand(state, bus, addr_res))

def cpy(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    _compare(state, state.y, read_operand(state, bus, addr_res))

# --- Shift / Rotate Operations (ASL, LSR, ROL, ROR) ---
# @intent:note Accumulator モードとメモリモードの両方を read_operand/write_operand で扱う。

def asl(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    val = read_operand(state, bus, addr_res)
    res = (val << 1) & 0xFF
    state.p.update_carry_from_shift(val & 0x80)
    state.p.update_nz(res)
    write_operand(state, bus, addr_res, res)

def lsr(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    val = read_operand(state, bus, addr_res)
    res = val >> 1
    state.p.update_carry_from_shift(val & 0x01)
    state.p.update_nz(res)  # N is always 0
    write_operand(state, bus, addr_res, res)

def rol(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    val = read_operand(state, bus, addr_res)
    res = ((val << 1) | (1 if state.p.c else 0)) & 0xFF
    state.p.update_carry_from_shift(val & 0x80)
    state.p.update_nz(res)
    write_operand(state, bus, addr_res, res)

def ror(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    val = read_operand(state, bus, addr_res)
    res = (val >> 1) | (0x80 if state.p.c else 0)
    state.p.update_carry_from_shift(val & 0x01)
    state.p.update_nz(res)
    write_operand(state, bus, addr_res, res)

# --- Increment / Decrement (INC, DEC, INX, DEX, INY, DEY) ---

def inc(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    res = (bus.read_byte(addr_res.address) + 1) & 0xFF
    bus.write_byte(addr_res.address, res)
    state.p.update_nz(res)

def dec(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    res = (bus.read_byte(addr_res.address) - 1) & 0xFF
    bus.write_byte(addr_res.address, res)
    state.p.update_nz(res)

def inx(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    state.x = (state.x + 1) & 0xFF
    state.p.update_nz(state.x)

def dex(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    state.x = (state.x - 1) & 0xFF
    state.p.update_nz(state.x)

def iny(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    state.y = (state.y + 1) & 0xFF
    state.p.update_nz(state.y)

def dey(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    state.y = (state.y - 1) & 0xFF
    state.p.update_nz(state.y)
