# retro6502/arch/mos6502/instructions/base.py
"""
MOS 6502 アドレッシングモード解決ロジック。

各解決関数は「オペコードのアドレス」を受け取り、その直後の0〜2バイトを読み出して
実効アドレスを計算します。ゼロページ演算は8bitで、絶対/間接アドレス演算は16bitで
ラップアラウンドします。これは設計上の不変条件であり、エラーではありません。
"""
from enum import Enum
from typing import Callable, Dict, List, NamedTuple, Optional

from retro6502.transport.bus import ByteBus
from retro6502.arch.mos6502.state import Mos6502CpuState

# @intent:responsibility 13種類のアドレッシングモード。
class AddressingMode(Enum):
    IMPLIED = "IMPLIED"
    ACCUMULATOR = "ACCUMULATOR"
    IMMEDIATE = "IMMEDIATE"
    ZEROPAGE = "ZEROPAGE"
    ZEROPAGE_X = "ZEROPAGE_X"
    ZEROPAGE_Y = "ZEROPAGE_Y"
    ABSOLUTE = "ABSOLUTE"
    ABSOLUTE_X = "ABSOLUTE_X"
    ABSOLUTE_Y = "ABSOLUTE_Y"
    INDIRECT = "INDIRECT"                  # JMP only
    INDEXED_INDIRECT = "INDEXED_INDIRECT"  # ($zp,X)
    INDIRECT_INDEXED = "INDIRECT_INDEXED"  # ($zp),Y
    RELATIVE = "RELATIVE"                  # Branch

# @intent:constant 各モードでオペコードに続くオペランドのバイト数。
OPERAND_LENGTH: Dict[AddressingMode, int] = {
    AddressingMode.IMPLIED: 0,
    AddressingMode.ACCUMULATOR: 0,
    AddressingMode.IMMEDIATE: 1,
    AddressingMode.ZEROPAGE: 1,
    AddressingMode.ZEROPAGE_X: 1,
    AddressingMode.ZEROPAGE_Y: 1,
    AddressingMode.ABSOLUTE: 2,
    AddressingMode.ABSOLUTE_X: 2,
    AddressingMode.ABSOLUTE_Y: 2,
    AddressingMode.INDIRECT: 2,
    AddressingMode.INDEXED_INDIRECT: 1,
    AddressingMode.INDIRECT_INDEXED: 1,
    AddressingMode.RELATIVE: 1,
}

# @intent:responsibility アドレッシングモードの解決結果。
class AddressingResult(NamedTuple):
    address: Optional[int]      # 実効アドレス (Implied/Accumulator/Immediate は None)
    value: Optional[int]        # Immediate の場合の値
    page_crossed: bool          # インデックス加算 (または分岐) でページ境界を越えたか
    operand_str: str            # トレース用のオペランド表現
    operand_bytes: List[int]    # オペランドとしてフェッチされた生バイト列
    accumulator: bool = False   # Accumulator モード (ASL A など)

# @intent:responsibility ページ境界交差判定。
def is_page_crossed(addr1: int, addr2: int) -> bool:
    return (addr1 & 0xFF00) != (addr2 & 0xFF00)

# @intent:utility_function リトルエンディアンの16bitワードを読み出します。
def read_word(bus: ByteBus, addr: int) -> int:
    lo = bus.read_byte(addr & 0xFFFF)
    hi = bus.read_byte((addr + 1) & 0xFFFF)
    return (hi << 8) | lo

# @intent:utility_function ゼロページ内でラップするポインタ ($FF の次は $00) を読み出します。
def read_zeropage_word(bus: ByteBus, zp_addr: int) -> int:
    lo = bus.read_byte(zp_addr & 0xFF)
    hi = bus.read_byte((zp_addr + 1) & 0xFF)
    return (hi << 8) | lo

def _operand(bus: ByteBus, pc: int, index: int) -> int:
    return bus.read_byte((pc + index) & 0xFFFF)

# --- Addressing Modes ---

def addr_implied(pc: int, bus: ByteBus, state: Mos6502CpuState) -> AddressingResult:
    return AddressingResult(None, None, False, "", [])

def addr_accumulator(pc: int, bus: ByteBus, state: Mos6502CpuState) -> AddressingResult:
    return AddressingResult(None, None, False, "A", [], accumulator=True)

# #$xx
def addr_immediate(pc: int, bus: ByteBus, state: Mos6502CpuState) -> AddressingResult:
    val = _operand(bus, pc, 1)
    return AddressingResult(None, val, False, f"#${val:02X}", [val])

# $xx
def addr_zeropage(pc: int, bus: ByteBus, state: Mos6502CpuState) -> AddressingResult:
    addr = _operand(bus, pc, 1)
    return AddressingResult(addr, None, False, f"${addr:02X}", [addr])

# @intent:note ラップアラウンドあり ($FF + 2 -> $01)
def addr_zeropage_x(pc: int, bus: ByteBus, state: Mos6502CpuState) -> AddressingResult:
    base = _operand(bus, pc, 1)
    addr = (base + state.x) & 0xFF
    return AddressingResult(addr, None, False, f"${base:02X},X", [base])

# @intent:note LDX, STX 専用。ラップアラウンドあり
def addr_zeropage_y(pc: int, bus: ByteBus, state: Mos6502CpuState) -> AddressingResult:
    base = _operand(bus, pc, 1)
    addr = (base + state.y) & 0xFF
    return AddressingResult(addr, None, False, f"${base:02X},Y", [base])

# $xxxx
def addr_absolute(pc: int, bus: ByteBus, state: Mos6502CpuState) -> AddressingResult:
    lo = _operand(bus, pc, 1)
    hi = _operand(bus, pc, 2)
    addr = (hi << 8) | lo
    return AddressingResult(addr, None, False, f"${addr:04X}", [lo, hi])

# @intent:note ページ交差は「交差したか」のみを返し、サイクルへの反映はオペコード表の設定で決まる。
def addr_absolute_x(pc: int, bus: ByteBus, state: Mos6502CpuState) -> AddressingResult:
    lo = _operand(bus, pc, 1)
    hi = _operand(bus, pc, 2)
    base_addr = (hi << 8) | lo
    addr = (base_addr + state.x) & 0xFFFF
    return AddressingResult(addr, None, is_page_crossed(base_addr, addr), f"${base_addr:04X},X", [lo, hi])

def addr_absolute_y(pc: int, bus: ByteBus, state: Mos6502CpuState) -> AddressingResult:
    lo = _operand(bus, pc, 1)
    hi = _operand(bus, pc, 2)
    base_addr = (hi << 8) | lo
    addr = (base_addr + state.y) & 0xFFFF
    return AddressingResult(addr, None, is_page_crossed(base_addr, addr), f"${base_addr:04X},Y", [lo, hi])

# @intent:responsibility Indirect Mode ($xxxx) - JMP only
# @intent:note NMOSのページ境界バグを再現する: ポインタが $xxFF の場合、上位バイトは $xx00 から読む。
def addr_indirect(pc: int, bus: ByteBus, state: Mos6502CpuState) -> AddressingResult:
    ptr_lo = _operand(bus, pc, 1)
    ptr_hi = _operand(bus, pc, 2)
    ptr = (ptr_hi << 8) | ptr_lo

    eff_lo = bus.read_byte(ptr)
    eff_hi = bus.read_byte((ptr & 0xFF00) | ((ptr + 1) & 0x00FF))

    addr = (eff_hi << 8) | eff_lo
    return AddressingResult(addr, None, False, f"(${ptr:04X})", [ptr_lo, ptr_hi])

# @intent:responsibility Indexed Indirect Mode ($xx,X) - "Pre-indexed"
# @intent:note ゼロページ内でXを加算(ラップアラウンド)し、そこにあるポインタを読む。
def addr_indexed_indirect(pc: int, bus: ByteBus, state: Mos6502CpuState) -> AddressingResult:
    base = _operand(bus, pc, 1)
    addr = read_zeropage_word(bus, (base + state.x) & 0xFF)
    return AddressingResult(addr, None, False, f"(${base:02X},X)", [base])

# @intent:responsibility Indirect Indexed Mode ($xx),Y - "Post-indexed"
# @intent:note ゼロページのポインタを読んでベースアドレスを得てから、Yを16bitで加算する。
def addr_indirect_indexed(pc: int, bus: ByteBus, state: Mos6502CpuState) -> AddressingResult:
    zp = _operand(bus, pc, 1)
    base_addr = read_zeropage_word(bus, zp)
    addr = (base_addr + state.y) & 0xFFFF
    return AddressingResult(addr, None, is_page_crossed(base_addr, addr), f"(${zp:02X}),Y", [zp])

# @intent:responsibility Relative Mode (Branch)
# @intent:note 戻り値のアドレスは分岐先の絶対アドレス。page_crossed は分岐命令の次のアドレスとの比較結果。
def addr_relative(pc: int, bus: ByteBus, state: Mos6502CpuState) -> AddressingResult:
    offset = _operand(bus, pc, 1)
    displacement = offset - 0x100 if offset >= 0x80 else offset

    next_pc = (pc + 2) & 0xFFFF
    dest_addr = (next_pc + displacement) & 0xFFFF
    return AddressingResult(dest_addr, None, is_page_crossed(next_pc, dest_addr), f"${dest_addr:04X}", [offset])

AddrFunc = Callable[[int, ByteBus, Mos6502CpuState], AddressingResult]

ADDRESSING_FUNCS: Dict[AddressingMode, AddrFunc] = {
    AddressingMode.IMPLIED: addr_implied,
    AddressingMode.ACCUMULATOR: addr_accumulator,
    AddressingMode.IMMEDIATE: addr_immediate,
    AddressingMode.ZEROPAGE: addr_zeropage,
    AddressingMode.ZEROPAGE_X: addr_zeropage_x,
    AddressingMode.ZEROPAGE_Y: addr_zeropage_y,
    AddressingMode.ABSOLUTE: addr_absolute,
    AddressingMode.ABSOLUTE_X: addr_absolute_x,
    AddressingMode.ABSOLUTE_Y: addr_absolute_y,
    AddressingMode.INDIRECT: addr_indirect,
    AddressingMode.INDEXED_INDIRECT: addr_indexed_indirect,
    AddressingMode.INDIRECT_INDEXED: addr_indirect_indexed,
    AddressingMode.RELATIVE: addr_relative,
}

# @intent:responsibility 指定されたモードでオペランドを解決します。
def resolve(mode: AddressingMode, pc: int, bus: ByteBus, state: Mos6502CpuState) -> AddressingResult:
    return ADDRESSING_FUNCS[mode](pc, bus, state)

# --- 命令実装の共通ヘルパー ---

# @intent:utility_function 解決結果からオペランド値を読み出します (Immediate / Accumulator / メモリ)。
def read_operand(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult) -> int:
    if addr_res.accumulator:
        return state.a
    if addr_res.value is not None:
        return addr_res.value
    return bus.read_byte(addr_res.address)

# @intent:utility_function 解決結果の格納先 (Accumulator / メモリ) へ値を書き戻します。
def write_operand(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, value: int) -> None:
    if addr_res.accumulator:
        state.a = value & 0xFF
    else:
        bus.write_byte(addr_res.address, value & 0xFF)

def push(state: Mos6502CpuState, bus: ByteBus, value: int) -> None:
    bus.write_byte(state.stack_address, value & 0xFF)
    state.sp = (state.sp - 1) & 0xFF

def pull(state: Mos6502CpuState, bus: ByteBus) -> int:
    state.sp = (state.sp + 1) & 0xFF
    return bus.read_byte(state.stack_address)

# @intent:utility_function 16bit値を上位→下位の順にプッシュします。
def push_word(state: Mos6502CpuState, bus: ByteBus, value: int) -> None:
    push(state, bus, (value >> 8) & 0xFF)
    push(state, bus, value & 0xFF)

def pull_word(state: Mos6502CpuState, bus: ByteBus) -> int:
    lo = pull(state, bus)
    hi = pull(state, bus)
    return (hi << 8) | lo
