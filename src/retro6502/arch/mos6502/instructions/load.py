# retro6502/arch/mos6502/instructions/load.py
"""
MOS 6502 転送系命令 (Load/Store/Transfer)。
"""
from retro6502.transport.bus import ByteBus
from retro6502.config.models import CpuConfig
from retro6502.arch.mos6502.state import Mos6502CpuState
from retro6502.arch.mos6502.instructions.base import AddressingResult, read_operand

# --- Load ---
# @intent:responsibility メモリからレジスタへロードし、N, Zフラグを更新。

def lda(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    state.a = read_operand(state, bus, addr_res)
    state.p.update_nz(state.a)

def ldx(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    state.x = read_operand(state, bus, addr_res)
    state.p.update_nz(state.x)

def ldy(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    state.y = read_operand(state, bus, addr_res)
    state.p.update_nz(state.y)

# --- Store ---
# @intent:responsibility レジスタの内容をメモリへストア。フラグ変化なし。

def sta(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    bus.write_byte(addr_res.address, state.a)

def stx(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    bus.write_byte(addr_res.address, state.x)

def sty(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    bus.write_byte(addr_res.address, state.y)

# --- Register Transfers (TAX, TAY, TXA, TYA, TSX, TXS) ---

def tax(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    state.x = state.a
    state.p.update_nz(state.x)

def tay(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    state.y = state.a
    state.p.update_nz(state.y)

def txa(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    state.a = state.x
    state.p.update_nz(state.a)

def tya(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    state.a = state.y
    state.p.update_nz(state.a)

# @intent:note TSXはSP(8bit値)からXへ転送。N, Z更新あり。
def tsx(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    state.x = state.sp
    state.p.update_nz(state.x)

# @intent:note TXSはN, Zフラグを更新 *しない*。
def txs(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    state.sp = state.x
