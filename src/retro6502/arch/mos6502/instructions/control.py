# retro6502/arch/mos6502/instructions/control.py
"""
MOS 6502 制御系命令 (Branch, Jump, Stack, Flags, NOP, BRK/RTI)。

実行時点で state.pc は既に命令長分進められている（次の命令の先頭を指す）。
分岐・ジャンプはここで state.pc を書き換える。
"""
import logging

from retro6502.transport.bus import ByteBus
from retro6502.config.models import CpuConfig
from retro6502.arch.mos6502.state import Mos6502CpuState
from retro6502.arch.mos6502.instructions.base import AddressingResult, push, push_word, pull, pull_word
from retro6502.arch.mos6502 import interrupts

logger = logging.getLogger(__name__)

# --- Branch Instructions ---

# @intent:responsibility 条件成立時に分岐し、追加サイクル数を返す (成立 +1、ページ交差でさらに +1)。
def _branch(state: Mos6502CpuState, addr_res: AddressingResult, condition: bool) -> int:
    if not condition:
        return 0
    state.pc = addr_res.address
    return 2 if addr_res.page_crossed else 1

def bcc(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> int:
    return _branch(state, addr_res, not state.p.c)

def bcs(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> int:
    return _branch(state, addr_res, state.p.c)

def beq(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> int:
    return _branch(state, addr_res, state.p.z)

def bne(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> int:
    return _branch(state, addr_res, not state.p.z)

def bmi(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> int:
    return _branch(state, addr_res, state.p.n)

def bpl(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> int:
    return _branch(state, addr_res, not state.p.n)

def bvc(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> int:
    return _branch(state, addr_res, not state.p.v)

def bvs(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> int:
    return _branch(state, addr_res, state.p.v)

# --- Jump Instructions ---

def jmp(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    state.pc = addr_res.address

# @intent:note スタックに積むのは「JSR命令の最後のバイトのアドレス」(= 次の命令 - 1)。上位→下位の順。
def jsr(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    push_word(state, bus, (state.pc - 1) & 0xFFFF)
    state.pc = addr_res.address

def rts(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    state.pc = (pull_word(state, bus) + 1) & 0xFFFF

# --- Stack Operations (PHA, PHP, PLA, PLP) ---

def pha(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    push(state, bus, state.a)

# @intent:note PHP は B=1 でフラグを積む。
def php(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    push(state, bus, state.p.to_stack_byte(brk=True))

def pla(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    state.a = pull(state, bus)
    state.p.update_nz(state.a)

def plp(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    state.p.load_from_stack(pull(state, bus))

# --- Flag Operations ---

def clc(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    state.p.c = False

def sec(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    state.p.c = True

def cli(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    state.p.i = False

def sei(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    state.p.i = True

def clv(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    state.p.v = False

def cld(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    state.p.d = False

def sed(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    state.p.d = True

# --- System / Other ---

def nop(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    pass

# @intent:responsibility permissive モードでの未定義オペコード。効果なし。
def undefined(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    pass

# @intent:responsibility ソフトウェア割り込み。
# @intent:note BRKは1バイト命令だが、退避する戻りアドレスは BRK+2 (パディングバイトを飛ばす)。
#              brk_nmi_hijack 有効時、NMIがラッチされていればNMIベクタへ飛ぶ (Bは1のまま)。
def brk(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    vector = interrupts.IRQ_VECTOR
    if config.brk_nmi_hijack and state.nmi_pending:
        state.nmi_pending = False
        vector = interrupts.NMI_VECTOR
    interrupts.enter_interrupt(state, bus, (state.pc + 1) & 0xFFFF, vector, brk=True)
    logger.debug("BRK -> PC=$%04X", state.pc)

def rti(state: Mos6502CpuState, bus: ByteBus, addr_res: AddressingResult, config: CpuConfig) -> None:
    interrupts.return_from_interrupt(state, bus)
