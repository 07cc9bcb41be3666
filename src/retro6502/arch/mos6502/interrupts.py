# retro6502/arch/mos6502/interrupts.py
"""
MOS 6502 割り込みコントローラ。

リセット、IRQ、NMI、BRK のシーケンス（スタックへの退避とベクタへの遷移）を扱います。
NMI はエッジトリガ（ラッチ）で常に受け付けられ、IRQ はレベルトリガで I=0 の間だけ
受け付けられます。両方が保留中の場合は NMI が優先されます。
"""
import logging
from enum import Enum
from typing import Optional

from retro6502.transport.bus import ByteBus
from retro6502.arch.mos6502.flags import RESET_VALUE
from retro6502.arch.mos6502.state import Mos6502CpuState, RunState
from retro6502.arch.mos6502.instructions.base import read_word, push, push_word, pull, pull_word

logger = logging.getLogger(__name__)

NMI_VECTOR = 0xFFFA
RESET_VECTOR = 0xFFFC
IRQ_VECTOR = 0xFFFE  # shared with BRK

RESET_CYCLES = 7
INTERRUPT_CYCLES = 7

class InterruptKind(Enum):
    NMI = "NMI"
    IRQ = "IRQ"

# @intent:responsibility リセットシーケンスを実行します。A/X/Y はクリアしません。
# @intent:post-condition SP=$FD, P=$24 (I=1), PC=($FFFC), run_state=RUNNING
def reset(state: Mos6502CpuState, bus: ByteBus) -> int:
    state.sp = 0xFD
    state.p.value = RESET_VALUE
    state.pc = read_word(bus, RESET_VECTOR)
    state.nmi_pending = False
    state.run_state = RunState.RUNNING
    refresh_run_state(state)
    logger.debug("RESET -> PC=$%04X", state.pc)
    return RESET_CYCLES

# @intent:responsibility PC とフラグをスタックへ退避し、I を立ててベクタへ遷移します。
# @intent:note brk=True の場合のみ、退避するフラグの B ビットが 1 になる。
def enter_interrupt(state: Mos6502CpuState, bus: ByteBus, return_addr: int, vector: int, brk: bool) -> None:
    push_word(state, bus, return_addr)
    push(state, bus, state.p.to_stack_byte(brk))
    state.p.i = True
    state.pc = read_word(bus, vector)

# @intent:responsibility RTI: フラグ、PC下位、PC上位の順に復帰します。
def return_from_interrupt(state: Mos6502CpuState, bus: ByteBus) -> None:
    state.p.load_from_stack(pull(state, bus))
    state.pc = pull_word(state, bus)

# @intent:responsibility 次に受け付けるべきハードウェア割り込みを返します。
def pending_interrupt(state: Mos6502CpuState) -> Optional[InterruptKind]:
    if state.nmi_pending:
        return InterruptKind.NMI
    if state.irq_line and not state.p.i:
        return InterruptKind.IRQ
    return None

# @intent:responsibility 保留中のハードウェア割り込みを1つ処理し、その種類を返します (なければ None)。
def service_interrupt(state: Mos6502CpuState, bus: ByteBus) -> Optional[InterruptKind]:
    kind = pending_interrupt(state)
    if kind is InterruptKind.NMI:
        state.nmi_pending = False
        enter_interrupt(state, bus, state.pc, NMI_VECTOR, brk=False)
    elif kind is InterruptKind.IRQ:
        enter_interrupt(state, bus, state.pc, IRQ_VECTOR, brk=False)
    else:
        return None
    logger.debug("%s -> PC=$%04X", kind.value, state.pc)
    refresh_run_state(state)
    return kind

# @intent:responsibility 割り込み入力とフラグから RUNNING / INTERRUPT_PENDING を再計算します。
def refresh_run_state(state: Mos6502CpuState) -> None:
    if state.run_state in (RunState.RESET, RunState.HALTED):
        return
    if pending_interrupt(state) is None:
        state.run_state = RunState.RUNNING
    else:
        state.run_state = RunState.INTERRUPT_PENDING

# --- ホストからのシグナル ---

def request_nmi(state: Mos6502CpuState) -> None:
    state.nmi_pending = True
    refresh_run_state(state)

def request_irq(state: Mos6502CpuState) -> None:
    state.irq_line = True
    refresh_run_state(state)

def release_irq(state: Mos6502CpuState) -> None:
    state.irq_line = False
    refresh_run_state(state)
