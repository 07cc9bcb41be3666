# retro6502/arch/mos6502/engine.py
"""
MOS 6502 実行エンジン。

ホストが所有する Mos6502CpuState とバスを引数で受け取り、1回の呼び出しで
1命令（または保留中のハードウェア割り込み1つ）を完了まで実行して消費サイクル数を返します。
モジュール内に可変の状態は持ちません。
"""
import logging
from typing import Tuple

from retro6502.transport.bus import ByteBus
from retro6502.config.models import CpuConfig, UndefinedOpcodePolicy
from retro6502.core.errors import CpuHaltedError, UnknownOpcodeError
from retro6502.core.snapshot import Operation
from retro6502.arch.mos6502.state import Mos6502CpuState, RunState
from retro6502.arch.mos6502 import interrupts
from retro6502.arch.mos6502.instructions import maps
from retro6502.arch.mos6502.instructions.base import resolve

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = CpuConfig()

# @intent:responsibility リセットシーケンスを実行します。
def reset(state: Mos6502CpuState, bus: ByteBus) -> int:
    return interrupts.reset(state, bus)

# @intent:responsibility 1ステップ実行し、消費サイクル数を返します。
def step(state: Mos6502CpuState, bus: ByteBus, config: CpuConfig = DEFAULT_CONFIG) -> int:
    cycles, _ = step_operation(state, bus, config)
    return cycles

# @intent:responsibility 1ステップ実行し、消費サイクル数と実行内容 (Operation) を返します。
# @intent:flow HALT判定 -> (RESET) -> 割り込み処理 -> フェッチ -> デコード/オペランド解決 -> PC更新 -> 実行
# @intent:post-condition strictモードで未定義オペコードに遭遇した場合、PCはそのオペコードを指したまま HALTED になる。
def step_operation(state: Mos6502CpuState, bus: ByteBus,
                   config: CpuConfig = DEFAULT_CONFIG) -> Tuple[int, Operation]:
    if state.run_state is RunState.HALTED:
        raise CpuHaltedError(state.pc)

    if state.run_state is RunState.RESET:
        cycles = interrupts.reset(state, bus)
        return cycles, Operation("--", "RESET", cycle_count=cycles, length=0, address=state.pc)

    initial_pc = state.pc
    kind = interrupts.service_interrupt(state, bus)
    if kind is not None:
        cycles = interrupts.INTERRUPT_CYCLES
        return cycles, Operation("--", kind.value, cycle_count=cycles, length=0, address=initial_pc)

    opcode = bus.read_byte(initial_pc)
    entry = maps.lookup(opcode)

    if not entry.defined:
        if config.undefined_opcode_policy is UndefinedOpcodePolicy.STRICT:
            state.run_state = RunState.HALTED
            raise UnknownOpcodeError(opcode, initial_pc)
        logger.warning("Undefined opcode $%02X at $%04X executed as NOP", opcode, initial_pc)

    addr_res = resolve(entry.mode, initial_pc, bus, state)
    state.pc = (initial_pc + entry.length) & 0xFFFF

    extra = entry.execute(state, bus, addr_res, config) or 0
    if entry.page_penalty and addr_res.page_crossed:
        extra += 1
    cycles = entry.cycles + extra

    interrupts.refresh_run_state(state)
    operation = maps.build_operation(opcode, entry, addr_res, initial_pc, cycles)
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("%04X  %-14s A:%02X X:%02X Y:%02X P:%02X SP:%02X CYC:%d",
                     initial_pc, operation.text(), state.a, state.x, state.y,
                     state.p.value, state.sp, cycles)
    return cycles, operation
