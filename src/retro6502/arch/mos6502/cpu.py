# retro6502/arch/mos6502/cpu.py
"""
MOS 6502 CPUエミュレーションの中心モジュール。
"""
from typing import Optional, Tuple

from retro6502.transport.bus import ByteBus
from retro6502.config.models import CpuConfig
from retro6502.core.cpu import AbstractCpu
from retro6502.core.snapshot import Operation
from retro6502.arch.mos6502.state import Mos6502CpuState, RunState
from retro6502.arch.mos6502 import engine, interrupts

# @intent:responsibility ホスト向けの 6502 CPU。状態レコード・バス・設定を束ね、エンジンへ委譲する。
class Mos6502Cpu(AbstractCpu):
    """
    MOS 6502 CPUをエミュレートするクラス。

    状態は ``state`` として公開され、ホストが直接初期化・検査できます。
    ``step()`` は1命令 (または割り込みエントリ1回) を実行し、消費サイクル数を返します。
    """
    def __init__(self, bus: ByteBus, config: Optional[CpuConfig] = None,
                 state: Optional[Mos6502CpuState] = None):
        self._config = config if config is not None else CpuConfig()
        super().__init__(bus, state)

    @property
    def config(self) -> CpuConfig:
        return self._config

    def _create_initial_state(self) -> Mos6502CpuState:
        return Mos6502CpuState()

    @property
    def run_state(self) -> RunState:
        return self._state.run_state

    # @intent:responsibility リセットシーケンス (SP=$FD, I=1, PC=($FFFC))。
    def reset(self) -> None:
        self._cycle_count += engine.reset(self._state, self._bus)

    def _step(self) -> Tuple[int, Operation]:
        return engine.step_operation(self._state, self._bus, self._config)

    # --- 割り込み入力 ---

    def request_nmi(self) -> None:
        interrupts.request_nmi(self._state)

    def request_irq(self) -> None:
        interrupts.request_irq(self._state)

    def release_irq(self) -> None:
        interrupts.release_irq(self._state)
