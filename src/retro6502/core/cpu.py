# retro6502/core/cpu.py
"""
Core Layer (抽象CPU)

ホストから見たCPUの基本インターフェース（リセット、1ステップ実行、累計サイクル、
直近のスナップショット）を提供します。具体的な命令の振る舞いはアーキテクチャ層に移譲されます。
"""
from abc import ABC, abstractmethod
from typing import Optional, Tuple

from retro6502.transport.bus import ByteBus
from retro6502.core.snapshot import Snapshot, Operation
from retro6502.core.state import CpuState

# @intent:responsibility 抽象CPUの基本機能とインターフェースを定義します。
class AbstractCpu(ABC):
    """
    全てのCPUエミュレーションの基底となる抽象クラス。
    """
    # @intent:pre-condition `bus`は ByteBus を実装している必要があります。
    def __init__(self, bus: ByteBus, state: Optional[CpuState] = None):
        self._bus = bus
        self._state: CpuState = state if state is not None else self._create_initial_state()
        self._cycle_count: int = 0
        self._last_snapshot: Optional[Snapshot] = None

    # @intent:rationale 各CPUアーキテクチャで初期状態が異なるため、抽象メソッドとして定義します。
    @abstractmethod
    def _create_initial_state(self) -> CpuState:
        pass

    # @intent:responsibility アーキテクチャ固有の1ステップ実行。(消費サイクル数, 実行内容) を返します。
    @abstractmethod
    def _step(self) -> Tuple[int, Operation]:
        pass

    @abstractmethod
    def reset(self) -> None:
        pass

    @property
    def state(self) -> CpuState:
        return self._state

    @property
    def bus(self) -> ByteBus:
        return self._bus

    # @intent:responsibility 起動からの累計サイクル数。
    @property
    def cycle_count(self) -> int:
        return self._cycle_count

    @property
    def last_snapshot(self) -> Optional[Snapshot]:
        return self._last_snapshot

    # @intent:responsibility CPUを1ステップ進め、消費サイクル数を返します。
    # @intent:rationale Template Methodパターン。共通の流れ（ログクリア→実行→サイクル加算→Snapshot生成）をここで定義します。
    def step(self) -> int:
        self._bus.get_and_clear_activity_log()
        cycles, operation = self._step()
        self._cycle_count += cycles
        self._last_snapshot = self._create_snapshot(operation)
        return cycles

    def _create_snapshot(self, operation: Operation) -> Snapshot:
        return Snapshot(
            state=self._state.copy(),
            operation=operation,
            cycle_count=self._cycle_count,
            bus_activity=self._bus.get_and_clear_activity_log(),
        )
