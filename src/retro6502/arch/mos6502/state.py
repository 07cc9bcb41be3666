# retro6502/arch/mos6502/state.py
"""
MOS 6502 CPUの状態定義。
"""
from dataclasses import dataclass, field
from enum import Enum

from retro6502.core.state import CpuState
from retro6502.arch.mos6502.flags import StatusRegister

STACK_PAGE = 0x0100

# @intent:responsibility 実行エンジンのライフサイクル状態を定義します。
class RunState(Enum):
    RESET = "RESET"                          # 電源投入直後。最初の step() でリセットシーケンスを実行
    RUNNING = "RUNNING"
    INTERRUPT_PENDING = "INTERRUPT_PENDING"  # 次の step() で割り込みシーケンスを実行
    HALTED = "HALTED"                        # strictモードで未定義オペコードに遭遇した

# @intent:responsibility MOS 6502 CPUの状態（レジスタ、フラグ、割り込み入力）を保持する。
# @intent:rationale ホストが生成・所有する唯一の可変レコードです。エンジンはこれを引数で受け取り、
#                  プロセス全体で共有される状態を持ちません。
@dataclass
class Mos6502CpuState(CpuState):
    """
    MOS 6502 CPUのレジスタ状態。sp はスタックページ内の8bitオフセット。
    """
    sp: int = 0xFD
    a: int = 0
    x: int = 0
    y: int = 0
    p: StatusRegister = field(default_factory=StatusRegister)
    # Host-driven interrupt inputs
    nmi_pending: bool = False  # エッジ検出済みのNMIラッチ
    irq_line: bool = False     # IRQ はレベルトリガ。ホストが解除するまでアサートされ続ける
    run_state: RunState = RunState.RESET

    # @intent:responsibility フラグの状態を取得するヘルパープロパティ。
    @property
    def flag_c(self) -> bool: return self.p.c
    @property
    def flag_z(self) -> bool: return self.p.z
    @property
    def flag_i(self) -> bool: return self.p.i
    @property
    def flag_d(self) -> bool: return self.p.d
    @property
    def flag_v(self) -> bool: return self.p.v
    @property
    def flag_n(self) -> bool: return self.p.n

    # @intent:responsibility スタックポインタを物理アドレス ($0100 + S) として返します。
    @property
    def stack_address(self) -> int:
        return STACK_PAGE | (self.sp & 0xFF)
