# retro6502/core/state.py
"""
Core Layer (CPU状態)

CPUの基本的な状態（レジスタ群）を保持するデータ構造を定義します。
"""
import copy
from dataclasses import dataclass

# @intent:responsibility CPUのレジスタ状態を保持します。アーキテクチャ固有のレジスタはこれを拡張します。
@dataclass
class CpuState:
    """
    全アーキテクチャ共通の最小限のレジスタ状態。
    """
    pc: int = 0x0000  # Program Counter
    sp: int = 0x0000  # Stack Pointer

    # @intent:responsibility Snapshot 用の独立したコピーを返します。
    def copy(self) -> "CpuState":
        return copy.deepcopy(self)
