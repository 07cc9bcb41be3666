from dataclasses import dataclass, field
from enum import Enum
from typing import List

# @intent:responsibility 未定義オペコードに遭遇したときの振る舞いを選択します。
class UndefinedOpcodePolicy(Enum):
    NOP = "nop"        # 効果なしの命令として固定サイクルで実行する
    STRICT = "strict"  # UnknownOpcodeError を送出し、エンジンを HALTED にする (差分テスト用)

# @intent:responsibility 実機の曖昧な挙動をどう扱うかを明示的に選ぶためのCPU設定。
@dataclass(frozen=True)
class CpuConfig:
    undefined_opcode_policy: UndefinedOpcodePolicy = UndefinedOpcodePolicy.NOP
    decimal_mode: bool = True     # False の場合、Dフラグは保持されるがADC/SBCは常にバイナリ演算 (2A03相当)
    brk_nmi_hijack: bool = False  # BRK実行中にNMIがラッチされていれば、BRKがNMIベクタへ飛ぶ

@dataclass
class MemoryRegion:
    start: int
    end: int
    type: str  # "RAM", "ROM"
    label: str = ""

@dataclass
class ProgramImage:
    path: str
    address: int = 0x0000
    format: str = "bin"  # "bin", "ihex"

@dataclass
class CpuInitialState:
    pc: int = 0x0000
    sp: int = 0xFD
    use_reset_vector: bool = True
    registers: dict = field(default_factory=dict)

@dataclass
class SystemConfig:
    cpu: CpuConfig = field(default_factory=CpuConfig)
    memory_map: List[MemoryRegion] = field(default_factory=list)
    initial_state: CpuInitialState = field(default_factory=CpuInitialState)
    programs: List[ProgramImage] = field(default_factory=list)
