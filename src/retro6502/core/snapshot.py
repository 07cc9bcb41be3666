# retro6502/core/snapshot.py
"""
実行状態の不変スナップショット

1ステップ実行後のCPU状態とバスアクセスを記録した不変のデータ構造を定義します。
トレース比較（差分テスト）やホスト側のデバッグ表示に用いる責務を負います。
"""
from dataclasses import dataclass, field
from typing import List

from retro6502.core.state import CpuState
from retro6502.transport.bus import BusAccess

# @intent:responsibility デコードされた命令の詳細を記録します。
@dataclass(frozen=True)
class Operation:
    """
    命令の詳細（HEX、ニーモニック、オペランド、サイクル数、バイト長）を記録するデータクラス。
    """
    opcode_hex: str  # 例: "20"
    mnemonic: str  # 例: "JSR"
    operands: List[str] = field(default_factory=list)  # 例: ["$1234"]
    operand_bytes: List[int] = field(default_factory=list)
    cycle_count: int = 0  # 実際に消費したサイクル数（ペナルティ込み）
    length: int = 1
    address: int = 0  # 命令先頭のアドレス

    # @intent:responsibility トレース行向けの逆アセンブル表現を返します。
    def text(self) -> str:
        if self.operands:
            return f"{self.mnemonic} {', '.join(self.operands)}"
        return self.mnemonic

# @intent:responsibility ある一時点におけるCPUとバスの状態を不変に記録します。
@dataclass(frozen=True)
class Snapshot:
    """
    ステップ実行直後の状態。state は生成時にコピーされるため、その後の実行で変化しません。
    """
    state: CpuState
    operation: Operation
    cycle_count: int  # 累計サイクル数
    bus_activity: List[BusAccess] = field(default_factory=list)
