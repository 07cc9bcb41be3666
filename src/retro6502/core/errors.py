# retro6502/core/errors.py
"""
コアが呼び出し元へ返す例外の定義。

6502の命令セット自体には実行時フォールトが存在しないため、ここで定義するのは
診断用（strictモード）とホストの誤用を知らせるためのものだけです。
"""

class Mos6502Error(Exception):
    """retro6502 が送出する例外の基底クラス。"""


# @intent:responsibility strictモードで未定義オペコードを検出したことを通知します。
class UnknownOpcodeError(Mos6502Error):
    def __init__(self, opcode: int, address: int):
        self.opcode = opcode
        self.address = address
        super().__init__(f"Unknown opcode ${opcode:02X} at ${address:04X}")


# @intent:responsibility HALTED 状態のエンジンを進めようとしたことを通知します。
class CpuHaltedError(Mos6502Error):
    def __init__(self, pc: int):
        self.pc = pc
        super().__init__(f"CPU is halted at ${pc:04X}; call reset() before stepping")


class ConfigError(Mos6502Error, ValueError):
    """設定値が不正な場合に送出されます。"""
