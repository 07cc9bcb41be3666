# retro6502/arch/mos6502/flags.py
"""
MOS 6502 ステータスレジスタ (P)。

8個のフラグビットを1バイトに詰めた小さなレコードとして表現し、
命令ロジックの各所に生のビットマスク操作が散らばらないようにします。
"""
from enum import IntFlag

# @intent:constant Pレジスタ内の各フラグのビット位置 (bit7 → bit0: N V 1 B D I Z C)。
class Flag(IntFlag):
    C = 0x01  # Carry
    Z = 0x02  # Zero
    I = 0x04  # Interrupt Disable
    D = 0x08  # Decimal Mode
    B = 0x10  # Break (スタック上のコピーにのみ現れる)
    U = 0x20  # Unused (常に1)
    V = 0x40  # Overflow
    N = 0x80  # Negative


# @intent:constant リセット直後の値 (U=1, I=1)。
RESET_VALUE = Flag.U | Flag.I


def _flag_property(flag: Flag, doc: str) -> property:
    def getter(self) -> bool:
        return bool(self._value & flag)

    def setter(self, value: bool) -> None:
        self.set(flag, value)

    return property(getter, setter, doc=doc)


# @intent:responsibility フラグの取得・設定と、命令クラスごとの更新規則を提供します。
# @intent:invariant レジスタ内では U は常に1、B は常に0。B はスタックへ積むバイトにのみ現れます。
class StatusRegister:
    """
    6502 のプロセッサステータスレジスタ。

    ``get``/``set`` による名前付きアクセスに加えて、``n``, ``v``, ``d``, ``i``,
    ``z``, ``c`` の各プロパティで読み書きできます。算術・シフト命令が共通で使う
    更新規則 (``update_nz`` など) もここにまとめ、単体でテスト可能にしています。
    """
    def __init__(self, value: int = RESET_VALUE):
        self._value = 0
        self.value = value

    n = _flag_property(Flag.N, "Negative")
    v = _flag_property(Flag.V, "Overflow")
    b = _flag_property(Flag.B, "Break (常にFalse)")
    d = _flag_property(Flag.D, "Decimal mode")
    i = _flag_property(Flag.I, "Interrupt disable")
    z = _flag_property(Flag.Z, "Zero")
    c = _flag_property(Flag.C, "Carry")

    @property
    def value(self) -> int:
        return self._value

    @value.setter
    def value(self, value: int) -> None:
        self._value = int((value & 0xFF & ~Flag.B) | Flag.U)

    def get(self, flag: Flag) -> bool:
        return bool(self._value & flag)

    # @intent:note U と B はレジスタ上では固定値のため、set しても不変条件は保たれます。
    def set(self, flag: Flag, on: bool) -> None:
        if on:
            self.value = self._value | flag
        else:
            self.value = self._value & ~flag

    # --- 命令クラスごとの更新規則 ---

    def update_nz(self, value: int) -> None:
        value &= 0xFF
        self.set(Flag.N, bool(value & 0x80))
        self.set(Flag.Z, value == 0)

    def update_carry_from_shift(self, bit: int) -> None:
        self.set(Flag.C, bool(bit))

    # @intent:note 両オペランドの符号が等しく、結果の符号がそれと異なる場合に V=1。
    def update_overflow_add(self, a: int, b: int, result: int) -> None:
        self.set(Flag.V, bool(~(a ^ b) & (a ^ result) & 0x80))

    # @intent:note a - b: オペランドの符号が異なり、結果の符号が a と異なる場合に V=1。
    def update_overflow_sub(self, a: int, b: int, result: int) -> None:
        self.set(Flag.V, bool((a ^ b) & (a ^ result) & 0x80))

    # --- スタックとの受け渡し ---

    # @intent:responsibility スタックへ積むバイトを返します。BRK/PHP では B=1、IRQ/NMI では B=0。
    def to_stack_byte(self, brk: bool) -> int:
        return int(self._value | Flag.B) if brk else self._value

    # @intent:responsibility PLP/RTI で引き出したバイトを反映します。B は破棄され、U は1になります。
    def load_from_stack(self, value: int) -> None:
        self.value = value

    def copy(self) -> "StatusRegister":
        return StatusRegister(self._value)

    def __eq__(self, other) -> bool:
        if isinstance(other, StatusRegister):
            return self._value == other._value
        return NotImplemented

    def __repr__(self) -> str:
        bits = "".join(name if self._value & flag else "-"
                       for name, flag in zip("NV1BDIZC", (Flag.N, Flag.V, Flag.U, Flag.B,
                                                          Flag.D, Flag.I, Flag.Z, Flag.C)))
        return f"StatusRegister(${self._value:02X} {bits})"
