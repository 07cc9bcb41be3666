# retro6502/arch/mos6502/instructions/maps.py
"""
MOS 6502 オペコード表。

オペコードバイト (0x00-0xFF) の256エントリすべてを
(ニーモニック, アドレッシングモード, 実行関数, 基本サイクル数, ページ交差ペナルティ) に対応付けます。
未定義オペコードの枠には NMOS のタイミング表に基づく best-effort のモードとサイクル数を持つ
"???" エントリが入り、実際の扱いはエンジン側のポリシーで決まります。
"""
from typing import Callable, Dict, List, NamedTuple, Optional, Tuple

from retro6502.transport.bus import ByteBus
from retro6502.config.models import CpuConfig
from retro6502.core.snapshot import Operation
from retro6502.arch.mos6502.state import Mos6502CpuState
from retro6502.arch.mos6502.instructions import load, alu, control
from retro6502.arch.mos6502.instructions.base import AddressingMode, AddressingResult, OPERAND_LENGTH

# Execution Function Type: 追加サイクル数 (分岐) を返すか None
ExecFunc = Callable[[Mos6502CpuState, ByteBus, AddressingResult, CpuConfig], Optional[int]]

UNDEFINED_MNEMONIC = "???"

# @intent:data_structure オペコード表の1エントリ (不変)。
class OpcodeEntry(NamedTuple):
    mnemonic: str
    mode: AddressingMode
    execute: ExecFunc
    cycles: int
    page_penalty: bool = False  # abs,X / abs,Y / (zp),Y の読み出し命令でページ交差時に +1

    @property
    def defined(self) -> bool:
        return self.mnemonic != UNDEFINED_MNEMONIC

    @property
    def length(self) -> int:
        return 1 + OPERAND_LENGTH[self.mode]

IMP = AddressingMode.IMPLIED
ACC = AddressingMode.ACCUMULATOR
IMM = AddressingMode.IMMEDIATE
ZP = AddressingMode.ZEROPAGE
ZPX = AddressingMode.ZEROPAGE_X
ZPY = AddressingMode.ZEROPAGE_Y
ABS = AddressingMode.ABSOLUTE
ABX = AddressingMode.ABSOLUTE_X
ABY = AddressingMode.ABSOLUTE_Y
IND = AddressingMode.INDIRECT
IZX = AddressingMode.INDEXED_INDIRECT
IZY = AddressingMode.INDIRECT_INDEXED
REL = AddressingMode.RELATIVE

# (Mnemonic, Addressing Mode, Execution Function, Base Cycles[, Page Penalty])
_DEFINED: Dict[int, Tuple] = {
    # --- Load/Store/Transfer ---
    0xA9: ("LDA", IMM, load.lda, 2),
    0xA5: ("LDA", ZP, load.lda, 3),
    0xB5: ("LDA", ZPX, load.lda, 4),
    0xAD: ("LDA", ABS, load.lda, 4),
    0xBD: ("LDA", ABX, load.lda, 4, True),
    0xB9: ("LDA", ABY, load.lda, 4, True),
    0xA1: ("LDA", IZX, load.lda, 6),
    0xB1: ("LDA", IZY, load.lda, 5, True),

    0xA2: ("LDX", IMM, load.ldx, 2),
    0xA6: ("LDX", ZP, load.ldx, 3),
    0xB6: ("LDX", ZPY, load.ldx, 4),
    0xAE: ("LDX", ABS, load.ldx, 4),
    0xBE: ("LDX", ABY, load.ldx, 4, True),

    0xA0: ("LDY", IMM, load.ldy, 2),
    0xA4: ("LDY", ZP, load.ldy, 3),
    0xB4: ("LDY", ZPX, load.ldy, 4),
    0xAC: ("LDY", ABS, load.ldy, 4),
    0xBC: ("LDY", ABX, load.ldy, 4, True),

    # Stores always take the indexed worst case; no page penalty
    0x85: ("STA", ZP, load.sta, 3),
    0x95: ("STA", ZPX, load.sta, 4),
    0x8D: ("STA", ABS, load.sta, 4),
    0x9D: ("STA", ABX, load.sta, 5),
    0x99: ("STA", ABY, load.sta, 5),
    0x81: ("STA", IZX, load.sta, 6),
    0x91: ("STA", IZY, load.sta, 6),

    0x86: ("STX", ZP, load.stx, 3),
    0x96: ("STX", ZPY, load.stx, 4),
    0x8E: ("STX", ABS, load.stx, 4),

    0x84: ("STY", ZP, load.sty, 3),
    0x94: ("STY", ZPX, load.sty, 4),
    0x8C: ("STY", ABS, load.sty, 4),

    0xAA: ("TAX", IMP, load.tax, 2),
    0xA8: ("TAY", IMP, load.tay, 2),
    0x8A: ("TXA", IMP, load.txa, 2),
    0x98: ("TYA", IMP, load.tya, 2),
    0x9A: ("TXS", IMP, load.txs, 2),
    0xBA: ("TSX", IMP, load.tsx, 2),

    # --- ALU Operations ---
    0x69: ("ADC", IMM, alu.adc, 2),
    0x65: ("ADC", ZP, alu.adc, 3),
    0x75: ("ADC", ZPX, alu.adc, 4),
    0x6D: ("ADC", ABS, alu.adc, 4),
    0x7D: ("ADC", ABX, alu.adc, 4, True),
    0x79: ("ADC", ABY, alu.adc, 4, True),
    0x61: ("ADC", IZX, alu.adc, 6),
    0x71: ("ADC", IZY, alu.adc, 5, True),

    0xE9: ("SBC", IMM, alu.sbc, 2),
    0xE5: ("SBC", ZP, alu.sbc, 3),
    0xF5: ("SBC", ZPX, alu.sbc, 4),
    0xED: ("SBC", ABS, alu.sbc, 4),
    0xFD: ("SBC", ABX, alu.sbc, 4, True),
    0xF9: ("SBC", ABY, alu.sbc, 4, True),
    0xE1: ("SBC", IZX, alu.sbc, 6),
    0xF1: ("SBC", IZY, alu.sbc, 5, True),

    0xC9: ("CMP", IMM, alu.cmp, 2),
    0xC5: ("CMP", ZP, alu.cmp, 3),
    0xD5: ("CMP", ZPX, alu.cmp, 4),
    0xCD: ("CMP", ABS, alu.cmp, 4),
    0xDD: ("CMP", ABX, alu.cmp, 4, True),
    0xD9: ("CMP", ABY, alu.cmp, 4, True),
    0xC1: ("CMP", IZX, alu.cmp, 6),
    0xD1: ("CMP", IZY, alu.cmp, 5, True),

    0xE0: ("CPX", IMM, alu.cpx, 2),
    0xE4: ("CPX", ZP, alu.cpx, 3),
    0xEC: ("CPX", ABS, alu.cpx, 4),

    0xC0: ("CPY", IMM, alu.cpy, 2),
    0xC4: ("CPY", ZP, alu.cpy, 3),
    0xCC: ("CPY", ABS, alu.cpy, 4),

    0x29: ("AND", IMM, alu.and_, 2),
    0x25: ("AND", ZP, alu.and_, 3),
    0x35: ("AND", ZPX, alu.and_, 4),
    0x2D: ("AND", ABS, alu.and_, 4),
    0x3D: ("AND", ABX, alu.and_, 4, True),
    0x39: ("AND", ABY, alu.and_, 4, True),
    0x21: ("AND", IZX, alu.and_, 6),
    0x31: ("AND", IZY, alu.and_, 5, True),

    0x09: ("ORA", IMM, alu.ora, 2),
    0x05: ("ORA", ZP, alu.ora, 3),
    0x15: ("ORA", ZPX, alu.ora, 4),
    0x0D: ("ORA", ABS, alu.ora, 4),
    0x1D: ("ORA", ABX, alu.ora, 4, True),
    0x19: ("ORA", ABY, alu.ora, 4, True),
    0x01: ("ORA", IZX, alu.ora, 6),
    0x11: ("ORA", IZY, alu.ora, 5, True),

    0x49: ("EOR", IMM, alu.eor, 2),
    0x45: ("EOR", ZP, alu.eor, 3),
    0x55: ("EOR", ZPX, alu.eor, 4),
    0x4D: ("EOR", ABS, alu.eor, 4),
    0x5D: ("EOR", ABX, alu.eor, 4, True),
    0x59: ("EOR", ABY, alu.eor, 4, True),
    0x41: ("EOR", IZX, alu.eor, 6),
    0x51: ("EOR", IZY, alu.eor, 5, True),

    0x24: ("BIT", ZP, alu.bit, 3),
    0x2C: ("BIT", ABS, alu.bit, 4),

    # Shift / Rotate (read-modify-write: no page penalty)
    0x0A: ("ASL", ACC, alu.asl, 2),
    0x06: ("ASL", ZP, alu.asl, 5),
    0x16: ("ASL", ZPX, alu.asl, 6),
    0x0E: ("ASL", ABS, alu.asl, 6),
    0x1E: ("ASL", ABX, alu.asl, 7),

    0x4A: ("LSR", ACC, alu.lsr, 2),
    0x46: ("LSR", ZP, alu.lsr, 5),
    0x56: ("LSR", ZPX, alu.lsr, 6),
    0x4E: ("LSR", ABS, alu.lsr, 6),
    0x5E: ("LSR", ABX, alu.lsr, 7),

    0x2A: ("ROL", ACC, alu.rol, 2),
    0x26: ("ROL", ZP, alu.rol, 5),
    0x36: ("ROL", ZPX, alu.rol, 6),
    0x2E: ("ROL", ABS, alu.rol, 6),
    0x3E: ("ROL", ABX, alu.rol, 7),

    0x6A: ("ROR", ACC, alu.ror, 2),
    0x66: ("ROR", ZP, alu.ror, 5),
    0x76: ("ROR", ZPX, alu.ror, 6),
    0x6E: ("ROR", ABS, alu.ror, 6),
    0x7E: ("ROR", ABX, alu.ror, 7),

    0xE6: ("INC", ZP, alu.inc, 5),
    0xF6: ("INC", ZPX, alu.inc, 6),
    0xEE: ("INC", ABS, alu.inc, 6),
    0xFE: ("INC", ABX, alu.inc, 7),

    0xC6: ("DEC", ZP, alu.dec, 5),
    0xD6: ("DEC", ZPX, alu.dec, 6),
    0xCE: ("DEC", ABS, alu.dec, 6),
    0xDE: ("DEC", ABX, alu.dec, 7),

    0xE8: ("INX", IMP, alu.inx, 2),
    0xCA: ("DEX", IMP, alu.dex, 2),
    0xC8: ("INY", IMP, alu.iny, 2),
    0x88: ("DEY", IMP, alu.dey, 2),

    # --- Control Instructions ---
    # Branch: +1 if taken, +2 if taken across a page
    0x90: ("BCC", REL, control.bcc, 2),
    0xB0: ("BCS", REL, control.bcs, 2),
    0xF0: ("BEQ", REL, control.beq, 2),
    0xD0: ("BNE", REL, control.bne, 2),
    0x30: ("BMI", REL, control.bmi, 2),
    0x10: ("BPL", REL, control.bpl, 2),
    0x50: ("BVC", REL, control.bvc, 2),
    0x70: ("BVS", REL, control.bvs, 2),

    0x4C: ("JMP", ABS, control.jmp, 3),
    0x6C: ("JMP", IND, control.jmp, 5),
    0x20: ("JSR", ABS, control.jsr, 6),
    0x60: ("RTS", IMP, control.rts, 6),

    0x48: ("PHA", IMP, control.pha, 3),
    0x08: ("PHP", IMP, control.php, 3),
    0x68: ("PLA", IMP, control.pla, 4),
    0x28: ("PLP", IMP, control.plp, 4),

    0x18: ("CLC", IMP, control.clc, 2),
    0x38: ("SEC", IMP, control.sec, 2),
    0x58: ("CLI", IMP, control.cli, 2),
    0x78: ("SEI", IMP, control.sei, 2),
    0xB8: ("CLV", IMP, control.clv, 2),
    0xD8: ("CLD", IMP, control.cld, 2),
    0xF8: ("SED", IMP, control.sed, 2),

    0xEA: ("NOP", IMP, control.nop, 2),
    0x00: ("BRK", IMP, control.brk, 7),
    0x40: ("RTI", IMP, control.rti, 6),
}

# @intent:constant NMOS 6502 の全オペコードのアドレッシングモードとサイクル数 (行=上位ニブル, 列=下位ニブル)。
#                  未定義オペコードの長さとサイクル数の決定にのみ使う。
_ROW_ODD = "REL IZY IMP IZY ZPX ZPX ZPX ZPX IMP ABY IMP ABY ABX ABX ABX ABX"
_ROW_LOAD = "IMM IZX IMM IZX ZP ZP ZP ZP IMP IMM IMP IMM ABS ABS ABS ABS"
_ROW_INDEX_Y = "REL IZY IMP IZY ZPX ZPX ZPY ZPY IMP ABY IMP ABY ABX ABX ABY ABY"
_NMOS_MODE_GRID = [
    "IMP IZX IMP IZX ZP ZP ZP ZP IMP IMM ACC IMM ABS ABS ABS ABS",  # 0x
    _ROW_ODD,
    "ABS IZX IMP IZX ZP ZP ZP ZP IMP IMM ACC IMM ABS ABS ABS ABS",  # 2x
    _ROW_ODD,
    "IMP IZX IMP IZX ZP ZP ZP ZP IMP IMM ACC IMM ABS ABS ABS ABS",  # 4x
    _ROW_ODD,
    "IMP IZX IMP IZX ZP ZP ZP ZP IMP IMM ACC IMM IND ABS ABS ABS",  # 6x
    _ROW_ODD,
    _ROW_LOAD,
    _ROW_INDEX_Y,
    _ROW_LOAD,
    _ROW_INDEX_Y,
    _ROW_LOAD,
    _ROW_ODD,
    _ROW_LOAD,
    _ROW_ODD,
]
_NMOS_CYCLE_GRID = [
    "7 6 2 8 3 3 5 5 3 2 2 2 4 4 6 6",
    "2 5 2 8 4 4 6 6 2 4 2 7 4 4 7 7",
    "6 6 2 8 3 3 5 5 4 2 2 2 4 4 6 6",
    "2 5 2 8 4 4 6 6 2 4 2 7 4 4 7 7",
    "6 6 2 8 3 3 5 5 3 2 2 2 3 4 6 6",
    "2 5 2 8 4 4 6 6 2 4 2 7 4 4 7 7",
    "6 6 2 8 3 3 5 5 4 2 2 2 5 4 6 6",
    "2 5 2 8 4 4 6 6 2 4 2 7 4 4 7 7",
    "2 6 2 6 3 3 3 3 2 2 2 2 4 4 4 4",
    "2 6 2 6 4 4 4 4 2 5 2 5 5 5 5 5",
    "2 6 2 6 3 3 3 3 2 2 2 2 4 4 4 4",
    "2 5 2 5 4 4 4 4 2 4 2 4 4 4 4 4",
    "2 6 2 8 3 3 5 5 2 2 2 2 4 4 6 6",
    "2 5 2 8 4 4 6 6 2 4 2 7 4 4 7 7",
    "2 6 2 8 3 3 5 5 2 2 2 2 4 4 6 6",
    "2 5 2 8 4 4 6 6 2 4 2 7 4 4 7 7",
]
_MODE_NAMES = {"IMP": IMP, "ACC": ACC, "IMM": IMM, "ZP": ZP, "ZPX": ZPX, "ZPY": ZPY, "ABS": ABS,
               "ABX": ABX, "ABY": ABY, "IND": IND, "IZX": IZX, "IZY": IZY, "REL": REL}

# @intent:responsibility 未定義オペコード用の best-effort エントリを生成します。
# @intent:note ACC, REL, IND は定義済みオペコードの枠にしか現れない。
def _undefined_entry(opcode: int) -> OpcodeEntry:
    row, col = opcode >> 4, opcode & 0x0F
    mode = _MODE_NAMES[_NMOS_MODE_GRID[row].split()[col]]
    cycles = int(_NMOS_CYCLE_GRID[row].split()[col])
    return OpcodeEntry(UNDEFINED_MNEMONIC, mode, control.undefined, cycles)

def _build_table() -> Tuple[OpcodeEntry, ...]:
    table: List[OpcodeEntry] = []
    for opcode in range(0x100):
        row = _DEFINED.get(opcode)
        table.append(OpcodeEntry(*row) if row else _undefined_entry(opcode))
    return tuple(table)

OPCODE_TABLE: Tuple[OpcodeEntry, ...] = _build_table()

# @intent:responsibility オペコードからエントリを引きます。
def lookup(opcode: int) -> OpcodeEntry:
    return OPCODE_TABLE[opcode & 0xFF]

# @intent:responsibility 解決済みの命令をトレース用の Operation に変換します。
def build_operation(opcode: int, entry: OpcodeEntry, addr_res: AddressingResult,
                    address: int, cycles: int) -> Operation:
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic=entry.mnemonic,
        operands=[addr_res.operand_str] if addr_res.operand_str else [],
        operand_bytes=list(addr_res.operand_bytes),
        cycle_count=cycles,
        length=1 + len(addr_res.operand_bytes),
        address=address,
    )
