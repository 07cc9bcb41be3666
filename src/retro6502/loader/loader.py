# retro6502/loader/loader.py
"""
プログラムローダーモジュール。
生バイナリ と Intel HEX 形式のロードをサポートします。
"""
import logging
from typing import Iterable

from retro6502.transport.bus import ByteBus

logger = logging.getLogger(__name__)

ADDRESS_SPACE = 0x10000

# @intent:responsibility バイト列をバスへ配置します。
# @intent:rationale Bus/FlatMemory は ROM を含めて書き込める load() を持つため、あればそちらを使います。
def write_block(bus: ByteBus, address: int, data: bytes) -> None:
    if address + len(data) > ADDRESS_SPACE:
        raise ValueError(f"Image of {len(data)} bytes at ${address:04X} exceeds the 64KB address space.")
    load = getattr(bus, "load", None)
    if load is not None:
        load(address, data)
        return
    for offset, value in enumerate(data):
        bus.write_byte(address + offset, value)

class BinaryLoader:
    """
    生のバイナリイメージを指定アドレスへロードするローダー。
    """
    def load_binary(self, file_path: str, bus: ByteBus, address: int = 0x0000) -> int:
        with open(file_path, 'rb') as f:
            data = f.read()
        return self.load_bytes(data, bus, address)

    def load_bytes(self, data: bytes, bus: ByteBus, address: int = 0x0000) -> int:
        write_block(bus, address, bytes(data))
        logger.debug("Loaded %d bytes at $%04X", len(data), address)
        return len(data)

class IntelHexLoader:
    """
    Intel HEX形式のファイルを解析し、データをバスにロードするローダー。
    """
    def load_intel_hex(self, file_path: str, bus: ByteBus) -> int:
        with open(file_path, 'r') as f:
            return self.load_lines(f, bus)

    # @intent:responsibility HEXレコードを行単位で解析し、データレコードをバスに書き込みます。書き込んだ総バイト数を返します。
    def load_lines(self, lines: Iterable[str], bus: ByteBus) -> int:
        extended_address = 0x0000
        total = 0

        for line_num, line in enumerate(lines, 1):
            line = line.strip()
            if not line or not line.startswith(':'):
                continue

            comment_start = line.find(';')
            if comment_start != -1:
                line = line[:comment_start].strip()

            if len(line) < 11:
                raise ValueError(f"Invalid Intel HEX record format on line {line_num}: Too short - {line}")

            try:
                record = bytes.fromhex(line[1:])
            except ValueError as e:
                raise ValueError(f"Error parsing Intel HEX line {line_num}: {line} - {e}") from e

            data_length = record[0]
            address_field = (record[1] << 8) | record[2]
            record_type = record[3]
            data = record[4:-1]
            checksum_field = record[-1]

            if len(data) != data_length:
                raise ValueError(f"Data length mismatch on line {line_num}")

            calculated_checksum = (-sum(record[:-1])) & 0xFF
            if calculated_checksum != checksum_field:
                raise ValueError(f"Checksum mismatch on line {line_num}: Calculated {calculated_checksum:02X}, Expected {checksum_field:02X}")

            if record_type == 0x00:
                write_block(bus, extended_address + address_field, data)
                total += data_length
            elif record_type == 0x01:
                break
            elif record_type == 0x02:
                extended_address = int.from_bytes(data, "big") << 4
            elif record_type == 0x04:
                extended_address = int.from_bytes(data, "big") << 16
            elif record_type in (0x03, 0x05):
                # start address records: the 6502 starts from its reset vector
                pass
            else:
                raise ValueError(f"Unknown Intel HEX record type {record_type:02X} on line {line_num}")

        logger.debug("Loaded %d bytes from Intel HEX", total)
        return total
