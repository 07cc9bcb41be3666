# retro6502/transport/bus.py
"""
Transport Layer (バス)

CPUコアが要求する唯一の外部能力「16bitアドレスへの1バイト読み書き」を定義します。
アドレス空間のどこに何を配置するかはホストの責務であり、コアは関知しません。
"""
from abc import ABC, abstractmethod
from typing import List, Tuple
from dataclasses import dataclass
from enum import Enum

# @intent:responsibility バスアクセスの種別を定義します。
class BusAccessType(Enum):
    READ = "READ"
    WRITE = "WRITE"

# @intent:responsibility 個々のバスアクセス操作を記録します。
@dataclass(frozen=True)
class BusAccess:
    """
    バス上で行われた単一のアクセス（読み込みまたは書き込み）を記録するデータクラス。
    """
    address: int
    data: int
    access_type: BusAccessType

# @intent:responsibility CPUコアが消費するバス能力のインターフェースを定義します。
# @intent:rationale コアはこの2メソッドだけに依存するため、テスト用の合成メモリや
#                  任意のデバイス配線に差し替えられます。
class ByteBus(ABC):
    """
    16bitアドレス空間に対する1バイト単位の読み書き能力。
    """
    @abstractmethod
    def read_byte(self, address: int) -> int:
        """指定アドレスから8bit値を読み出します。"""

    @abstractmethod
    def write_byte(self, address: int, value: int) -> None:
        """指定アドレスへ8bit値を書き込みます。"""

    # @intent:responsibility このステップで発生したアクセス記録を返してクリアします。
    # @intent:rationale 記録を持たないバスでも Snapshot 生成が同じ経路で動くよう、既定は空リスト。
    def get_and_clear_activity_log(self) -> List[BusAccess]:
        return []

# @intent:responsibility 64KB のフラットなRAM。テストや単純なホスト向けの既定実装です。
class FlatMemory(ByteBus):
    """
    $0000-$FFFF 全域を読み書き可能なRAMとして扱うバス。
    """
    def __init__(self, initial: bytes = b""):
        if len(initial) > 0x10000:
            raise ValueError("Initial image does not fit into 64KB.")
        self._memory = bytearray(0x10000)
        self._memory[:len(initial)] = initial

    def read_byte(self, address: int) -> int:
        return self._memory[address & 0xFFFF]

    def write_byte(self, address: int, value: int) -> None:
        self._memory[address & 0xFFFF] = value & 0xFF

    # @intent:responsibility 連続したバイト列を指定アドレスから配置します（ロード用）。
    def load(self, address: int, data: bytes) -> None:
        for offset, value in enumerate(data):
            self._memory[(address + offset) & 0xFFFF] = value

# @intent:responsibility バスの抽象デバイスインターフェースを定義します。
class Device(ABC):
    """
    Bus に接続されるデバイスの抽象基底クラス。
    アドレスはデバイス内でのオフセットとして渡されます。
    """
    @abstractmethod
    def read(self, address: int) -> int:
        pass

    @abstractmethod
    def write(self, address: int, data: int) -> None:
        pass

# @intent:responsibility 基本的なRAMデバイスの機能を提供します。
class RAM(Device):
    # @intent:pre-condition sizeは正の整数である必要があります。
    def __init__(self, size: int):
        if not isinstance(size, int) or size <= 0:
            raise ValueError("RAM size must be a positive integer.")
        self._memory = bytearray(size)
        self._size = size

    def read(self, address: int) -> int:
        if not 0 <= address < self._size:
            raise IndexError(f"Address {address} out of bounds for RAM of size {self._size}.")
        return self._memory[address]

    def write(self, address: int, data: int) -> None:
        if not 0 <= address < self._size:
            raise IndexError(f"Address {address} out of bounds for RAM of size {self._size}.")
        if not 0 <= data <= 0xFF:
            raise ValueError(f"Data {data} is not an 8-bit value.")
        self._memory[address] = data

    def get_size(self) -> int:
        return self._size

# @intent:responsibility 読み込み専用メモリ(ROM)の機能を提供します。
class ROM(RAM):
    """
    CPUからの書き込みは無視されます。内容の初期化は load_data 経由で行います。
    """
    def write(self, address: int, data: int) -> None:
        if not 0 <= address < self._size:
            raise IndexError(f"Address {address} out of bounds for ROM of size {self._size}.")
        # Intentional: ROM writes are ignored as per hardware behavior.

    # @intent:responsibility ROMの内容を初期化するためのバックドアメソッドです。
    def load_data(self, address: int, data: int) -> None:
        super().write(address, data)

# @intent:responsibility アドレス範囲ごとにデバイスを割り当て、アクセスをディスパッチするバス。
# @intent:rationale 全アクセスを記録し、Snapshot に含めることで観測可能性を高めます。
class Bus(ByteBus):
    """
    メモリマップを管理し、デバイスへのアクセスを委譲する共通バス。
    """
    def __init__(self):
        # (start_address, end_address, device)
        self._memory_map: List[Tuple[int, int, Device]] = []
        self._bus_activity_log: List[BusAccess] = []

    def _log_access(self, address: int, data: int, access_type: BusAccessType) -> None:
        self._bus_activity_log.append(BusAccess(address=address, data=data, access_type=access_type))

    def get_and_clear_activity_log(self) -> List[BusAccess]:
        log = self._bus_activity_log
        self._bus_activity_log = []
        return log

    # @intent:responsibility 指定されたアドレス範囲にデバイスを登録します。
    # @intent:rationale 範囲の重複チェックは行いません。先に登録されたデバイスが優先されます。
    def register_device(self, start_address: int, end_address: int, device: Device) -> None:
        if not (0 <= start_address <= end_address):
            raise ValueError("Invalid address range: start_address must be <= end_address and non-negative.")
        if not isinstance(device, Device):
            raise TypeError("Device must be an instance of a class derived from Device.")

        if isinstance(device, RAM):
            expected_size = end_address - start_address + 1
            if device.get_size() != expected_size:
                raise ValueError(
                    f"Registered {type(device).__name__} device size ({device.get_size()} bytes) does not match "
                    f"the specified address range size ({expected_size} bytes)."
                )

        self._memory_map.append((start_address, end_address, device))

    # @intent:post-condition デバイスが見つからなかった場合、IndexErrorを発生させます。
    def _find_device(self, address: int) -> Tuple[Device, int]:
        for start, end, device in self._memory_map:
            if start <= address <= end:
                return device, address - start
        raise IndexError(f"Address {address:#06x} not mapped to any device.")

    def read_byte(self, address: int) -> int:
        device, offset = self._find_device(address)
        data = device.read(offset)
        self._log_access(address, data, BusAccessType.READ)
        return data

    def write_byte(self, address: int, value: int) -> None:
        device, offset = self._find_device(address)
        device.write(offset, value)
        self._log_access(address, value, BusAccessType.WRITE)

    # @intent:responsibility ログを記録せずに読み出します（トレースやテストの検査用）。
    def peek(self, address: int) -> int:
        device, offset = self._find_device(address)
        return device.read(offset)

    # @intent:responsibility プログラムイメージを配置します。ROMにも書き込めます。
    # @intent:rationale 実行中の書き込み(write_byte)はROMで無視される一方、ローダーは初期化のために書き込む必要があるため経路を分けています。
    def load(self, address: int, data: bytes) -> None:
        for offset, value in enumerate(data):
            device, dev_offset = self._find_device((address + offset) & 0xFFFF)
            if isinstance(device, ROM):
                device.load_data(dev_offset, value)
            else:
                device.write(dev_offset, value)
