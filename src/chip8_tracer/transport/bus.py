# chip8_tracer/transport/bus.py
"""
Transport Layer (メモリ)

CHIP-8の4KBアドレス空間を、アドレス範囲ごとに登録されたデバイスの集まりとして表現します。
エンジンからの読み書きはすべてアクセスログに残り、Snapshotとウォッチ条件の評価に使われます。
"""
import bisect
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from chip8_tracer.common.errors import OutOfBounds

logger = logging.getLogger(__name__)


# @intent:responsibility アクセスの向き（読み込み/書き込み）を表します。
class BusAccessType(Enum):
    READ = "READ"
    WRITE = "WRITE"


# @intent:data_structure 1回のメモリアクセスの記録。書き込みでは previous_data に上書き前の値を持ちます。
@dataclass(frozen=True)
class BusAccess:
    address: int
    data: int
    access_type: BusAccessType
    previous_data: Optional[int] = None


# @intent:responsibility アドレス空間に接続できるデバイスの抽象インターフェースです。
class Device(ABC):
    """
    read/write に渡されるアドレスは、デバイス先頭からのオフセットです。
    """
    @abstractmethod
    def read(self, address: int) -> int:
        ...

    @abstractmethod
    def write(self, address: int, data: int) -> None:
        ...


# @intent:responsibility 読み書き可能なバイト配列（プログラム領域）です。
class RAM(Device):
    # @intent:pre-condition sizeは正の整数である必要があります。
    def __init__(self, size: int):
        if not isinstance(size, int) or size <= 0:
            raise ValueError("RAM size must be a positive integer.")
        self._cells = bytearray(size)

    @property
    def size(self) -> int:
        return len(self._cells)

    def _check_offset(self, address: int) -> None:
        if not 0 <= address < len(self._cells):
            raise IndexError(f"Offset {address:#x} is outside a {len(self._cells)}-byte {type(self).__name__}.")

    def read(self, address: int) -> int:
        self._check_offset(address)
        return self._cells[address]

    def write(self, address: int, data: int) -> None:
        self._check_offset(address)
        if not 0 <= data <= 0xFF:
            raise ValueError(f"Data {data} is not an 8-bit value.")
        self._cells[address] = data


# @intent:responsibility インタプリタ領域（フォントセットを含む）を保持する読み込み専用メモリです。
class ROM(RAM):
    """
    実行中の書き込みは黙って捨てます（警告はBusが出します）。
    内容を設定できるのは load_data だけです。
    """
    def write(self, address: int, data: int) -> None:
        self._check_offset(address)

    def load_data(self, address: int, data: int) -> None:
        super().write(address, data)


# @intent:responsibility アドレスから担当デバイスを引き、アクセスを委譲してログに記録します。
class Bus:
    """
    登録されたデバイスの並び（開始アドレス順）を保持するアドレス空間。

    read/write はエンジン用でアクセスログを残します。peek/load はデバッガ、UI、ローダー用で、
    ログを残さず、load はROMの保護も迂回します。どのデバイスにも属さないアドレスは OutOfBounds です。
    """
    def __init__(self):
        # (start, end, device) を start の昇順で保持する
        self._memory_map: List[Tuple[int, int, Device]] = []
        self._starts: List[int] = []
        self._activity: List[BusAccess] = []

    # @intent:responsibility deviceを [start_address, end_address] に割り当てます。
    # @intent:pre-condition 範囲の重複検査はしません。メモリマップの整合性はSystemBuilderが保証します。
    def register_device(self, start_address: int, end_address: int, device: Device) -> None:
        if not 0 <= start_address <= end_address:
            raise ValueError(f"Invalid address range {start_address:#x}-{end_address:#x}.")
        if not isinstance(device, Device):
            raise TypeError("Device must be an instance of a class derived from Device.")
        span = end_address - start_address + 1
        if isinstance(device, RAM) and device.size != span:
            raise ValueError(
                f"{type(device).__name__} of {device.size} bytes cannot cover {span} bytes "
                f"at {start_address:#05x}-{end_address:#05x}."
            )

        index = bisect.bisect_right(self._starts, start_address)
        self._starts.insert(index, start_address)
        self._memory_map.insert(index, (start_address, end_address, device))

    def get_address_limit(self) -> int:
        """最後にマップされたアドレスの次（4KB構成なら0x1000）。"""
        return max((end for _, end, _ in self._memory_map), default=-1) + 1

    def _resolve(self, address: int) -> Tuple[Device, int]:
        index = bisect.bisect_right(self._starts, address) - 1
        if index >= 0:
            start, end, device = self._memory_map[index]
            if address <= end:
                return device, address - start
        raise OutOfBounds(address)

    # @intent:responsibility 直前の取得以降に記録されたアクセスを返し、ログを空にします。
    def get_and_clear_activity_log(self) -> List[BusAccess]:
        activity, self._activity = self._activity, []
        return activity

    def read(self, address: int) -> int:
        device, offset = self._resolve(address)
        data = device.read(offset)
        self._activity.append(BusAccess(address, data, BusAccessType.READ))
        return data

    def write(self, address: int, data: int) -> None:
        if not 0 <= data <= 0xFF:
            raise ValueError(f"Data {data} is not an 8-bit value.")
        device, offset = self._resolve(address)
        previous = device.read(offset)
        if isinstance(device, ROM):
            logger.warning("Ignored write of %#04x to read-only address %#05x", data, address)
        device.write(offset, data)
        self._activity.append(BusAccess(address, data, BusAccessType.WRITE, previous_data=previous))

    def peek(self, address: int) -> int:
        device, offset = self._resolve(address)
        return device.read(offset)

    # @intent:responsibility ローダー用の書き込み。ROMにも書き込め、ログは残しません。
    def load(self, address: int, data: int) -> None:
        device, offset = self._resolve(address)
        if isinstance(device, ROM):
            device.load_data(offset, data)
        else:
            device.write(offset, data)
