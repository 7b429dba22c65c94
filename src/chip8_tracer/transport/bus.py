# src/chip8_tracer/transport/bus.py
"""
Transport Layer (メモリバス)

CHIP-8の4KBアドレス空間を、登録された記憶デバイスへの読み書きとして提供します。
命令の実行中に発生したアクセスはすべて記録され、サイクルごとのSnapshotに添付されます。
ローダーやインスペクタのように実行とは無関係なアクセスには、記録を残さない経路(load/peek/dump)を使います。
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import List, NamedTuple

from chip8_tracer.common.errors import MemoryAccessError


class BusAccessType(Enum):
    READ = "READ"
    WRITE = "WRITE"


# @intent:responsibility 1バイト分のアクセス記録です。
@dataclass(frozen=True)
class BusAccess:
    address: int
    data: int
    access_type: BusAccessType


# @intent:responsibility バスに接続できる記憶デバイスのインターフェースです。アドレスはデバイス内のオフセットです。
class Device(ABC):
    @abstractmethod
    def read(self, address: int) -> int:
        pass

    @abstractmethod
    def write(self, address: int, data: int) -> None:
        pass

    @abstractmethod
    def get_size(self) -> int:
        pass


# @intent:responsibility 固定長のバイト列としてRAMを提供します。範囲外アクセスは常に致命的エラーです。
class RAM(Device):
    def __init__(self, size: int):
        if not isinstance(size, int) or size <= 0:
            raise ValueError("RAM size must be a positive integer.")
        self._memory = bytearray(size)
        self._size = size

    def _check(self, address: int, length: int = 1) -> None:
        if address < 0 or address + length > self._size:
            if length == 1:
                message = f"Address {address} out of bounds for RAM of size {self._size}."
            else:
                message = f"Block {address}..{address + length - 1} out of bounds for RAM of size {self._size}."
            raise MemoryAccessError(message, address)

    def read(self, address: int) -> int:
        self._check(address)
        return self._memory[address]

    def write(self, address: int, data: int) -> None:
        self._check(address)
        if not 0 <= data <= 0xFF:
            raise ValueError(f"Data {data} is not an 8-bit value.")
        self._memory[address] = data

    # @intent:responsibility 連続したバイト列を一括で書き込みます。範囲外の場合は何も書き込みません。
    def load_bytes(self, address: int, data: bytes) -> None:
        self._check(address, len(data))
        self._memory[address:address + len(data)] = data

    def clear(self) -> None:
        self._memory[:] = bytes(self._size)

    def get_size(self) -> int:
        return self._size


# メモリマップの1区画
class MappedRegion(NamedTuple):
    start: int
    end: int
    device: Device

    def contains(self, address: int) -> bool:
        return self.start <= address <= self.end


class Bus:
    """
    アドレスから区画を引いてデバイスに委譲するメモリバス。

    read/write は実行時のアクセスとしてログに残り、get_and_clear_activity_log() で
    1サイクル分ずつ取り出されます。
    """
    def __init__(self):
        self._regions: List[MappedRegion] = []
        self._activity: List[BusAccess] = []

    # @intent:pre-condition 0 <= start <= end であり、デバイスの大きさは区画の大きさと一致する必要があります。
    def register_device(self, start_address: int, end_address: int, device: Device) -> None:
        if not (0 <= start_address <= end_address):
            raise ValueError("Invalid address range: start_address must be <= end_address and non-negative.")
        if not isinstance(device, Device):
            raise TypeError("Device must be an instance of a class derived from Device.")
        expected_size = end_address - start_address + 1
        if device.get_size() != expected_size:
            raise ValueError(
                f"{type(device).__name__} of {device.get_size()} bytes cannot fill "
                f"{start_address:#05x}-{end_address:#05x} ({expected_size} bytes)."
            )
        self._regions.append(MappedRegion(start_address, end_address, device))

    def _region_of(self, address: int) -> MappedRegion:
        for region in self._regions:
            if region.contains(address):
                return region
        raise MemoryAccessError(f"Address {address:#06x} not mapped to any device.", address)

    def read(self, address: int) -> int:
        region = self._region_of(address)
        data = region.device.read(address - region.start)
        self._activity.append(BusAccess(address, data, BusAccessType.READ))
        return data

    def write(self, address: int, data: int) -> None:
        region = self._region_of(address)
        region.device.write(address - region.start, data)
        self._activity.append(BusAccess(address, data, BusAccessType.WRITE))

    # @intent:responsibility 記録されたアクセスを取り出し、記録をクリアします。
    def get_and_clear_activity_log(self) -> List[BusAccess]:
        activity = self._activity
        self._activity = []
        return activity

    # --- 記録を残さないアクセス (インスペクタ、逆アセンブラ、ローダー用) ---

    def peek(self, address: int) -> int:
        region = self._region_of(address)
        return region.device.read(address - region.start)

    def dump(self, start_address: int, length: int) -> bytes:
        return bytes(self.peek(start_address + i) for i in range(length))

    # @intent:responsibility プログラムイメージやフォントを配置します。
    # @intent:post-condition 範囲のいずれかのアドレスが書き込めない場合、何も書き込まずにMemoryAccessErrorを送出します。
    def load(self, address: int, data: bytes) -> None:
        targets = [self._region_of(address + i) for i in range(len(data))]
        for i, (region, value) in enumerate(zip(targets, data)):
            region.device.write(address + i - region.start, value)
