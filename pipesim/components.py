"""Basic datapath components: ALU, registers, program counter and caches."""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass, field

NUM_REGS = 16
NUM_SETS = 64
BLOCK_SIZE = 4
CACHE_SIZE = NUM_SETS * BLOCK_SIZE


@dataclass
class Statistics:
    """Counters collected while the pipeline runs."""

    total_instructions: int = 0
    arithmetic_instructions: int = 0
    logical_instructions: int = 0
    data_instructions: int = 0
    control_instructions: int = 0
    halt_instructions: int = 0
    total_stalls: int = 0
    data_stalls: int = 0
    control_stalls: int = 0

    def cpi(self, cycles: int) -> float:
        """Cycles per instruction for the given cycle count."""
        if self.total_instructions == 0:
            return math.nan if cycles == 0 else math.copysign(math.inf, cycles)
        return cycles / self.total_instructions


class ALU:
    """Arithmetic and logic unit working on 8-bit values."""

    def adder(self, a: int, b: int, subtract: bool) -> int:
        result = a - b if subtract else a + b
        return result & 0xFF

    def mul(self, a: int, b: int) -> int:
        return (a * b) & 0xFF

    def and_(self, a: int, b: int) -> int:
        return a & b

    def or_(self, a: int, b: int) -> int:
        return a | b

    def not_(self, a: int) -> int:
        return ~a

    def xor(self, a: int, b: int) -> int:
        return a ^ b


@dataclass
class Register:
    """A single storage register."""

    value: int = 0


@dataclass
class PC:
    """Program counter; instructions are two bytes wide."""

    value: int = 0

    def increment(self) -> None:
        self.value += 2


@dataclass
class RegisterFile:
    """Sixteen registers with two read ports and one write port per cycle."""

    values: list[int] = field(default_factory=lambda: [0] * NUM_REGS)
    is_writing: list[int] = field(default_factory=lambda: [0] * NUM_REGS)
    request_failed: bool = False
    read1_used: bool = False
    read2_used: bool = False
    write_used: bool = False
    busy: bool = False

    def read(self, index: int) -> int:
        """Read a register through a free port; returns 0 if both are taken."""
        if not self.read1_used:
            self.read1_used = True
            return self.values[index]
        if not self.read2_used:
            self.read2_used = True
            return self.values[index]
        self.request_failed = True
        return 0

    def write(self, index: int, value: int) -> None:
        """Write a register if the write port is still free this cycle."""
        if self.write_used:
            self.request_failed = True
            return
        self.write_used = True
        self.values[index] = value

    def reset(self) -> None:
        """Free all ports for a new cycle."""
        self.request_failed = False
        self.read1_used = False
        self.read2_used = False
        self.write_used = False

    def get_busy(self) -> None:
        self.busy = True

    def relax(self) -> None:
        self.busy = False


def _check_address(addr: int) -> int:
    if not 0 <= addr < CACHE_SIZE:
        raise IndexError(f"cache address out of range: {addr}")
    return addr


def _fill(values: Iterable[int]) -> list[int]:
    data = [0] * CACHE_SIZE
    for index, value in zip(range(CACHE_SIZE), values):
        data[index] = value
    return data


class ICache:
    """Instruction cache of 64 sets holding four bytes each."""

    def __init__(self) -> None:
        self.data: list[int] = [0] * CACHE_SIZE

    def load(self, values: Iterable[int]) -> None:
        """Fill the cache from byte values; missing entries become zero."""
        self.data = _fill(values)

    def request(self, addr: int) -> int:
        """Fetch the 16-bit instruction stored big-endian at ``addr``."""
        _check_address(addr)
        block, offset = divmod(addr, BLOCK_SIZE)
        little = self.data[addr]
        if offset == BLOCK_SIZE - 1:
            # Crossing a block lands on the next block's second byte.
            offset = 0
            block = (block + 1) % NUM_SETS
        offset += 1
        big = self.data[block * BLOCK_SIZE + offset]
        return little * 256 + big


class DCache:
    """Data cache of 64 sets holding four bytes each."""

    def __init__(self) -> None:
        self.data: list[int] = [0] * CACHE_SIZE

    def load(self, values: Iterable[int]) -> None:
        """Fill the cache from byte values; missing entries become zero."""
        self.data = _fill(values)

    def request(self, addr: int) -> int:
        return self.data[_check_address(addr)]

    def write(self, addr: int, item: int) -> None:
        self.data[_check_address(addr)] = item

    def dump(self) -> list[int]:
        """All cached bytes in address order."""
        return list(self.data)