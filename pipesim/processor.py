"""Five-stage pipelined processor and the files it writes."""

from __future__ import annotations

import copy
import itertools
import re
from collections.abc import Iterable
from dataclasses import fields
from pathlib import Path

from .buffers import ForwardingUnit, PipelineLatches, WBStatus
from .components import ALU, NUM_REGS, PC, DCache, ICache, RegisterFile, Statistics
from .decode import IDRFModule, IFModule
from .execute import EXModule
from .memory import MEMModule, WBModule

REGISTER_FILE_NAME = "RF.out.txt"
DCACHE_FILE_NAME = "D$.out.txt"
REPORT_FILE_NAME = "Output.txt"

_HEX_NUMBER = re.compile(r"[+-]?(?:0[xX])?[0-9a-fA-F]+")


class CycleLimitExceeded(RuntimeError):
    """Raised when a run goes past its allowed number of clock cycles."""


def parse_hex_values(text: str) -> list[int]:
    """Read whitespace-separated hexadecimal numbers up to the first bad word."""
    values: list[int] = []
    for word in text.split():
        if not _HEX_NUMBER.fullmatch(word):
            break
        values.append(int(word, 16))
    return values


def _hex32(value: int) -> str:
    return format(value & 0xFFFFFFFF, "x")


class Processor:
    """A pipeline of fetch, decode, execute, memory and write-back stages."""

    def __init__(
        self, forwarding_enabled: bool = True, max_cycles: int | None = None
    ) -> None:
        self.icache = ICache()
        self.dcache = DCache()
        self.rf = RegisterFile()
        self.pc = PC()
        self.alu = ALU()
        self.stats = Statistics()
        self.latches = PipelineLatches()
        self.forwarding = ForwardingUnit(self.latches)

        self.fetch = IFModule(self.pc, self.icache)
        self.decode = IDRFModule(
            self.rf, self.forwarding, self.stats, forwarding_enabled
        )
        self.ex = EXModule(self.alu, self.pc, self.forwarding, self.stats)
        self.mem = MEMModule(self.dcache)
        self.wb = WBModule(self.rf)

        self.wbstatus = WBStatus()
        self.halt = False
        self.complete = False
        self.clock_cycle = 0
        self.max_cycles = max_cycles

    def setup(
        self,
        icache_values: Iterable[int],
        dcache_values: Iterable[int],
        register_values: Iterable[int],
    ) -> None:
        """Load caches and registers; missing values become zero."""
        self.icache.load(icache_values)
        self.dcache.load(dcache_values)
        registers = list(itertools.islice(register_values, NUM_REGS))
        registers.extend([0] * (NUM_REGS - len(registers)))
        self.rf.values[:] = registers
        for counter in fields(Statistics):
            setattr(self.stats, counter.name, counter.default)

    def startup(self) -> Statistics:
        """Run from address 0 until the pipeline drains after a halt."""
        self.pc.value = 0
        self.halt = False
        self.complete = False
        self.ex.flush = False
        self.clock_cycle = 0
        self.fetch.go = True
        self.wbstatus = WBStatus()
        while not self.complete:
            if self.max_cycles is not None and self.clock_cycle >= self.max_cycles:
                raise CycleLimitExceeded(
                    f"no halt after {self.clock_cycle} clock cycles"
                )
            self.cycle()
        return self.stats

    def cycle(self) -> None:
        """Advance every stage by one clock cycle."""
        latches = self.latches
        self.clock_cycle += 1

        if not self.wb.stall:
            self.wbstatus = self.wb.execute()
        if self.fetch.go:
            latches.ifid = self.fetch.execute()
        if not self.ex.stall:
            latches.em = self.ex.execute()
        if not self.decode.stall:
            latches.idex = self.decode.execute()
        if not self.mem.stall:
            latches.mw = self.mem.execute()
        self.rf.reset()

        if self.ex.flush:
            # Discard the two instructions fetched after the branch.
            self.fetch.go = True
            self.decode.ready = True
            self.decode.stall = False
            latches.ifid.invalid = True
            latches.idex.invalid = True
            self.ex.flush = False

        self._advance()

    def _advance(self) -> None:
        """Move latch contents into every stage that can accept them."""
        chain = (
            (self.wb, "mw"),
            (self.mem, "em"),
            (self.ex, "idex"),
            (self.decode, "ifid"),
        )
        upstream = (self.fetch, self.decode, self.ex, self.mem)
        for depth, (stage, latch) in enumerate(chain):
            behind = upstream[: len(chain) - depth]
            if not stage.ready:
                self.fetch.go = False
                for waiting in behind:
                    waiting.stall = True
                if depth == 0:
                    self.complete = True
                return
            setattr(stage, latch, copy.deepcopy(getattr(self.latches, latch)))
            self.fetch.go = True
            for waiting in behind:
                waiting.stall = False
        self.fetch.go = self.fetch.ready

    def report(self) -> str:
        """The run summary as written to the report file."""
        stats = self.stats
        lines = [
            f"Total number of instructions executed: {stats.total_instructions}",
            "Number of instrcutions in each class",
            f"Arithmetic instructions              : {stats.arithmetic_instructions}",
            f"Logical instructions                 : {stats.logical_instructions}",
            f"Data instructions                    : {stats.data_instructions}",
            f"Control instructions                 : {stats.control_instructions}",
            f"Halt instructions                    : {stats.halt_instructions}",
            f"Cycles Per Instrcution               : "
            f"{stats.cpi(self.clock_cycle):g}",
            f"Total number of stalls               : {stats.total_stalls}",
            f"Data stalls (raw)                    : {stats.data_stalls}",
            f"Control stalls                       : {stats.control_stalls}",
        ]
        return "\n".join(lines) + "\n"

    def output(self, directory: str | Path = ".") -> list[Path]:
        """Write registers, data cache and report into ``directory``."""
        directory = Path(directory)
        registers = directory / REGISTER_FILE_NAME
        dcache = directory / DCACHE_FILE_NAME
        report = directory / REPORT_FILE_NAME

        registers.write_text(
            "".join(f"{_hex32(value)}\n" for value in self.rf.values), newline="\n"
        )
        dcache.write_text(
            "".join(f"{value & 0xFFFFFFFF:02x}\n" for value in self.dcache.dump()),
            newline="\n",
        )
        report.write_text(self.report(), newline="\n")
        return [registers, dcache, report]