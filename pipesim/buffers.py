"""Pipeline latches between stages and the operand forwarding unit."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class Operand:
    """A register operand: its tag, its value and whether the value is known."""

    tag: int = 0
    valid: bool = False
    data: int = 0


@dataclass
class IFIDBuffer:
    """Latch between fetch and decode."""

    invalid: bool = True
    npc: int = -1
    instruction: int = 0xF000


@dataclass
class IDEXBuffer:
    """Latch between decode and execute."""

    invalid: bool = True
    arithmetic: bool = False
    logical: bool = False
    load: bool = False
    store: bool = False
    jump: bool = False
    bneq: bool = False
    halt: bool = False
    subop: int = 0
    npc: int = -1
    src1: Operand = field(default_factory=Operand)
    src2: Operand = field(default_factory=Operand)
    dest: Operand = field(default_factory=Operand)
    offset: int = 0
    jump_addr: int = 2


@dataclass
class EMBuffer:
    """Latch between execute and memory."""

    invalid: bool = True
    halt: bool = False
    alu_output: int = 0
    npc: int = -1
    load: bool = False
    store: bool = False
    write_to_register: bool = False
    dest: int = 0
    destval: int = 0
    validdest: bool = False


@dataclass
class MWBuffer:
    """Latch between memory and write-back."""

    load: bool = False
    alu_instr: bool = False
    halt: bool = False
    dest: int = 0
    destval: int = 0
    validdest: bool = False
    val: int = 0
    lmd: int = 0
    npc: int = -1
    invalid: bool = True


@dataclass
class WBStatus:
    """Result of the write-back stage."""

    invalid: bool = True
    ready: bool = True


@dataclass
class PipelineLatches:
    """The current contents of every inter-stage latch."""

    ifid: IFIDBuffer = field(default_factory=IFIDBuffer)
    idex: IDEXBuffer = field(default_factory=IDEXBuffer)
    em: EMBuffer = field(default_factory=EMBuffer)
    mw: MWBuffer = field(default_factory=MWBuffer)


class ForwardingUnit:
    """Looks up register values still travelling through the pipeline."""

    def __init__(self, latches: PipelineLatches) -> None:
        self.latches = latches

    def request(self, tag: int) -> int | None:
        """Take the value for ``tag`` from the nearest latch, or None if absent.

        A value that is handed out is marked so it is not forwarded again.
        """
        idex = self.latches.idex
        if not idex.invalid and idex.dest.valid and idex.dest.tag == tag:
            idex.dest.valid = False
            return idex.dest.data

        for latch in (self.latches.em, self.latches.mw):
            if not latch.invalid and latch.validdest and latch.dest == tag:
                latch.validdest = False
                return latch.destval

        return None

    def invalidate(self, tag: int) -> None:
        """Stop every latch from forwarding a value for ``tag``."""
        idex = self.latches.idex
        if not idex.invalid and idex.dest.valid and idex.dest.tag == tag:
            idex.dest.valid = False

        for latch in (self.latches.em, self.latches.mw):
            if not latch.invalid and latch.validdest and latch.dest == tag:
                latch.validdest = False