"""Memory access and write-back stages."""

from __future__ import annotations

import logging

from .buffers import EMBuffer, MWBuffer, WBStatus
from .components import DCache, Register, RegisterFile

logger = logging.getLogger(__name__)


class MEMModule:
    """Performs loads and stores against the data cache."""

    def __init__(self, dcache: DCache) -> None:
        self.dcache = dcache
        self.em = EMBuffer()
        self.lmd = Register()
        self.ready = True
        self.stall = False

    def execute(self) -> MWBuffer:
        """Process the instruction held in the EX/MEM latch."""
        buf = MWBuffer()
        em = self.em
        if em.invalid:
            self.ready = True
            return buf

        buf.npc = em.npc
        if em.load:
            buf.load = True
            data = self.dcache.request(em.alu_output)
            self.lmd.value = data
            buf.lmd = data
            buf.dest = em.dest
            buf.destval = data
            buf.validdest = True
        elif em.store:
            self.dcache.write(em.alu_output, em.destval)
        elif em.write_to_register:
            buf.alu_instr = True
            buf.dest = em.dest
            buf.destval = em.alu_output
            buf.validdest = True
            buf.val = em.alu_output
        elif em.halt:
            buf.halt = True
            buf.invalid = False
            self.ready = False
            em.invalid = True
            return buf

        buf.invalid = False
        self.ready = True
        return buf


class WBModule:
    """Writes results back into the register file."""

    def __init__(self, rf: RegisterFile) -> None:
        self.rf = rf
        self.mw = MWBuffer()
        self.ready = True
        self.stall = False

    def _write_back(self, dest: int, value: int) -> None:
        pending = self.rf.is_writing[dest]
        if pending == 0:
            logger.warning("rf error: no pending write to register %d", dest)
        if pending == 1:
            # Only the last outstanding writer updates the register.
            self.rf.write(dest, value)
        self.rf.is_writing[dest] -= 1

    def execute(self) -> WBStatus:
        """Process the instruction held in the MEM/WB latch."""
        mw = self.mw
        if mw.invalid:
            self.ready = True
            return WBStatus(invalid=True, ready=True)

        if mw.alu_instr:
            self._write_back(mw.dest, mw.destval)
        elif mw.load:
            self._write_back(mw.dest, mw.lmd)
        elif mw.halt:
            self.ready = False
            mw.invalid = True
            return WBStatus(invalid=False, ready=False)

        self.ready = True
        return WBStatus(invalid=False, ready=True)