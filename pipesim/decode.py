"""Instruction fetch and instruction decode / register fetch stages."""

from __future__ import annotations

from .buffers import ForwardingUnit, IDEXBuffer, IFIDBuffer, Operand
from .components import PC, ICache, RegisterFile, Statistics


def sign_extend(value: int, sign: int) -> int:
    """Extend a 4-bit immediate to 8 bits using ``sign`` as its top bit."""
    return (sign << 7) | (sign << 6) | (sign << 5) | (sign << 4) | value


class IFModule:
    """Fetches the next instruction from the instruction cache."""

    def __init__(self, pc: PC, icache: ICache) -> None:
        self.pc = pc
        self.icache = icache
        self.go = True
        self.ready = True
        self.stall = False

    def execute(self) -> IFIDBuffer:
        """Fetch one instruction and advance the program counter."""
        if not self.go:
            self.ready = True
            return IFIDBuffer()
        instruction = self.icache.request(self.pc.value)
        self.pc.increment()
        self.ready = True
        return IFIDBuffer(invalid=False, npc=self.pc.value, instruction=instruction)


class IDRFModule:
    """Decodes an instruction and fetches its register operands."""

    def __init__(
        self,
        rf: RegisterFile,
        forwarding: ForwardingUnit,
        stats: Statistics,
        forwarding_enabled: bool = True,
    ) -> None:
        self.rf = rf
        self.forwarding = forwarding
        self.stats = stats
        self.forwarding_enabled = forwarding_enabled
        self.ifid = IFIDBuffer()
        self.ready = True
        self.stall = False

    def _stall(self, buf: IDEXBuffer) -> IDEXBuffer:
        self.stats.total_stalls += 1
        self.stats.data_stalls += 1
        buf.invalid = True
        self.ready = False
        return buf

    def _must_stall(self, *operands: Operand) -> bool:
        return not self.forwarding_enabled and not all(op.valid for op in operands)

    def execute(self) -> IDEXBuffer:
        """Decode the instruction held in the IF/ID latch."""
        buf = IDEXBuffer()
        if self.ifid.invalid:
            self.ready = True
            return buf

        instruction = self.ifid.instruction
        buf.npc = self.ifid.npc
        opcode = instruction >> 12
        mode = opcode >> 2
        subop = opcode & 3
        dest_a = (instruction >> 8) & 0xF
        src1_a = (instruction >> 4) & 0xF
        src2_a = instruction & 0xF

        if mode in (0, 1):
            buf.arithmetic = mode == 0
            buf.logical = mode == 1
            buf.subop = subop
            self.rf.get_busy()
            self.rf.reset()
            if mode == 0 and subop == 3:
                # Increment reads and writes the destination register.
                buf.src1 = self.register_fetch(dest_a)
                if self._must_stall(buf.src1):
                    return self._stall(buf)
                buf.dest = Operand(tag=dest_a, valid=False)
                self.forwarding.invalidate(dest_a)
            elif mode == 1 and subop == 2:
                # NOT takes a single operand.
                buf.src1 = self.register_fetch(src1_a)
                if self._must_stall(buf.src1):
                    return self._stall(buf)
                buf.src2.valid = False
                buf.dest = Operand(tag=dest_a, valid=False)
            else:
                buf.src2 = self.register_fetch(src2_a)
                buf.src1 = self.register_fetch(src1_a)
                if self._must_stall(buf.src1, buf.src2):
                    return self._stall(buf)
                buf.dest = Operand(tag=dest_a, valid=False)
                self.forwarding.invalidate(dest_a)
            self.rf.is_writing[dest_a] += 1

        elif mode == 2:
            if subop == 0:
                buf.load = True
                self.rf.get_busy()
                self.rf.reset()
                buf.src1 = self.register_fetch(src1_a)
                if self._must_stall(buf.src1):
                    return self._stall(buf)
                buf.src2.valid = False
                buf.dest = Operand(tag=dest_a, valid=False)
                self.forwarding.invalidate(dest_a)
                self.rf.is_writing[dest_a] += 1
                buf.offset = sign_extend(src2_a, src2_a >> 3)
            elif subop == 1:
                buf.store = True
                self.rf.get_busy()
                self.rf.reset()
                buf.src1 = self.register_fetch(src1_a)
                buf.src2.valid = False
                buf.dest = self.register_fetch(dest_a)
                if self._must_stall(buf.src1, buf.dest):
                    return self._stall(buf)
                buf.offset = sign_extend(src2_a, src2_a >> 3)
            elif subop == 2:
                buf.jump = True
                buf.jump_addr = (instruction >> 4) & 0xFF
            else:
                buf.bneq = True
                buf.jump_addr = instruction & 0xFF
                self.rf.get_busy()
                self.rf.reset()
                buf.dest = self.register_fetch(dest_a)
                if self._must_stall(buf.dest):
                    return self._stall(buf)

        elif mode == 3:
            buf.halt = True
            buf.invalid = False
            self.ready = False
            self.ifid.invalid = True
            return buf

        buf.invalid = False
        self.ready = True
        return buf

    def resolve_branch(self, value: int) -> bool:
        """Whether ``value`` equals the contents of register 0."""
        return value == self.rf.read(0)

    def register_fetch(self, tag: int) -> Operand:
        """Read register ``tag``, forwarding its value if a write is pending."""
        operand = Operand(tag=tag)
        if self.rf.is_writing[tag] != 0:
            if self.forwarding_enabled:
                value = self.forwarding.request(tag)
                if value is not None:
                    operand.data = value
                    operand.valid = True
        else:
            operand.data = self.rf.read(tag)
            operand.valid = True
        return operand