"""Execute stage: ALU operations, address calculation and branch resolution."""

from __future__ import annotations

from collections.abc import Callable

from .buffers import EMBuffer, ForwardingUnit, IDEXBuffer, Operand
from .components import ALU, PC, Register, Statistics


class _OperandUnavailable(Exception):
    """Raised when a source operand cannot be obtained this cycle."""


class EXModule:
    """Executes the instruction held in the ID/EX latch.

    A taken jump or a resolved branch rewrites the program counter and raises
    ``flush`` so the pipeline discards the two younger instructions.
    """

    def __init__(
        self,
        alu: ALU,
        pc: PC,
        forwarding: ForwardingUnit,
        stats: Statistics,
    ) -> None:
        self.alu = alu
        self.pc = pc
        self.forwarding = forwarding
        self.stats = stats
        self.idex = IDEXBuffer()
        self.inc = Register(1)
        self.flush = False
        self.ready = True
        self.stall = False

    def _resolve(self, operand: Operand) -> int:
        """Value of ``operand``, taking it from the forwarding unit if needed."""
        if operand.valid:
            return operand.data
        value = self.forwarding.request(operand.tag)
        if value is None:
            raise _OperandUnavailable
        operand.data = value
        operand.valid = True
        return value

    def _arithmetic(self, subop: int) -> int:
        idex = self.idex
        alu = self.alu
        if subop == 3:
            return alu.adder(self._resolve(idex.src1), self.inc.value, False)
        operations: dict[int, Callable[[int, int], int]] = {
            2: alu.mul,
            1: lambda a, b: alu.adder(a, b, True),
            0: lambda a, b: alu.adder(a, b, False),
        }
        first = self._resolve(idex.src1)
        second = self._resolve(idex.src2)
        return operations[subop](first, second)

    def _logical(self, subop: int) -> int:
        idex = self.idex
        alu = self.alu
        if subop == 2:
            return alu.not_(self._resolve(idex.src1))
        operations: dict[int, Callable[[int, int], int]] = {
            3: alu.xor,
            1: alu.or_,
            0: alu.and_,
        }
        first = self._resolve(idex.src1)
        second = self._resolve(idex.src2)
        return operations[subop](first, second)

    def _redirect(self, buf: EMBuffer, target: int) -> EMBuffer:
        """Point the program counter at ``target`` and flush the pipeline."""
        self.pc.value = target
        self.stats.total_instructions += 1
        self.stats.control_stalls += 2
        self.stats.total_stalls += 2
        self.flush = True
        buf.invalid = True
        self.ready = True
        return buf

    def execute(self) -> EMBuffer:
        """Process the instruction held in the ID/EX latch."""
        buf = EMBuffer()
        idex = self.idex
        if idex.invalid:
            self.ready = True
            return buf

        buf.npc = idex.npc
        stats = self.stats
        try:
            if idex.arithmetic or idex.logical:
                if idex.arithmetic:
                    value = self._arithmetic(idex.subop)
                else:
                    value = self._logical(idex.subop)
                buf.write_to_register = True
                buf.dest = idex.dest.tag
                buf.alu_output = value
                buf.destval = value
                buf.validdest = True
                if idex.arithmetic:
                    stats.arithmetic_instructions += 1
                else:
                    stats.logical_instructions += 1
            elif idex.load:
                buf.load = True
                base = self._resolve(idex.src1)
                buf.alu_output = self.alu.adder(base, idex.offset, False)
                buf.dest = idex.dest.tag
                buf.validdest = idex.dest.valid
                stats.data_instructions += 1
            elif idex.store:
                buf.store = True
                base = self._resolve(idex.src1)
                buf.alu_output = self.alu.adder(base, idex.offset, False)
                buf.dest = idex.dest.tag
                buf.destval = idex.dest.data
                buf.validdest = idex.dest.valid
                stats.data_instructions += 1
            elif idex.jump:
                stats.control_instructions += 1
                target = self.alu.adder(idex.npc, idex.jump_addr << 1, False)
                buf.alu_output = target
                return self._redirect(buf, target)
            elif idex.bneq:
                stats.control_instructions += 1
                if self._resolve(idex.dest) == 0:
                    target = self.alu.adder(
                        idex.npc, (idex.jump_addr << 1) & 0xFF, False
                    )
                    buf.alu_output = target
                else:
                    target = idex.npc
                return self._redirect(buf, target)
            elif idex.halt:
                stats.halt_instructions += 1
                stats.total_instructions += 1
                buf.halt = True
                buf.invalid = False
                self.ready = False
                idex.invalid = True
                return buf
        except _OperandUnavailable:
            stats.total_stalls += 1
            stats.data_stalls += 1
            buf.invalid = True
            self.ready = False
            return buf

        stats.total_instructions += 1
        buf.invalid = False
        self.ready = True
        return buf