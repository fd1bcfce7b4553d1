import pytest

from pipesim.buffers import EMBuffer, ForwardingUnit, IFIDBuffer, PipelineLatches
from pipesim.components import PC, ICache, RegisterFile, Statistics
from pipesim.decode import IDRFModule, IFModule, sign_extend


def make_idrf(instruction, forwarding_enabled=True, values=None):
    rf = RegisterFile()
    if values is not None:
        rf.values = list(values)
    latches = PipelineLatches()
    stats = Statistics()
    module = IDRFModule(rf, ForwardingUnit(latches), stats, forwarding_enabled)
    module.ifid = IFIDBuffer(invalid=False, npc=2, instruction=instruction)
    return module, rf, latches, stats


REGS = [10 + i for i in range(16)]


def test_sign_extend_positive_unchanged():
    for value in range(8):
        assert sign_extend(value, 0) == value


@pytest.mark.parametrize("value", range(8, 16))
def test_sign_extend_negative_is_twos_complement(value):
    assert sign_extend(value, 1) - 256 == value - 16


def test_fetch_reads_instruction_and_advances_pc():
    icache = ICache()
    icache.load([0x12, 0x34, 0x56, 0x78])
    pc = PC()
    fetch = IFModule(pc, icache)
    buf = fetch.execute()
    assert buf.invalid is False
    assert buf.instruction == 0x1234
    assert buf.npc == pc.value == 2
    assert fetch.execute().instruction == 0x5678


def test_fetch_without_go_does_nothing():
    icache = ICache()
    icache.load([0x12, 0x34])
    pc = PC()
    fetch = IFModule(pc, icache)
    fetch.go = False
    buf = fetch.execute()
    assert buf.invalid is True
    assert pc.value == 0
    assert fetch.ready is True


def test_invalid_latch_gives_invalid_output():
    module, _, _, _ = make_idrf(0x0312)
    module.ifid.invalid = True
    buf = module.execute()
    assert buf.invalid is True
    assert module.ready is True


def test_decode_add():
    module, rf, _, _ = make_idrf(0x0312, values=REGS)
    buf = module.execute()
    assert buf.invalid is False
    assert buf.arithmetic is True and buf.logical is False
    assert buf.subop == 0
    assert buf.npc == 2
    assert (buf.src1.tag, buf.src1.data, buf.src1.valid) == (1, REGS[1], True)
    assert (buf.src2.tag, buf.src2.data, buf.src2.valid) == (2, REGS[2], True)
    assert buf.dest.tag == 3 and buf.dest.valid is False
    assert rf.is_writing[3] == 1
    assert module.ready is True


def test_decode_increment_reads_destination():
    module, rf, _, _ = make_idrf(0x3500, values=REGS)
    buf = module.execute()
    assert buf.subop == 3
    assert buf.src1.tag == 5 and buf.src1.data == REGS[5]
    assert buf.dest.tag == 5
    assert rf.is_writing[5] == 1


def test_decode_not_has_single_operand():
    module, rf, _, _ = make_idrf(0x6410, values=REGS)
    buf = module.execute()
    assert buf.logical is True
    assert buf.subop == 2
    assert buf.src1.data == REGS[1]
    assert buf.src2.valid is False
    assert rf.is_writing[4] == 1


def test_decode_load_positive_offset():
    module, rf, _, _ = make_idrf(0x8214, values=REGS)
    buf = module.execute()
    assert buf.load is True
    assert buf.src1.data == REGS[1]
    assert buf.dest.tag == 2
    assert buf.offset == 4
    assert rf.is_writing[2] == 1


def test_decode_load_negative_offset():
    module, _, _, _ = make_idrf(0x821F, values=REGS)
    buf = module.execute()
    assert buf.offset == sign_extend(0xF, 1)


def test_decode_store_fetches_value_register():
    module, rf, _, _ = make_idrf(0x9312, values=REGS)
    buf = module.execute()
    assert buf.store is True
    assert buf.src1.data == REGS[1]
    assert buf.dest.tag == 3 and buf.dest.data == REGS[3] and buf.dest.valid
    assert buf.offset == 2
    assert rf.is_writing[3] == 0


def test_decode_jump():
    module, _, _, _ = make_idrf(0xA123)
    buf = module.execute()
    assert buf.jump is True
    assert buf.jump_addr == 0x12


def test_decode_bneq():
    module, _, _, _ = make_idrf(0xB345, values=REGS)
    buf = module.execute()
    assert buf.bneq is True
    assert buf.jump_addr == 0x45
    assert buf.dest.tag == 3 and buf.dest.data == REGS[3]


def test_decode_halt():
    module, _, _, _ = make_idrf(0xF000)
    buf = module.execute()
    assert buf.halt is True
    assert buf.invalid is False
    assert module.ready is False
    assert module.ifid.invalid is True


def test_register_fetch_forwards_pending_value():
    module, rf, latches, _ = make_idrf(0x0312, values=REGS)
    rf.is_writing[1] = 1
    latches.em = EMBuffer(invalid=False, dest=1, destval=99, validdest=True)
    buf = module.execute()
    assert buf.src1.valid is True
    assert buf.src1.data == 99
    assert latches.em.validdest is False


def test_register_fetch_unavailable_forward_is_invalid():
    module, rf, _, stats = make_idrf(0x0312, values=REGS)
    rf.is_writing[2] = 1
    buf = module.execute()
    assert buf.src2.valid is False
    assert buf.invalid is False
    assert stats.data_stalls == 0


def test_stall_when_forwarding_disabled():
    module, rf, _, stats = make_idrf(0x0312, forwarding_enabled=False, values=REGS)
    rf.is_writing[1] = 1
    buf = module.execute()
    assert buf.invalid is True
    assert module.ready is False
    assert stats.data_stalls == 1
    assert stats.total_stalls == 1
    assert rf.is_writing[3] == 0


def test_destination_invalidates_older_forward():
    module, _, latches, _ = make_idrf(0x0312, values=REGS)
    latches.em = EMBuffer(invalid=False, dest=3, destval=7, validdest=True)
    module.execute()
    assert latches.em.validdest is False


def test_resolve_branch_compares_register_zero():
    module, rf, _, _ = make_idrf(0x0000, values=REGS)
    assert module.resolve_branch(REGS[0]) is True
    rf.reset()
    assert module.resolve_branch(REGS[0] + 1) is False