from pipesim.buffers import (
    EMBuffer,
    ForwardingUnit,
    IDEXBuffer,
    IFIDBuffer,
    MWBuffer,
    Operand,
    PipelineLatches,
    WBStatus,
)


def _latches():
    return PipelineLatches()


def test_ifid_defaults():
    buf = IFIDBuffer()
    assert buf.invalid is True
    assert buf.npc == -1
    assert buf.instruction == 0xF000


def test_idex_defaults():
    buf = IDEXBuffer()
    assert buf.invalid is True
    assert buf.jump_addr == 2
    assert buf.npc == -1
    assert (buf.src1.valid, buf.src2.valid, buf.dest.valid) == (False, False, False)


def test_idex_operands_are_independent():
    first = IDEXBuffer()
    second = IDEXBuffer()
    first.src1.data = 5
    assert second.src1.data == 0
    assert first.src1 is not first.src2


def test_em_and_mw_defaults():
    em = EMBuffer()
    mw = MWBuffer()
    assert (em.invalid, em.validdest, em.npc) == (True, False, -1)
    assert (mw.invalid, mw.validdest, mw.npc) == (True, False, -1)


def test_wbstatus_defaults():
    status = WBStatus()
    assert (status.invalid, status.ready) == (True, True)


def test_request_from_em_consumes_value():
    latches = _latches()
    latches.em = EMBuffer(invalid=False, dest=3, destval=77, validdest=True)
    unit = ForwardingUnit(latches)
    assert unit.request(3) == 77
    assert latches.em.validdest is False
    assert unit.request(3) is None


def test_request_prefers_idex_over_later_latches():
    latches = _latches()
    latches.idex = IDEXBuffer(invalid=False, dest=Operand(tag=4, valid=True, data=11))
    latches.em = EMBuffer(invalid=False, dest=4, destval=22, validdest=True)
    latches.mw = MWBuffer(invalid=False, dest=4, destval=33, validdest=True)
    unit = ForwardingUnit(latches)
    assert unit.request(4) == 11
    assert unit.request(4) == 22
    assert unit.request(4) == 33
    assert unit.request(4) is None


def test_request_skips_invalid_latch():
    latches = _latches()
    latches.em = EMBuffer(invalid=True, dest=2, destval=9, validdest=True)
    latches.mw = MWBuffer(invalid=False, dest=2, destval=8, validdest=True)
    unit = ForwardingUnit(latches)
    assert unit.request(2) == 8
    assert latches.em.validdest is True


def test_request_misses_other_tag():
    latches = _latches()
    latches.mw = MWBuffer(invalid=False, dest=1, destval=8, validdest=True)
    unit = ForwardingUnit(latches)
    assert unit.request(2) is None
    assert latches.mw.validdest is True


def test_unit_sees_replaced_latches():
    latches = _latches()
    unit = ForwardingUnit(latches)
    latches.mw = MWBuffer(invalid=False, dest=6, destval=12, validdest=True)
    assert unit.request(6) == 12


def test_invalidate_clears_every_match():
    latches = _latches()
    latches.idex = IDEXBuffer(invalid=False, dest=Operand(tag=5, valid=True, data=1))
    latches.em = EMBuffer(invalid=False, dest=5, destval=2, validdest=True)
    latches.mw = MWBuffer(invalid=False, dest=7, destval=3, validdest=True)
    unit = ForwardingUnit(latches)
    unit.invalidate(5)
    assert latches.idex.dest.valid is False
    assert latches.em.validdest is False
    assert latches.mw.validdest is True
    assert unit.request(5) is None