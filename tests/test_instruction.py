import pytest

from crabnage.instruction import Instruction
from crabnage.opcodes import (
    CB,
    CP,
    CPL,
    DAA,
    LD8,
    LD16,
    AddToA,
    AddToSP,
    BitMut,
    BitMutation,
    Call,
    CBRotate,
    Cond,
    Dec,
    Deref,
    DerefHL,
    DerefReg,
    DisableInterrupts,
    EnableInterrupts,
    Halt,
    HighDeref,
    HLStep,
    Inc,
    Jump,
    MutCarryFlag,
    Nop,
    Offset,
    Pop,
    Ptr,
    Push,
    Reg8,
    Reg16,
    Return,
    ReturnInterrupt,
    Rotate,
    ShiftDir,
    SPPlus,
    Sub,
    U8Bit,
    Unsupported,
)
from crabnage.util import MemoryOutOfBoundsError

REJECTED = {0xCD, 0xDD, 0xED, 0xFD, 0xF0}


def test_nop():
    assert Instruction.read(b"\x00") == Instruction(Nop(), 1, 4)


def test_unsupported_instruction():
    assert Instruction.unsupported() == Instruction(Unsupported(), 0, 255)


@pytest.mark.parametrize("opcode", [0xD3, 0xDB, 0xE3, 0xE4, 0xEB, 0xEC, 0xF4, 0xFC])
def test_unsupported_opcodes(opcode):
    assert Instruction.read(bytes([opcode, 0, 0])) == Instruction.unsupported()


def test_empty_code_raises():
    with pytest.raises(MemoryOutOfBoundsError):
        Instruction.read(b"")


def test_truncated_immediate_raises():
    with pytest.raises(MemoryOutOfBoundsError):
        Instruction.read(b"\x01\x00")


def test_halt():
    assert Instruction.read(b"\x76").op == Halt()


def test_register_loads():
    assert Instruction.read(b"\x41") == Instruction(LD8(Reg8.B, Reg8.C), 1, 4)
    assert Instruction.read(b"\x7e") == Instruction(LD8(Reg8.A, DerefReg(Reg16.HL)), 1, 8)


def test_load_block_invariants():
    for opcode in range(0x40, 0x80):
        if opcode == 0x76:
            continue
        instruction = Instruction.read(bytes([opcode]))
        assert isinstance(instruction.op, LD8)
        assert instruction.length == 1
        touches_hl = DerefReg(Reg16.HL) in (instruction.op.dst, instruction.op.src)
        assert instruction.cycles == (8 if touches_hl else 4)


@pytest.mark.parametrize(
    "opcode, reg",
    [(0x01, Reg16.BC), (0x11, Reg16.DE), (0x21, Reg16.HL), (0x31, Reg16.SP)],
)
def test_load_16bit_immediate_round_trip(opcode, reg):
    value = 0xBEEF
    instruction = Instruction.read(bytes([opcode]) + value.to_bytes(2, "little"))
    assert instruction.op == LD16(reg, value)
    assert instruction.length == 3


def test_relative_jumps():
    assert Instruction.read(b"\x18\xfe").op == Jump(None, 4, Offset(-2))
    assert Instruction.read(b"\x20\x05").op == Jump(Cond.NZ, 4, Offset(5))
    assert Instruction.read(b"\x38\x05").op == Jump(Cond.C, 4, Offset(5))


def test_pair_deref_column_loads_into_a():
    assert Instruction.read(b"\x02").op == LD8(Reg8.A, DerefReg(Reg16.BC))
    assert Instruction.read(b"\x1a").op == LD8(Reg8.A, DerefReg(Reg16.DE))
    assert Instruction.read(b"\x22").op == LD8(Reg8.A, HLStep.INCREMENT)
    assert Instruction.read(b"\x3a").op == LD8(Reg8.A, HLStep.DECREMENT)


def test_load_8bit_immediate():
    value = 0x42
    assert Instruction.read(bytes([0x06, value])) == Instruction(LD8(Reg8.B, value), 2, 8)
    hl = Instruction.read(bytes([0x36, value]))
    assert hl.op == LD8(DerefReg(Reg16.HL), value)
    assert hl.cycles == 12


def test_inc_dec():
    assert Instruction.read(b"\x03") == Instruction(Inc(Reg16.BC), 1, 8)
    assert Instruction.read(b"\x0b") == Instruction(Dec(Reg16.BC), 1, 8)
    assert Instruction.read(b"\x05") == Instruction(Dec(Reg8.B), 1, 4)
    assert Instruction.read(b"\x34") == Instruction(Inc(DerefReg(Reg16.HL)), 1, 12)


def test_accumulator_rotates_and_flag_ops():
    assert Instruction.read(b"\x07").op == Rotate(ShiftDir.LEFT, False)
    assert Instruction.read(b"\x0f").op == Rotate(ShiftDir.RIGHT, False)
    assert Instruction.read(b"\x17").op == Rotate(ShiftDir.LEFT, True)
    assert Instruction.read(b"\x1f").op == Rotate(ShiftDir.RIGHT, True)
    assert Instruction.read(b"\x27").op == DAA()
    assert Instruction.read(b"\x2f").op == CPL()
    assert Instruction.read(b"\x37").op == MutCarryFlag(BitMut.SET)
    assert Instruction.read(b"\x3f").op == MutCarryFlag(BitMut.FLIP)


def test_alu_block():
    assert Instruction.read(b"\x80") == Instruction(AddToA(Reg8.B, False), 1, 4)
    assert Instruction.read(b"\x8e") == Instruction(AddToA(DerefReg(Reg16.HL), True), 1, 8)
    assert Instruction.read(b"\x90").op == Sub(Reg8.B, False)
    assert Instruction.read(b"\xbf").op == CP(Reg8.A)


@pytest.mark.parametrize("opcode", [0xC6, 0xCE, 0xD6, 0xDE, 0xE6, 0xEE, 0xF6, 0xFE])
def test_alu_immediate(opcode):
    value = 0x99
    instruction = Instruction.read(bytes([opcode, value]))
    assert instruction.op.val == value
    assert (instruction.length, instruction.cycles) == (2, 8)


def test_restarts():
    targets = []
    for opcode in range(0xC7, 0x100, 8):
        instruction = Instruction.read(bytes([opcode]))
        assert isinstance(instruction.op, Call)
        assert instruction.op.cond is None
        targets.append(instruction.op.target.addr)
    assert targets == sorted(set(targets))
    assert all(t % 8 == 0 for t in targets)
    assert Instruction.read(b"\xff").op.target == Ptr(0x38)


def test_push_pop():
    assert Instruction.read(b"\xc1") == Instruction(Pop(Reg16.BC), 1, 12)
    assert Instruction.read(b"\xf5") == Instruction(Push(Reg16.AF), 1, 16)


def test_absolute_branches():
    addr = 0x1234
    tail = addr.to_bytes(2, "little")
    assert Instruction.read(b"\xc3" + tail) == Instruction(Jump(None, 12, Ptr(addr)), 3, 4)
    assert Instruction.read(b"\xca" + tail).op == Jump(Cond.Z, 12, Ptr(addr))
    assert Instruction.read(b"\xc4" + tail) == Instruction(Call(Cond.NZ, 12, Ptr(addr)), 3, 12)
    assert Instruction.read(b"\xd0").op == Return(Cond.NC, 12)


def test_returns_and_indirect_jump():
    assert Instruction.read(b"\xc9").op == Return(None, 12)
    assert Instruction.read(b"\xd9").op == ReturnInterrupt(12)
    assert Instruction.read(b"\xe9") == Instruction(Jump(None, 0, DerefHL()), 1, 12)
    assert Instruction.read(b"\xf9").op == LD16(Reg16.SP, Reg16.HL)


def test_high_page_and_stack_ops():
    assert Instruction.read(b"\xe0\x44").op == LD8(HighDeref(0x44), Reg8.A)
    assert Instruction.read(b"\xe2").op == LD8(Reg8.C, Reg8.A)
    assert Instruction.read(b"\xf2").op == LD8(Reg8.A, Reg8.C)
    assert Instruction.read(b"\xe8\xff").op == AddToSP(-1)
    assert Instruction.read(b"\xf8\x02").op == LD16(Reg16.HL, SPPlus(2))
    assert Instruction.read(b"\xea\x00\xc0").op == LD8(Deref(0xC000), Reg8.A)
    assert Instruction.read(b"\xfa\x00\xc0").op == LD8(Reg8.A, Deref(0xC000))


def test_interrupt_toggles():
    assert Instruction.read(b"\xf3").op == DisableInterrupts()
    assert Instruction.read(b"\xfb").op == EnableInterrupts()


@pytest.mark.parametrize("opcode", sorted(REJECTED))
def test_rejected_opcodes(opcode):
    with pytest.raises(ValueError):
        Instruction.read(bytes([opcode, 0, 0]))


def test_cb_prefixed():
    assert Instruction.read(b"\xcb\x00") == Instruction(
        CB(CBRotate(ShiftDir.LEFT, False, Reg8.B)), 2, 8
    )
    assert Instruction.read(b"\xcb\x7c").op == CB(BitMutation(BitMut.TEST, U8Bit.BIT7, Reg8.H))
    set_hl = Instruction.read(b"\xcb\xc6")
    assert set_hl.op == CB(BitMutation(BitMut.SET, U8Bit.BIT0, DerefReg(Reg16.HL)))
    assert set_hl.cycles == 16


def test_cb_prefix_needs_second_byte():
    with pytest.raises(MemoryOutOfBoundsError):
        Instruction.read(b"\xcb")