"""Decoding of machine code into operations, lengths and cycle counts."""

from __future__ import annotations

from dataclasses import dataclass
from functools import partial

from .opcodes import (
    CB,
    CP,
    CPL,
    DAA,
    LD8,
    LD16,
    AddToA,
    AddToHL,
    AddToSP,
    And,
    BitMut,
    BitMutation,
    Call,
    CBRotate,
    CBShift,
    Cond,
    Dec,
    Deref,
    Deref16,
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
    OPCode,
    Or,
    Pop,
    Ptr,
    Push,
    Reg8,
    Reg16,
    Return,
    ReturnInterrupt,
    Rotate,
    ShiftDir,
    ShiftRightKeepMSB,
    SPPlus,
    Stop,
    Sub,
    SwapNibbles,
    U8Bit,
    Unsupported,
    Xor,
)
from .util import read_next

_OPERANDS = (
    (Reg8.B, 4),
    (Reg8.C, 4),
    (Reg8.D, 4),
    (Reg8.E, 4),
    (Reg8.H, 4),
    (Reg8.L, 4),
    (DerefReg(Reg16.HL), 8),
    (Reg8.A, 4),
)
_WIDE_WITH_SP = (Reg16.BC, Reg16.DE, Reg16.HL, Reg16.SP)
_WIDE_WITH_AF = (Reg16.BC, Reg16.DE, Reg16.HL, Reg16.AF)
_PAIR_DEREFS = (DerefReg(Reg16.BC), DerefReg(Reg16.DE), HLStep.INCREMENT, HLStep.DECREMENT)
_CONDITIONS = (Cond.NZ, Cond.Z, Cond.NC, Cond.C)
_ALU = (
    partial(AddToA, with_carry=False),
    partial(AddToA, with_carry=True),
    partial(Sub, with_carry=False),
    partial(Sub, with_carry=True),
    And,
    Xor,
    Or,
    CP,
)
_UNSUPPORTED = frozenset({0xD3, 0xDB, 0xE3, 0xE4, 0xEB, 0xEC, 0xF4, 0xFC})


def _u8(memory) -> int:
    return read_next(memory, 1)


def _i8(memory) -> int:
    return read_next(memory, 1, signed=True)


def _u16(memory) -> int:
    return read_next(memory, 2)


@dataclass(frozen=True)
class Instruction:
    """A decoded operation with its length in bytes and its base cycle count."""

    op: OPCode
    length: int
    cycles: int

    @classmethod
    def read(cls, code) -> Instruction:
        """Decode the instruction at the start of ``code``.

        Raises MemoryOutOfBoundsError when ``code`` ends inside the instruction
        and ValueError for encodings the decoder rejects.
        """
        view = memoryview(code)
        opcode = _u8(view)
        memory = view[1:]
        if opcode < 0x40:
            return _read_low_block(opcode, memory)
        if opcode < 0x80:
            return _read_loads(opcode)
        if opcode < 0xC0:
            return _read_alu(opcode)
        return _read_high_block(opcode, memory)

    @classmethod
    def unsupported(cls) -> Instruction:
        return cls(Unsupported(), 0, 255)


def _read_low_block(opcode: int, memory) -> Instruction:
    column = opcode % 8
    if column == 0:
        return _read_x0_x8(opcode, memory)
    if column == 1:
        if opcode % 16 == 1:
            reg = _WIDE_WITH_SP[opcode // 16]
            return Instruction(LD16(reg, _u16(memory)), 3, 12)
        return Instruction(AddToHL(_WIDE_WITH_SP[opcode // 16]), 1, 8)
    if column in (2, 6):
        return _read_x2_x6_xa_xe(opcode, memory)
    if column == 3:
        packed = (opcode - 3) // 8
        reg = _WIDE_WITH_SP[packed // 2]
        op = Inc(reg) if packed % 2 == 0 else Dec(reg)
        return Instruction(op, 1, 8)
    if column in (4, 5):
        var, cycles = _OPERANDS[(opcode - 4) // 8]
        op = Inc(var) if column == 4 else Dec(var)
        return Instruction(op, 1, cycles * 2 - 4)
    return _read_x7_xf(opcode)


def _read_x0_x8(opcode: int, memory) -> Instruction:
    row = opcode // 8
    if row == 0:
        return Instruction(Nop(), 1, 4)
    if row == 1:
        return Instruction(LD16(Deref16(_u16(memory)), Reg16.SP), 3, 20)
    if row == 2:
        return Instruction(Stop(), 2, 4)
    cond = None if row == 3 else _CONDITIONS[row - 4]
    return Instruction(Jump(cond, 4, Offset(_i8(memory))), 2, 8)


def _read_x2_x6_xa_xe(opcode: int, memory) -> Instruction:
    packed = (opcode - 2) // 4
    if packed % 2 == 0:
        # Both the x2 and the xA column decode as loads into A.
        source = _PAIR_DEREFS[packed // 4]
        return Instruction(LD8(Reg8.A, source), 1, 8)
    dst, dst_cycles = _OPERANDS[packed // 2]
    return Instruction(LD8(dst, _u8(memory)), 2, dst_cycles + 4)


def _read_x7_xf(opcode: int) -> Instruction:
    row = opcode // 8
    if row < 4:
        direction = ShiftDir.LEFT if row & 1 == 0 else ShiftDir.RIGHT
        return Instruction(Rotate(direction, row & 2 != 0), 1, 4)
    op = (DAA(), CPL(), MutCarryFlag(BitMut.SET), MutCarryFlag(BitMut.FLIP))[row - 4]
    return Instruction(op, 1, 4)


def _read_loads(opcode: int) -> Instruction:
    if opcode == 0x76:
        return Instruction(Halt(), 1, 4)
    row, column = divmod(opcode - 0x40, 8)
    dst, dst_cycles = _OPERANDS[row]
    src, src_cycles = _OPERANDS[column]
    return Instruction(LD8(dst, src), 1, dst_cycles + src_cycles - 4)


def _read_alu(opcode: int) -> Instruction:
    row, column = divmod(opcode - 0x80, 8)
    val, cycles = _OPERANDS[column]
    return Instruction(_ALU[row](val), 1, cycles)


def _read_high_block(opcode: int, memory) -> Instruction:
    row, column = divmod(opcode - 0xC0, 16)
    if column in (0, 2, 3, 4, 8, 10, 11, 12):
        if row < 2:
            return _read_branches(opcode, memory)
        if column % 8 <= 2:
            return _read_high_loads(opcode, memory)
        return _read_interrupt_toggles(opcode)
    if column in (1, 5):
        reg = _WIDE_WITH_AF[row]
        return Instruction(Pop(reg), 1, 12) if column == 1 else Instruction(Push(reg), 1, 16)
    if column in (9, 13):
        return _read_x9_xd(opcode)
    if column in (6, 14):
        return Instruction(_ALU[(opcode - 0xC0) // 8](_u8(memory)), 2, 8)
    target = Ptr(((opcode - 0xC0) // 8) * 8)
    return Instruction(Call(None, 4, target), 1, 12)


def _read_branches(opcode: int, memory) -> Instruction:
    row = (opcode - 0xC0) // 8
    column = opcode % 8
    cond = _CONDITIONS[row]
    if column == 0:
        return Instruction(Return(cond, 12), 1, 8)
    if column == 2:
        return Instruction(Jump(cond, 12, Ptr(_u16(memory))), 3, 4)
    if column == 4:
        return Instruction(Call(cond, 12, Ptr(_u16(memory))), 3, 12)
    if row == 0:
        return Instruction(Jump(None, 12, Ptr(_u16(memory))), 3, 4)
    if row == 1:
        op, length, cycles = _read_cb(memory)
        return Instruction(CB(op), length, cycles)
    return Instruction.unsupported()


def _read_high_loads(opcode: int, memory) -> Instruction:
    if opcode == 0xE0:
        return Instruction(LD8(HighDeref(_u8(memory)), Reg8.A), 2, 12)
    if opcode == 0xF0:
        _u8(memory)
        raise ValueError("opcode 0xf0 loads from the high page, which is not a readable source")
    if opcode == 0xE2:
        return Instruction(LD8(Reg8.C, Reg8.A), 2, 8)
    if opcode == 0xF2:
        return Instruction(LD8(Reg8.A, Reg8.C), 2, 8)
    if opcode == 0xE8:
        return Instruction(AddToSP(_i8(memory)), 2, 16)
    if opcode == 0xF8:
        return Instruction(LD16(Reg16.HL, SPPlus(_i8(memory))), 2, 12)
    if opcode == 0xEA:
        return Instruction(LD8(Deref(_u16(memory)), Reg8.A), 3, 16)
    return Instruction(LD8(Reg8.A, Deref(_u16(memory))), 3, 16)


def _read_interrupt_toggles(opcode: int) -> Instruction:
    if opcode == 0xF3:
        return Instruction(DisableInterrupts(), 1, 4)
    if opcode == 0xFB:
        return Instruction(EnableInterrupts(), 1, 4)
    if opcode in _UNSUPPORTED:
        return Instruction.unsupported()
    raise ValueError(f"opcode {opcode:#04x} does not belong to this column")


def _read_x9_xd(opcode: int) -> Instruction:
    if opcode % 16 not in (9, 12):
        raise ValueError(f"opcode {opcode:#04x} is not decoded")
    if opcode == 0xC9:
        return Instruction(Return(None, 12), 1, 4)
    if opcode == 0xD9:
        return Instruction(ReturnInterrupt(12), 1, 4)
    if opcode == 0xE9:
        return Instruction(Jump(None, 0, DerefHL()), 1, 12)
    return Instruction(LD16(Reg16.SP, Reg16.HL), 1, 8)


def _read_cb(memory):
    opcode = _u8(memory)
    row, column = divmod(opcode, 8)
    var, cycles = _OPERANDS[column]
    if row < 4:
        direction = ShiftDir.LEFT if row % 2 == 0 else ShiftDir.RIGHT
        op = CBRotate(direction, row >= 2, var)
    elif row == 4:
        op = CBShift(ShiftDir.LEFT, var)
    elif row == 5:
        op = ShiftRightKeepMSB(var)
    elif row == 6:
        op = SwapNibbles(var)
    elif row == 7:
        op = CBShift(ShiftDir.RIGHT, var)
    else:
        action = (BitMut.TEST, BitMut.UNSET, BitMut.SET)[(row - 8) // 8]
        op = BitMutation(action, U8Bit.from_index(row % 8), var)
    return op, 2, cycles * 2