"""Operands and decoded operations of the instruction set."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional, Union

from .register import Flag, FlagRegister, Register
from .util import read_from_offset, write_at_offset

HIGH_PAGE = 0xFF00


class Reg8(Enum):
    """An 8-bit register."""

    A = "a"
    B = "b"
    C = "c"
    D = "d"
    E = "e"
    H = "h"
    L = "l"

    def get(self, register: Register, memory) -> int:
        return getattr(register, self.value)

    def set(self, register: Register, memory, value: int) -> None:
        setattr(register, self.value, value & 0xFF)


class Reg16(Enum):
    """A 16-bit register or register pair."""

    AF = "af"
    BC = "bc"
    DE = "de"
    HL = "hl"
    SP = "sp"

    def get(self, register: Register, memory) -> int:
        return getattr(register, self.value)

    def set(self, register: Register, memory, value: int) -> None:
        setattr(register, self.value, value & 0xFFFF)


@dataclass(frozen=True)
class DerefReg:
    """The byte at the address held in a 16-bit register."""

    reg: Reg16

    def get(self, register: Register, memory) -> int:
        return read_from_offset(memory, self.reg.get(register, memory), 1)

    def set(self, register: Register, memory, value: int) -> None:
        write_at_offset(memory, self.reg.get(register, memory), value, 1)


@dataclass(frozen=True)
class Deref:
    """The byte at a fixed address."""

    addr: int

    def get(self, register: Register, memory) -> int:
        return read_from_offset(memory, self.addr, 1)

    def set(self, register: Register, memory, value: int) -> None:
        write_at_offset(memory, self.addr, value, 1)


@dataclass(frozen=True)
class DerefReg16:
    """The word at the address held in a 16-bit register."""

    reg: Reg16

    def get(self, register: Register, memory) -> int:
        return read_from_offset(memory, self.reg.get(register, memory), 2)

    def set(self, register: Register, memory, value: int) -> None:
        write_at_offset(memory, self.reg.get(register, memory), value, 2)


@dataclass(frozen=True)
class Deref16:
    """The word at a fixed address."""

    addr: int

    def get(self, register: Register, memory) -> int:
        return read_from_offset(memory, self.addr, 2)

    def set(self, register: Register, memory, value: int) -> None:
        write_at_offset(memory, self.addr, value, 2)


@dataclass(frozen=True)
class HighDeref:
    """The byte at 0xFF00 plus an 8-bit offset."""

    offset: int

    def get(self, register: Register, memory) -> int:
        return read_from_offset(memory, HIGH_PAGE + self.offset, 1)

    def set(self, register: Register, memory, value: int) -> None:
        write_at_offset(memory, HIGH_PAGE + self.offset, value, 1)


@dataclass(frozen=True)
class HighDerefReg:
    """The byte at 0xFF00 plus the value of an 8-bit register."""

    reg: Reg8

    def get(self, register: Register, memory) -> int:
        return read_from_offset(memory, HIGH_PAGE + self.reg.get(register, memory), 1)

    def set(self, register: Register, memory, value: int) -> None:
        write_at_offset(memory, HIGH_PAGE + self.reg.get(register, memory), value, 1)


class HLStep(Enum):
    """The byte at HL, with HL moved afterwards by the given step."""

    INCREMENT = 1
    DECREMENT = -1


@dataclass(frozen=True)
class SPPlus:
    """SP plus a signed 8-bit offset."""

    offset: int


Var8 = Union[Reg8, DerefReg, Deref]
Var8Ext = Union[Reg8, DerefReg, Deref, HighDeref, HighDerefReg, HLStep]
Var16 = Union[Reg16, DerefReg16, Deref16]
Var = Union[Var8, Var16]
Val8 = Union[Var8, int]
Val8Ext = Union[Var8, HLStep, int]
Val16Ext = Union[Var16, SPPlus, int]


class Cond(Enum):
    """Branch condition on the flag register."""

    NZ = "nz"
    Z = "z"
    NC = "nc"
    C = "c"

    def test(self, flags: FlagRegister) -> bool:
        if self is Cond.NZ:
            return not flags.contains(Flag.Z)
        if self is Cond.Z:
            return flags.contains(Flag.Z)
        if self is Cond.NC:
            return not flags.contains(Flag.C)
        return flags.contains(Flag.C)


class ShiftDir(Enum):
    LEFT = "left"
    RIGHT = "right"


class BitMut(Enum):
    SET = "set"
    UNSET = "unset"
    FLIP = "flip"
    TEST = "test"


class U8Bit(IntEnum):
    """Single-bit masks of a byte."""

    BIT0 = 1 << 0
    BIT1 = 1 << 1
    BIT2 = 1 << 2
    BIT3 = 1 << 3
    BIT4 = 1 << 4
    BIT5 = 1 << 5
    BIT6 = 1 << 6
    BIT7 = 1 << 7

    @classmethod
    def from_index(cls, value: int) -> U8Bit:
        """Return the mask for bit number ``value`` (0 to 7)."""
        if not 0 <= value < 8:
            raise ValueError(f"bit index out of range: {value}")
        return cls(1 << value)


@dataclass(frozen=True)
class Offset:
    """A jump target relative to the next instruction."""

    offset: int


@dataclass(frozen=True)
class Ptr:
    """An absolute jump target."""

    addr: int


@dataclass(frozen=True)
class DerefHL:
    """A jump target taken from HL."""


PtrTarget = Union[Offset, Ptr, DerefHL]


@dataclass(frozen=True)
class CBRotate:
    """Rotate an operand; ``with_carry`` rotates through the carry flag."""

    dir: ShiftDir
    with_carry: bool
    var: Var8


@dataclass(frozen=True)
class CBShift:
    """Shift an operand, filling with zero."""

    dir: ShiftDir
    var: Var8


@dataclass(frozen=True)
class ShiftRightKeepMSB:
    var: Var8


@dataclass(frozen=True)
class SwapNibbles:
    var: Var8


@dataclass(frozen=True)
class BitMutation:
    action: BitMut
    bit: U8Bit
    var: Var8


CBPrefixedOPCode = Union[CBRotate, CBShift, ShiftRightKeepMSB, SwapNibbles, BitMutation]


@dataclass(frozen=True)
class Nop:
    pass


@dataclass(frozen=True)
class Stop:
    pass


@dataclass(frozen=True)
class Halt:
    pass


@dataclass(frozen=True)
class CB:
    """An operation from the 0xCB-prefixed table."""

    op: CBPrefixedOPCode


@dataclass(frozen=True)
class LD8:
    dst: Var8Ext
    src: Val8Ext


@dataclass(frozen=True)
class LD16:
    dst: Var16
    src: Val16Ext


@dataclass(frozen=True)
class Inc:
    var: Var


@dataclass(frozen=True)
class Dec:
    var: Var


@dataclass(frozen=True)
class AddToA:
    val: Val8
    with_carry: bool


@dataclass(frozen=True)
class AddToHL:
    reg: Reg16


@dataclass(frozen=True)
class AddToSP:
    offset: int


@dataclass(frozen=True)
class Sub:
    val: Val8
    with_carry: bool


@dataclass(frozen=True)
class And:
    val: Val8


@dataclass(frozen=True)
class Xor:
    val: Val8


@dataclass(frozen=True)
class Or:
    val: Val8


@dataclass(frozen=True)
class CP:
    val: Val8


@dataclass(frozen=True)
class DAA:
    pass


@dataclass(frozen=True)
class CPL:
    pass


@dataclass(frozen=True)
class MutCarryFlag:
    action: BitMut


@dataclass(frozen=True)
class Jump:
    cond: Optional[Cond]
    add_cycles: int
    target: PtrTarget


@dataclass(frozen=True)
class Return:
    cond: Optional[Cond]
    add_cycles: int


@dataclass(frozen=True)
class ReturnInterrupt:
    add_cycles: int


@dataclass(frozen=True)
class Call:
    cond: Optional[Cond]
    add_cycles: int
    target: PtrTarget


@dataclass(frozen=True)
class Rotate:
    """Rotate A; ``with_carry`` rotates through the carry flag."""

    dir: ShiftDir
    with_carry: bool


@dataclass(frozen=True)
class Pop:
    reg: Reg16


@dataclass(frozen=True)
class Push:
    reg: Reg16


@dataclass(frozen=True)
class DisableInterrupts:
    pass


@dataclass(frozen=True)
class EnableInterrupts:
    pass


@dataclass(frozen=True)
class Unsupported:
    pass


OPCode = Union[
    Nop, Stop, Halt, CB, LD8, LD16, Inc, Dec, AddToA, AddToHL, AddToSP, Sub, And, Xor, Or,
    CP, DAA, CPL, MutCarryFlag, Jump, Return, ReturnInterrupt, Call, Rotate, Pop, Push,
    DisableInterrupts, EnableInterrupts, Unsupported,
]