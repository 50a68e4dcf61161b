"""CPU registers and the arithmetic that updates the flag register."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntFlag
from typing import Optional


class Flag(IntFlag):
    """Bits of the flag register."""

    Z = 0b1000_0000
    """Zero: the result was zero, or CP found equal values."""
    N = 0b0100_0000
    """Subtract: the last math instruction was a subtraction."""
    H = 0b0010_0000
    """Half carry: carry out of the lower nibble."""
    C = 0b0001_0000
    """Carry: carry out of the last math operation."""


def _add_and_carry(a: int, b: int, bit: int) -> bool:
    limit = 1 << bit
    mask = limit - 1
    return (a & mask) + (b & mask) >= limit


def _sub_and_borrow(a: int, b: int, bit: int) -> bool:
    mask = (0x1_0000_0000 - (1 << bit)) & 0xFFFF_FFFF
    return (a & mask) - (b & mask) < 0


@dataclass
class FlagRegister:
    """The F register; arithmetic helpers update its bits as a side effect."""

    bits: int = 0

    def contains(self, flag: Flag) -> bool:
        return self.bits & flag == flag

    def set(self, flag: Flag, value: bool) -> None:
        if value:
            self.bits |= flag
        else:
            self.bits &= ~flag & 0xFF

    def add8(self, a: int, b: int) -> int:
        result = (a + b) & 0xFF
        self.set(Flag.Z, result == 0)
        self.set(Flag.N, False)
        self.set(Flag.C, _add_and_carry(a, b, 8))
        self.set(Flag.H, _add_and_carry(a, b, 4))
        return result

    def sub8(self, a: int, b: int) -> int:
        result = (a - b) & 0xFF
        self.set(Flag.Z, result == 0)
        self.set(Flag.N, True)
        self.set(Flag.C, _sub_and_borrow(a, b, 0))
        self.set(Flag.H, _sub_and_borrow(a, b, 4))
        return result

    def inc8(self, a: int) -> int:
        result = (a + 1) & 0xFF
        self.set(Flag.Z, result == 0)
        self.set(Flag.N, False)
        self.set(Flag.H, _add_and_carry(a, 1, 4))
        return result

    def dec8(self, a: int) -> int:
        result = (a - 1) & 0xFF
        self.set(Flag.Z, result == 0)
        self.set(Flag.N, True)
        self.set(Flag.H, _sub_and_borrow(a, 1, 4))
        return result

    def add16(self, a: int, b: int) -> int:
        result = (a + b) & 0xFFFF
        self.set(Flag.N, False)
        self.set(Flag.C, _add_and_carry(a, b, 16))
        self.set(Flag.H, _add_and_carry(a, b, 12))
        return result

    def add_u16_i8(self, sp: int, r: int) -> int:
        """Add a signed 8-bit offset to the stack pointer (ADD SP, r8)."""
        result = (sp + r) & 0xFFFF
        self.set(Flag.Z, False)
        self.set(Flag.N, False)
        if r >= 0:
            self.set(Flag.C, _add_and_carry(sp, r, 16))
            self.set(Flag.H, _add_and_carry(sp, r, 12))
        else:
            self.set(Flag.C, _sub_and_borrow(sp, -r, 8))
            self.set(Flag.H, _add_and_carry(sp, -r, 12))
        return result

    def set_flags(
        self,
        z: Optional[bool] = None,
        n: Optional[bool] = None,
        h: Optional[bool] = None,
        c: Optional[bool] = None,
    ) -> FlagRegister:
        """Set the given flags, leave those passed as None, and return a copy."""
        for flag, value in ((Flag.Z, z), (Flag.N, n), (Flag.H, h), (Flag.C, c)):
            if value is not None:
                self.set(flag, value)
        return FlagRegister(self.bits)


@dataclass
class Register:
    """The register file; the 16-bit pairs are views over the 8-bit registers."""

    f: FlagRegister = field(default_factory=FlagRegister)
    a: int = 0
    c: int = 0
    b: int = 0
    e: int = 0
    d: int = 0
    l: int = 0  # noqa: E741
    h: int = 0
    sp: int = 0
    pc: int = 0

    @property
    def af(self) -> int:
        return (self.a << 8) | self.f.bits

    @af.setter
    def af(self, value: int) -> None:
        self.a = (value >> 8) & 0xFF
        self.f.bits = value & 0xFF

    @property
    def bc(self) -> int:
        return (self.b << 8) | self.c

    @bc.setter
    def bc(self, value: int) -> None:
        self.b = (value >> 8) & 0xFF
        self.c = value & 0xFF

    @property
    def de(self) -> int:
        return (self.d << 8) | self.e

    @de.setter
    def de(self, value: int) -> None:
        self.d = (value >> 8) & 0xFF
        self.e = value & 0xFF

    @property
    def hl(self) -> int:
        return (self.h << 8) | self.l

    @hl.setter
    def hl(self, value: int) -> None:
        self.h = (value >> 8) & 0xFF
        self.l = value & 0xFF

    def init_sp(self) -> None:
        self.sp = 0xFFFE

    def init_pc(self) -> None:
        self.pc = 0x100