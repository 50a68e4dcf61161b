"""Little-endian memory access and stack helpers."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .register import Register

STACK_WORD_SIZE = 2


class MemoryOutOfBoundsError(IndexError):
    """Raised when an access reaches past the end of memory."""


def _check_bounds(memory, offset: int, size: int) -> None:
    if offset < 0 or len(memory) < offset + size:
        raise MemoryOutOfBoundsError(
            f"access of {size} byte(s) at offset {offset:#x} exceeds memory of {len(memory):#x} bytes"
        )


def read_from_offset(memory, offset: int, size: int = 1, signed: bool = False) -> int:
    """Read a little-endian integer of ``size`` bytes at ``offset``."""
    _check_bounds(memory, offset, size)
    return int.from_bytes(memory[offset:offset + size], "little", signed=signed)


def write_at_offset(memory: bytearray, offset: int, value: int, size: int = 1) -> None:
    """Write ``value`` as a little-endian integer of ``size`` bytes at ``offset``.

    The value wraps to the given width.
    """
    _check_bounds(memory, offset, size)
    wrapped = value & ((1 << (8 * size)) - 1)
    memory[offset:offset + size] = wrapped.to_bytes(size, "little")


def read_next(memory, size: int = 1, signed: bool = False) -> int:
    """Read an integer at the start of ``memory``."""
    return read_from_offset(memory, 0, size, signed)


def read_after_opcode(memory, size: int = 1, signed: bool = False) -> int:
    """Read an integer right after the opcode byte at the start of ``memory``."""
    return read_from_offset(memory, 1, size, signed)


def pop_stack(register: Register, memory) -> int:
    """Pop a 16-bit word from the stack and advance the stack pointer."""
    value = read_from_offset(memory, register.sp, STACK_WORD_SIZE)
    register.sp = (register.sp + STACK_WORD_SIZE) & 0xFFFF
    return value


def push_stack(register: Register, memory: bytearray, value: int) -> None:
    """Push a 16-bit word onto the stack, moving the stack pointer down."""
    new_sp = register.sp - STACK_WORD_SIZE
    if new_sp < 0:
        raise MemoryOutOfBoundsError(f"stack pointer {register.sp:#x} underflows on push")
    write_at_offset(memory, new_sp, value, STACK_WORD_SIZE)
    register.sp = new_sp