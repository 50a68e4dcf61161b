"""Execution of decoded instructions against registers and memory."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .constants import MAIN_RAM_IN_BYTE
from .instruction import Instruction
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
    CBPrefixedOPCode,
    CBRotate,
    CBShift,
    Cond,
    Dec,
    Deref16,
    DerefHL,
    DerefReg,
    DerefReg16,
    DisableInterrupts,
    EnableInterrupts,
    Halt,
    HLStep,
    Inc,
    Jump,
    MutCarryFlag,
    Nop,
    Offset,
    Or,
    Pop,
    Ptr,
    PtrTarget,
    Push,
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
    Unsupported,
    Xor,
)
from .register import Flag, Register
from .util import pop_stack, push_stack

_MAX_INSTRUCTION_LENGTH = 3
_WIDE_OPERANDS = (Reg16, DerefReg16, Deref16)
_HL_BYTE = DerefReg(Reg16.HL)


class UnsupportedOpcodeError(Exception):
    """Raised when the CPU meets an opcode it does not execute."""

    def __init__(self, opcode: int, address: int) -> None:
        super().__init__(f"unsupported opcode {opcode:#04x} at {address:#06x}")
        self.opcode = opcode
        self.address = address


def _rotate(value: int, direction: ShiftDir, through_carry: bool, carry_in: bool) -> tuple[int, bool]:
    """Rotate a byte one place; return the new byte and the carry out."""
    if direction is ShiftDir.LEFT:
        carry_out = value & 0x80 != 0
        low = int(carry_in) if through_carry else int(carry_out)
        return ((value << 1) | low) & 0xFF, carry_out
    carry_out = value & 1 != 0
    high = (0x80 if carry_in else 0) if through_carry else (0x80 if carry_out else 0)
    return (value >> 1) | high, carry_out


@dataclass
class CPU:
    """The processor: a register file and its main memory."""

    register: Register = field(default_factory=Register)
    memory: bytearray = field(default_factory=lambda: bytearray(MAIN_RAM_IN_BYTE))

    def __post_init__(self) -> None:
        if not isinstance(self.memory, bytearray):
            self.memory = bytearray(self.memory)

    def _code(self) -> bytes:
        pc = self.register.pc
        return bytes(self.memory[pc:pc + _MAX_INSTRUCTION_LENGTH])

    def _value8(self, operand) -> int:
        if isinstance(operand, int):
            return operand
        return operand.get(self.register, self.memory)

    def _condition_met(self, cond: Optional[Cond]) -> bool:
        return cond is None or cond.test(self.register.f)

    def _resolve(self, target: PtrTarget, length: int) -> int:
        if isinstance(target, Offset):
            return (self.register.pc + target.offset + length) & 0xFFFF
        if isinstance(target, Ptr):
            return target.addr
        if isinstance(target, DerefHL):
            return self.register.hl
        raise TypeError(f"not a jump target: {target!r}")

    def _load8(self, dst, src) -> None:
        reg, mem = self.register, self.memory
        if isinstance(src, HLStep):
            value = _HL_BYTE.get(reg, mem)
            reg.hl = (reg.hl + src.value) & 0xFFFF
        else:
            value = self._value8(src)
        if isinstance(dst, HLStep):
            # As a destination only the byte at HL is written; HL keeps its value.
            _HL_BYTE.set(reg, mem, value)
        else:
            dst.set(reg, mem, value)

    def _load16(self, dst, src) -> None:
        reg, mem = self.register, self.memory
        if isinstance(src, SPPlus):
            value = reg.f.add16(reg.sp, src.offset & 0xFFFF)
        elif isinstance(src, int):
            value = src
        else:
            value = src.get(reg, mem)
        dst.set(reg, mem, value)

    def _step(self, var, delta: int) -> None:
        reg, mem = self.register, self.memory
        value = var.get(reg, mem)
        if isinstance(var, _WIDE_OPERANDS):
            var.set(reg, mem, value + delta)
        elif delta > 0:
            var.set(reg, mem, reg.f.inc8(value))
        else:
            var.set(reg, mem, reg.f.dec8(value))

    def _alu_operand(self, val, with_carry: bool) -> int:
        value = self._value8(val)
        if with_carry and self.register.f.contains(Flag.Z):
            value = (value + 1) & 0xFF
        return value

    def _daa(self) -> None:
        reg = self.register
        acc = reg.a
        low_full = acc % 16
        low_digit = low_full % 10
        low_carry = (low_full // 10) | int(reg.f.contains(Flag.H))
        high_full = acc // 16 + low_carry
        high_digit = high_full % 10
        high_carry = (high_full // 10) | int(reg.f.contains(Flag.C))
        reg.a = (high_digit * 16 + low_digit) & 0xFF
        reg.f.set_flags(reg.a == 0, None, False, high_carry > 0)

    def do_instruction(self) -> int:
        """Execute the instruction at PC and return the cycles it took."""
        reg, mem = self.register, self.memory
        flags = reg.f
        instruction = Instruction.read(self._code())
        cycles = instruction.cycles
        advance = True

        match instruction.op:
            case Unsupported():
                raise UnsupportedOpcodeError(mem[reg.pc], reg.pc)
            case Nop() | Stop() | Halt() | ReturnInterrupt() | DisableInterrupts() | EnableInterrupts():
                pass
            case CB(cb_op):
                self.do_cb_instruction(cb_op)
            case LD8(dst, src):
                self._load8(dst, src)
            case LD16(dst, src):
                self._load16(dst, src)
            case Inc(var):
                self._step(var, 1)
            case Dec(var):
                self._step(var, -1)
            case AddToA(val, with_carry):
                reg.a = flags.add8(reg.a, self._alu_operand(val, with_carry))
            case AddToHL(source):
                # Only the flags are updated; HL keeps its value.
                flags.add16(reg.hl, source.get(reg, mem))
            case AddToSP(offset):
                reg.sp = flags.add_u16_i8(reg.sp, offset)
            case Sub(val, with_carry):
                reg.a = flags.sub8(reg.a, self._alu_operand(val, with_carry))
            case And(val):
                reg.a &= self._value8(val)
                flags.set_flags(reg.a == 0, False, True, False)
            case Xor(val):
                reg.a ^= self._value8(val)
                flags.set_flags(reg.a == 0, False, False, False)
            case Or(val):
                reg.a |= self._value8(val)
                flags.set_flags(reg.a == 0, False, True, False)
            case CP(val):
                flags.sub8(reg.a, self._value8(val))
            case DAA():
                self._daa()
            case CPL():
                reg.a ^= 0xFF
                flags.set_flags(None, True, True, None)
            case MutCarryFlag(action):
                old_carry = flags.contains(Flag.C)
                new_carry = {
                    BitMut.SET: True,
                    BitMut.UNSET: False,
                    BitMut.FLIP: not old_carry,
                    BitMut.TEST: old_carry,
                }[action]
                flags.set_flags(None, False, False, new_carry)
            case Jump(cond, add_cycles, target):
                if self._condition_met(cond):
                    cycles += add_cycles
                    reg.pc = self._resolve(target, instruction.length)
                    advance = False
            case Return(cond, add_cycles):
                if self._condition_met(cond):
                    cycles += add_cycles
                    reg.pc = pop_stack(reg, mem)
                    advance = False
            case Call(cond, add_cycles, target):
                if self._condition_met(cond):
                    cycles += add_cycles
                    new_pc = self._resolve(target, instruction.length)
                    push_stack(reg, mem, reg.pc)
                    reg.pc = new_pc
                    advance = False
            case Rotate(direction, with_carry):
                reg.a, carry = _rotate(reg.a, direction, with_carry, flags.contains(Flag.C))
                flags.set_flags(False, False, False, carry)
            case Pop(target_reg):
                target_reg.set(reg, mem, pop_stack(reg, mem))
            case Push(source_reg):
                push_stack(reg, mem, source_reg.get(reg, mem))
            case other:
                raise TypeError(f"not an operation: {other!r}")

        if advance:
            reg.pc = (reg.pc + instruction.length) & 0xFFFF
        return cycles

    def do_cb_instruction(self, opcode: CBPrefixedOPCode) -> None:
        """Execute an operation from the 0xCB-prefixed table."""
        reg, mem = self.register, self.memory
        flags = reg.f

        match opcode:
            case CBRotate(direction, with_carry, var):
                value, carry = _rotate(
                    var.get(reg, mem), direction, with_carry, flags.contains(Flag.C)
                )
                var.set(reg, mem, value)
                flags.set_flags(value == 0, False, False, carry)
            case CBShift(direction, var):
                value = var.get(reg, mem)
                if direction is ShiftDir.LEFT:
                    carry = value & 0x80 != 0
                    value = (value << 1) & 0xFF
                else:
                    carry = value & 1 != 0
                    value >>= 1
                var.set(reg, mem, value)
                flags.set_flags(value == 0, False, False, carry)
            case ShiftRightKeepMSB(var):
                value = var.get(reg, mem)
                carry = value & 1 != 0
                value = (value >> 1) | (value & 0x80)
                var.set(reg, mem, value)
                flags.set_flags(value == 0, False, False, carry)
            case SwapNibbles(var):
                value = var.get(reg, mem)
                value = ((value & 0xF0) >> 4) | ((value & 0x0F) << 4)
                var.set(reg, mem, value)
                flags.set_flags(value == 0, False, False, False)
            case BitMutation(action, bit, var):
                value = var.get(reg, mem)
                mask = int(bit)
                if action is BitMut.SET:
                    var.set(reg, mem, value | mask)
                elif action is BitMut.UNSET:
                    var.set(reg, mem, value & (mask ^ 0xFF))
                elif action is BitMut.TEST:
                    flags.set_flags(value & mask != 0, False, True, None)
                else:
                    raise ValueError(f"{opcode!r} is not a 0xCB-prefixed operation")
            case other:
                raise TypeError(f"not a 0xCB-prefixed operation: {other!r}")