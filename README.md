# crabnage

The processor core of a Game Boy style emulator. It decodes the 8-bit
instruction set, including the `0xCB`-prefixed instructions, and runs it
one instruction at a time against a register file and 8 KiB of main
memory.

## Installation

```
pip install .
```

To run the tests, install the test extra and call pytest:

```
pip install ".[test]"
pytest
```

## Modules

- `crabnage.constants`: hardware figures such as `MAIN_RAM_IN_BYTE`,
  `VIDEO_RAM_IN_BYTE`, `RESOLUTION`, `CLOCK_SPEED_IN_HERZ` and the sync
  rates.
- `crabnage.register`: `Register`, the register file (`a`, `b`, `c`,
  `d`, `e`, `h`, `l`, `sp`, `pc` and the flag register `f`), with the
  pairs `af`, `bc`, `de` and `hl` as properties over the 8-bit registers.
  `init_sp()` sets SP to `0xFFFE` and `init_pc()` sets PC to `0x100`.
  `FlagRegister` holds the `Flag` bits (Z, N, H, C) and the arithmetic
  helpers that set flags as they compute: `add8`, `sub8`, `inc8`, `dec8`,
  `add16`, `add_u16_i8`, plus `set_flags`.
- `crabnage.util`: little-endian memory access (`read_from_offset`,
  `write_at_offset`, `read_next`, `read_after_opcode`) and the 16-bit
  stack helpers `push_stack` and `pop_stack`. An access outside memory,
  and a push that would move SP below zero, raises
  `MemoryOutOfBoundsError`.
- `crabnage.opcodes`: the decoded form of an instruction: operand kinds
  (`Reg8`, `Reg16`, `DerefReg`, `Deref`, `DerefReg16`, `Deref16`,
  `HighDeref`, `HighDerefReg`, `HLStep`, `SPPlus`), conditions (`Cond`),
  jump targets (`Offset`, `Ptr`, `DerefHL`) and one frozen dataclass per
  operation (`LD8`, `AddToA`, `Jump`, `Call`, `CBRotate`, `BitMutation`
  and so on).
- `crabnage.instruction`: `Instruction.read(code)` decodes the bytes at
  the start of `code` into `op`, `length` in bytes and base `cycles`.
- `crabnage.cpu`: `CPU`, with `do_instruction()` to run the instruction
  at PC and `do_cb_instruction(op)` to run one `0xCB`-prefixed operation.

## Example

```python
from crabnage.cpu import CPU
from crabnage.instruction import Instruction

cpu = CPU()
cpu.memory[0:2] = bytes([0x3E, 0x42])    # LD A, 0x42
cycles = cpu.do_instruction()
assert cpu.register.a == 0x42
assert cpu.register.pc == 2

decoded = Instruction.read(bytes([0x00]))  # NOP
print(decoded.op, decoded.length, decoded.cycles)
```

`CPU.do_instruction` returns the number of cycles the instruction took,
including the extra cycles of a taken jump, call or return. It raises
`UnsupportedOpcodeError` for opcodes the processor does not define
(such as `0xD3` or `0xE4`).

## Behaviour worth knowing

- STOP, HALT, DI, EI and RETI are decoded, but executing them only
  advances the program counter.
- The decoder raises `ValueError` for `0xF0` and for the opcodes
  `0xCD`, `0xDD`, `0xED` and `0xFD`; it raises `MemoryOutOfBoundsError`
  when the code ends inside an instruction.
- `0xE2` and `0xF2` load between the registers A and C.
- Both the `x2` and the `xA` columns of the first block decode as loads
  into A from `(BC)`, `(DE)`, `(HL+)` or `(HL-)`.
- `ADD HL, rr` updates the flags only; HL keeps its value.
- ADC and SBC add one to the operand when the Z flag is set.

## What it does not do

There is no command to run, no cartridge loading, no screen, sound,
timers or interrupt handling. Memory is a flat 8 KiB `bytearray`, so any
address at or above `0x2000`, including the `0xFF00` high page and the
stack pointer set by `init_sp()`, raises `MemoryOutOfBoundsError` when it
is read or written.