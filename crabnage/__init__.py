"""Instruction decoder and CPU core for a Game Boy style processor."""

__version__ = "0.1.0"
__all__ = ["constants", "cpu", "instruction", "opcodes", "register", "util"]