"""Instruction decoder for the CHIP-8 interpreter."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Instruction:
    """Decoded 16-bit instruction word."""
    word: int
    op: int  # High nibble
    x: int
    y: int
    n: int
    kk: int
    nnn: int

    @property
    def mnemonic(self) -> str:
        return disassemble(self)

    def __str__(self) -> str:
        return disassemble(self)


def decode(word: int) -> Instruction:
    """Split an instruction word into its fields. Never fails."""
    word &= 0xFFFF
    return Instruction(
        word=word,
        op=(word >> 12) & 0xF,
        x=(word >> 8) & 0xF,
        y=(word >> 4) & 0xF,
        n=word & 0xF,
        kk=word & 0xFF,
        nnn=word & 0xFFF,
    )


# Single-register F-group forms, keyed by kk
_F_FORMS = {
    0x07: "LD V{x:X}, DT",
    0x0A: "LD V{x:X}, K",
    0x15: "LD DT, V{x:X}",
    0x18: "LD ST, V{x:X}",
    0x1E: "ADD I, V{x:X}",
    0x29: "LD F, V{x:X}",
    0x33: "LD B, V{x:X}",
    0x55: "LD [I], V{x:X}",
    0x65: "LD V{x:X}, [I]",
}

# Register ALU forms, keyed by n
_ALU_FORMS = {
    0x0: "LD",
    0x1: "OR",
    0x2: "AND",
    0x3: "XOR",
    0x4: "ADD",
    0x5: "SUB",
    0x6: "SHR",
    0x7: "SUBN",
    0xE: "SHL",
}


def disassemble(instr: Instruction) -> str:
    """Render an instruction in conventional assembler syntax."""
    x, y = instr.x, instr.y
    op = instr.op

    if instr.word == 0x00E0:
        return "CLS"
    if instr.word == 0x00EE:
        return "RET"
    if op == 0x0:
        return f"SYS 0x{instr.nnn:03X}"
    if op == 0x1:
        return f"JP 0x{instr.nnn:03X}"
    if op == 0x2:
        return f"CALL 0x{instr.nnn:03X}"
    if op == 0x3:
        return f"SE V{x:X}, 0x{instr.kk:02X}"
    if op == 0x4:
        return f"SNE V{x:X}, 0x{instr.kk:02X}"
    if op == 0x5 and instr.n == 0:
        return f"SE V{x:X}, V{y:X}"
    if op == 0x6:
        return f"LD V{x:X}, 0x{instr.kk:02X}"
    if op == 0x7:
        return f"ADD V{x:X}, 0x{instr.kk:02X}"
    if op == 0x8 and instr.n in _ALU_FORMS:
        name = _ALU_FORMS[instr.n]
        if name in ("SHR", "SHL"):
            return f"{name} V{x:X}"
        return f"{name} V{x:X}, V{y:X}"
    if op == 0x9 and instr.n == 0:
        return f"SNE V{x:X}, V{y:X}"
    if op == 0xA:
        return f"LD I, 0x{instr.nnn:03X}"
    if op == 0xB:
        return f"JP V0, 0x{instr.nnn:03X}"
    if op == 0xC:
        return f"RND V{x:X}, 0x{instr.kk:02X}"
    if op == 0xD:
        return f"DRW V{x:X}, V{y:X}, {instr.n}"
    if op == 0xE and instr.kk == 0x9E:
        return f"SKP V{x:X}"
    if op == 0xE and instr.kk == 0xA1:
        return f"SKNP V{x:X}"
    if op == 0xF and instr.kk in _F_FORMS:
        return _F_FORMS[instr.kk].format(x=x)
    return f"DW 0x{instr.word:04X}"
