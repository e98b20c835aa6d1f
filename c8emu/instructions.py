"""Instruction execution for the CHIP-8 interpreter."""

import logging
from typing import Callable, Optional

from .decoder import Instruction, decode
from .errors import (
    Fault,
    InvalidEncoding,
    InvalidFontCharacter,
    InvalidKeyCode,
    MemoryRangeExceeded,
    SpriteReadOutOfBounds,
    UnknownOpcode,
)
from .machine import Machine
from .memory import FONT_GLYPH_SIZE, FONT_START


logger = logging.getLogger(__name__)

KEY_COUNT = 16


def _check_key(value: int) -> None:
    if value >= KEY_COUNT:
        raise InvalidKeyCode(f"Invalid key code 0x{value:02X}, must be below 0x10")


def _check_range(machine: Machine, start: int, last: int, what: str) -> None:
    """Ensure start..last lie inside memory."""
    if last >= machine.memory.size:
        raise MemoryRangeExceeded(
            f"{what} with I=0x{start:04X} exceeds memory size"
        )


# Instruction executor type
InstructionExecutor = Callable[[Instruction, Machine], Optional[int]]


def execute_cls(instr: Instruction, machine: Machine) -> Optional[int]:
    """00E0 CLS: clear the display"""
    machine.framebuffer.clear()
    machine.draw_flag = True
    return None


def execute_ret(instr: Instruction, machine: Machine) -> Optional[int]:
    """00EE RET: PC := pop()"""
    return machine.cpu.pop()


def execute_jp(instr: Instruction, machine: Machine) -> Optional[int]:
    """1nnn JP addr: PC := nnn"""
    return instr.nnn


def execute_call(instr: Instruction, machine: Machine) -> Optional[int]:
    """2nnn CALL addr: push(PC + 2), PC := nnn"""
    machine.cpu.push(machine.cpu.pc + 2)
    return instr.nnn


def execute_se_byte(instr: Instruction, machine: Machine) -> Optional[int]:
    """3xkk SE Vx, byte: skip if Vx == kk"""
    if machine.cpu.v[instr.x] == instr.kk:
        return machine.cpu.pc + 4
    return None


def execute_sne_byte(instr: Instruction, machine: Machine) -> Optional[int]:
    """4xkk SNE Vx, byte: skip if Vx != kk"""
    if machine.cpu.v[instr.x] != instr.kk:
        return machine.cpu.pc + 4
    return None


def execute_se_reg(instr: Instruction, machine: Machine) -> Optional[int]:
    """5xy0 SE Vx, Vy: skip if Vx == Vy"""
    if instr.n != 0:
        raise InvalidEncoding(f"Malformed skip instruction 0x{instr.word:04X}")
    cpu = machine.cpu
    if cpu.v[instr.x] == cpu.v[instr.y]:
        return cpu.pc + 4
    return None


def execute_ld_byte(instr: Instruction, machine: Machine) -> Optional[int]:
    """6xkk LD Vx, byte: Vx := kk"""
    machine.cpu.set_v(instr.x, instr.kk)
    return None


def execute_add_byte(instr: Instruction, machine: Machine) -> Optional[int]:
    """7xkk ADD Vx, byte: Vx := Vx + kk, VF untouched"""
    machine.cpu.set_v(instr.x, machine.cpu.v[instr.x] + instr.kk)
    return None


def execute_ld_reg(instr: Instruction, machine: Machine) -> Optional[int]:
    """8xy0 LD Vx, Vy"""
    machine.cpu.set_v(instr.x, machine.cpu.v[instr.y])
    return None


def execute_or(instr: Instruction, machine: Machine) -> Optional[int]:
    """8xy1 OR Vx, Vy"""
    cpu = machine.cpu
    cpu.set_v(instr.x, cpu.v[instr.x] | cpu.v[instr.y])
    return None


def execute_and(instr: Instruction, machine: Machine) -> Optional[int]:
    """8xy2 AND Vx, Vy"""
    cpu = machine.cpu
    cpu.set_v(instr.x, cpu.v[instr.x] & cpu.v[instr.y])
    return None


def execute_xor(instr: Instruction, machine: Machine) -> Optional[int]:
    """8xy3 XOR Vx, Vy"""
    cpu = machine.cpu
    cpu.set_v(instr.x, cpu.v[instr.x] ^ cpu.v[instr.y])
    return None


# The flag-setting ALU ops compute result and flag from the operands as
# they were before the instruction, then write VF last.

def execute_add_reg(instr: Instruction, machine: Machine) -> Optional[int]:
    """8xy4 ADD Vx, Vy: VF := carry"""
    cpu = machine.cpu
    total = cpu.v[instr.x] + cpu.v[instr.y]
    cpu.set_v(instr.x, total)
    cpu.set_flag(1 if total > 0xFF else 0)
    return None


def execute_sub(instr: Instruction, machine: Machine) -> Optional[int]:
    """8xy5 SUB Vx, Vy: Vx := Vx - Vy, VF := NOT borrow"""
    cpu = machine.cpu
    vx, vy = cpu.v[instr.x], cpu.v[instr.y]
    cpu.set_v(instr.x, vx - vy)
    cpu.set_flag(1 if vx >= vy else 0)
    return None


def execute_shr(instr: Instruction, machine: Machine) -> Optional[int]:
    """8xy6 SHR Vx: VF := bit 0"""
    cpu = machine.cpu
    vx = cpu.v[instr.x]
    cpu.set_v(instr.x, vx >> 1)
    cpu.set_flag(vx & 0x1)
    return None


def execute_subn(instr: Instruction, machine: Machine) -> Optional[int]:
    """8xy7 SUBN Vx, Vy: Vx := Vy - Vx, VF := NOT borrow"""
    cpu = machine.cpu
    vx, vy = cpu.v[instr.x], cpu.v[instr.y]
    cpu.set_v(instr.x, vy - vx)
    cpu.set_flag(1 if vy >= vx else 0)
    return None


def execute_shl(instr: Instruction, machine: Machine) -> Optional[int]:
    """8xyE SHL Vx: VF := bit 7"""
    cpu = machine.cpu
    vx = cpu.v[instr.x]
    cpu.set_v(instr.x, vx << 1)
    cpu.set_flag((vx >> 7) & 0x1)
    return None


def execute_sne_reg(instr: Instruction, machine: Machine) -> Optional[int]:
    """9xy0 SNE Vx, Vy: skip if Vx != Vy"""
    if instr.n != 0:
        raise InvalidEncoding(f"Malformed skip instruction 0x{instr.word:04X}")
    cpu = machine.cpu
    if cpu.v[instr.x] != cpu.v[instr.y]:
        return cpu.pc + 4
    return None


def execute_ld_i(instr: Instruction, machine: Machine) -> Optional[int]:
    """Annn LD I, addr"""
    machine.cpu.set_i(instr.nnn)
    return None


def execute_jp_v0(instr: Instruction, machine: Machine) -> Optional[int]:
    """Bnnn JP V0, addr: PC := nnn + V0"""
    return instr.nnn + machine.cpu.v[0]


def execute_rnd(instr: Instruction, machine: Machine) -> Optional[int]:
    """Cxkk RND Vx, byte: Vx := random AND kk"""
    machine.cpu.set_v(instr.x, machine.random_byte() & instr.kk)
    return None


def execute_drw(instr: Instruction, machine: Machine) -> Optional[int]:
    """Dxyn DRW Vx, Vy, n: XOR an n-row sprite from [I] onto the display.

    Rows are drawn one at a time; a row whose source byte lies past the end
    of memory faults after the earlier rows have already been drawn.
    """
    cpu = machine.cpu
    fb = machine.framebuffer
    x0 = cpu.v[instr.x] % fb.width
    y0 = cpu.v[instr.y] % fb.height

    cpu.set_flag(0)
    for row in range(instr.n):
        addr = cpu.i + row
        if addr >= machine.memory.size:
            raise SpriteReadOutOfBounds(
                f"Sprite row read at 0x{addr:04X} out of bounds"
            )
        sprite = machine.memory.read(addr)
        if fb.draw_row(x0, y0 + row, sprite):
            cpu.set_flag(1)

    machine.draw_flag = True
    return None


def execute_skp(instr: Instruction, machine: Machine) -> Optional[int]:
    """Ex9E SKP Vx: skip if key Vx is held"""
    key = machine.cpu.v[instr.x]
    _check_key(key)
    if machine.key_pressed(key):
        return machine.cpu.pc + 4
    return None


def execute_sknp(instr: Instruction, machine: Machine) -> Optional[int]:
    """ExA1 SKNP Vx: skip if key Vx is not held"""
    key = machine.cpu.v[instr.x]
    _check_key(key)
    if not machine.key_pressed(key):
        return machine.cpu.pc + 4
    return None


def execute_ld_vx_dt(instr: Instruction, machine: Machine) -> Optional[int]:
    """Fx07 LD Vx, DT"""
    machine.cpu.set_v(instr.x, machine.cpu.delay_timer)
    return None


def execute_ld_vx_k(instr: Instruction, machine: Machine) -> Optional[int]:
    """Fx0A LD Vx, K: wait for a key.

    With no key held PC stays put, so the instruction runs again next cycle.
    """
    for key in range(KEY_COUNT):
        if machine.key_pressed(key):
            machine.cpu.set_v(instr.x, key)
            return None
    return machine.cpu.pc


def execute_ld_dt(instr: Instruction, machine: Machine) -> Optional[int]:
    """Fx15 LD DT, Vx"""
    machine.cpu.delay_timer = machine.cpu.v[instr.x]
    return None


def execute_ld_st(instr: Instruction, machine: Machine) -> Optional[int]:
    """Fx18 LD ST, Vx: a non-zero value requests a tone"""
    value = machine.cpu.v[instr.x]
    machine.cpu.sound_timer = value
    if value:
        machine.tone_flag = True
    return None


def execute_add_i(instr: Instruction, machine: Machine) -> Optional[int]:
    """Fx1E ADD I, Vx: VF untouched"""
    machine.cpu.set_i(machine.cpu.i + machine.cpu.v[instr.x])
    return None


def execute_ld_f(instr: Instruction, machine: Machine) -> Optional[int]:
    """Fx29 LD F, Vx: I := address of the glyph for digit Vx"""
    digit = machine.cpu.v[instr.x]
    if digit >= 16:
        raise InvalidFontCharacter(
            f"Invalid font character 0x{digit:02X}, must be below 0x10"
        )
    machine.cpu.set_i(FONT_START + digit * FONT_GLYPH_SIZE)
    return None


def execute_ld_b(instr: Instruction, machine: Machine) -> Optional[int]:
    """Fx33 LD B, Vx: store BCD of Vx at [I], [I+1], [I+2]"""
    cpu = machine.cpu
    _check_range(machine, cpu.i, cpu.i + 2, "LD B, Vx")
    value = cpu.v[instr.x]
    machine.memory.write(cpu.i, value // 100)
    machine.memory.write(cpu.i + 1, (value // 10) % 10)
    machine.memory.write(cpu.i + 2, value % 10)
    return None


def execute_ld_mem_regs(instr: Instruction, machine: Machine) -> Optional[int]:
    """Fx55 LD [I], Vx: store V0..Vx at [I]; I is not modified"""
    cpu = machine.cpu
    _check_range(machine, cpu.i, cpu.i + instr.x, "LD [I], Vx")
    machine.memory.write_block(cpu.i, bytes(cpu.v[:instr.x + 1]))
    return None


def execute_ld_regs_mem(instr: Instruction, machine: Machine) -> Optional[int]:
    """Fx65 LD Vx, [I]: load V0..Vx from [I]; I is not modified"""
    cpu = machine.cpu
    _check_range(machine, cpu.i, cpu.i + instr.x, "LD Vx, [I]")
    for offset, value in enumerate(machine.memory.read_block(cpu.i, instr.x + 1)):
        cpu.set_v(offset, value)
    return None


# Instruction dispatch table, keyed by encoding pattern
INSTRUCTION_EXECUTORS: dict[str, InstructionExecutor] = {
    "00E0": execute_cls,
    "00EE": execute_ret,
    "1nnn": execute_jp,
    "2nnn": execute_call,
    "3xkk": execute_se_byte,
    "4xkk": execute_sne_byte,
    "5xy0": execute_se_reg,
    "6xkk": execute_ld_byte,
    "7xkk": execute_add_byte,
    "8xy0": execute_ld_reg,
    "8xy1": execute_or,
    "8xy2": execute_and,
    "8xy3": execute_xor,
    "8xy4": execute_add_reg,
    "8xy5": execute_sub,
    "8xy6": execute_shr,
    "8xy7": execute_subn,
    "8xyE": execute_shl,
    "9xy0": execute_sne_reg,
    "Annn": execute_ld_i,
    "Bnnn": execute_jp_v0,
    "Cxkk": execute_rnd,
    "Dxyn": execute_drw,
    "Ex9E": execute_skp,
    "ExA1": execute_sknp,
    "Fx07": execute_ld_vx_dt,
    "Fx0A": execute_ld_vx_k,
    "Fx15": execute_ld_dt,
    "Fx18": execute_ld_st,
    "Fx1E": execute_add_i,
    "Fx29": execute_ld_f,
    "Fx33": execute_ld_b,
    "Fx55": execute_ld_mem_regs,
    "Fx65": execute_ld_regs_mem,
}

# Patterns fixed by the high nibble alone
_NIBBLE_PATTERNS = {
    0x1: "1nnn",
    0x2: "2nnn",
    0x3: "3xkk",
    0x4: "4xkk",
    0x5: "5xy0",
    0x6: "6xkk",
    0x7: "7xkk",
    0x9: "9xy0",
    0xA: "Annn",
    0xB: "Bnnn",
    0xC: "Cxkk",
    0xD: "Dxyn",
}


def pattern_of(instr: Instruction) -> Optional[str]:
    """Map a decoded instruction to its dispatch key, or None if unknown.

    5xy0/9xy0 match regardless of the low nibble; the executors reject a
    non-zero nibble as an invalid encoding.
    """
    if instr.op == 0x0:
        # 0nnn (SYS) is not supported and falls through as unknown
        key = f"{instr.word:04X}"
    elif instr.op == 0x8:
        key = f"8xy{instr.n:X}"
    elif instr.op == 0xE:
        key = f"Ex{instr.kk:02X}"
    elif instr.op == 0xF:
        key = f"Fx{instr.kk:02X}"
    else:
        key = _NIBBLE_PATTERNS[instr.op]
    return key if key in INSTRUCTION_EXECUTORS else None


def execute_instruction(instr: Instruction, machine: Machine) -> Optional[int]:
    """Execute a single decoded instruction.

    Returns:
        New PC value if the instruction transfers control, None otherwise
    """
    key = pattern_of(instr)
    if key is None:
        logger.debug("Unknown opcode: 0x%04X", instr.word)
        raise UnknownOpcode(f"Unknown opcode: 0x{instr.word:04X}")
    return INSTRUCTION_EXECUTORS[key](instr, machine)


def step(machine: Machine) -> Instruction:
    """Fetch, decode and execute exactly one instruction.

    A fault leaves PC where it was; the caller chooses whether to stop or
    to force progress.
    """
    pc = machine.cpu.pc
    word = machine.fetch()
    instr = decode(word)
    logger.debug("%04X: %s", pc, instr)

    try:
        new_pc = execute_instruction(instr, machine)
    except Fault as e:
        e.pc = pc
        e.opcode = word
        raise

    if new_pc is None:
        machine.cpu.pc = pc + 2
    else:
        machine.cpu.pc = new_pc & 0xFFFF
    return instr
