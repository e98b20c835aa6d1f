"""Headless command-line front end for the CHIP-8 interpreter."""

import sys
import logging as lg
from pathlib import Path

import click

from . import __version__
from .errors import StartupError
from .keypad import keys_to_mask
from .machine import DEFAULT_CYCLES_PER_FRAME
from .rom import load_rom_file
from .runner import RunOptions, run_program


EXIT_OK = 0
EXIT_FAULT = 1
EXIT_STARTUP_ERROR = 2


def format_state(state: dict) -> str:
    regs = " ".join(f"V{idx:X}:{val:02X}" for idx, val in enumerate(state["v"]))
    return (
        f"PC:{state['pc']:04X} I:{state['i']:04X} SP:{state['sp']} "
        f"DT:{state['delay_timer']} ST:{state['sound_timer']} {regs}"
    )


@click.command()
@click.argument("rom_filename", type=Path)
@click.argument(
    "cycles_per_frame",
    type=click.IntRange(1, 255),
    required=False,
    default=DEFAULT_CYCLES_PER_FRAME,
)
@click.option("--frames", type=click.IntRange(min=1), default=60, show_default=True,
              help="Number of frames to run.")
@click.option("--keys", default="", help="Comma-separated host keys held for the whole run (e.g. 1,q,v).")
@click.option("--seed", type=int, default=None, help="Seed for the random number source.")
@click.option("--continue-on-fault", is_flag=True, help="Skip faulting instructions instead of stopping.")
@click.option("--debug", is_flag=True, help="Log every executed instruction.")
@click.version_option(version=__version__, prog_name="c8emu")
def run(rom_filename: Path, cycles_per_frame: int, frames: int, keys: str,
        seed: int, continue_on_fault: bool, debug: bool):
    """Run ROM_FILENAME headless and print the final display."""
    lg.basicConfig(level=lg.DEBUG if debug else lg.WARNING)

    try:
        rom = load_rom_file(rom_filename)
    except StartupError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(EXIT_STARTUP_ERROR)

    options = RunOptions(
        frames=frames,
        cycles_per_frame=cycles_per_frame,
        keys=keys_to_mask(keys.split(",")) if keys else 0,
        seed=seed,
        continue_on_fault=continue_on_fault,
        trace=False,
    )
    result = run_program(rom, options)

    for row in result.framebuffer:
        click.echo(row)
    if result.final_state:
        click.echo(format_state(result.final_state))

    if result.error is not None:
        click.echo(
            f"Error: {result.error.type} at 0x{result.error.pc:04X}: {result.error.message}",
            err=True,
        )
        sys.exit(EXIT_FAULT)
    sys.exit(EXIT_OK)


if __name__ == "__main__":
    run()
