"""FastAPI web adapter for the CHIP-8 interpreter."""

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from typing import Optional

from c8emu import __version__, run_program, RunOptions
from c8emu.keypad import keys_to_mask
from c8emu.rom import MAX_ROM_SIZE


# Constants
MAX_FRAMES = 3600


# Request/Response models
class RunOptionsModel(BaseModel):
    frames: int = Field(default=1, ge=1, le=MAX_FRAMES)
    cycles_per_frame: int = Field(default=16, ge=1, le=255)
    keys: int = Field(default=0, ge=0, le=0xFFFF)
    held_keys: list[str] = Field(default_factory=list)
    seed: Optional[int] = None
    continue_on_fault: bool = False
    trace: bool = True
    trace_include_registers: bool = False
    trace_include_framebuffer: bool = False


class RunRequest(BaseModel):
    rom: str = Field(description="ROM image as a hex string")
    options: Optional[RunOptionsModel] = None


class RunResponse(BaseModel):
    status: str
    frames_executed: int
    final_state: dict
    framebuffer: list[str]
    trace: list[dict]
    error: Optional[dict] = None


# Create FastAPI app
app = FastAPI(
    title="CHIP-8 Interpreter",
    description="Web API for running CHIP-8 ROMs headless",
    version=__version__,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.post("/api/run", response_model=RunResponse)
async def run_rom(request: RunRequest):
    """Run a ROM for a number of frames.

    Args:
        request: ROM bytes as hex and execution options

    Returns:
        Execution result with final state, display and per-frame trace
    """
    try:
        rom = bytes.fromhex(request.rom)
    except ValueError:
        raise HTTPException(status_code=400, detail="ROM must be a hex string")

    if len(rom) > MAX_ROM_SIZE:
        raise HTTPException(
            status_code=400,
            detail=f"ROM size exceeds limit of {MAX_ROM_SIZE} bytes",
        )

    opts = request.options or RunOptionsModel()

    run_opts = RunOptions(
        frames=opts.frames,
        cycles_per_frame=opts.cycles_per_frame,
        keys=opts.keys | keys_to_mask(opts.held_keys),
        seed=opts.seed,
        continue_on_fault=opts.continue_on_fault,
        trace=opts.trace,
        trace_include_registers=opts.trace_include_registers,
        trace_include_framebuffer=opts.trace_include_framebuffer,
    )

    result = run_program(rom, options=run_opts)

    return result.to_dict()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8080)
