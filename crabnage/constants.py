"""Hardware constants of the emulated handheld console."""

MAIN_RAM_IN_BYTE = 1024 * 8
VIDEO_RAM_IN_BYTE = 1024 * 8
RESOLUTION = (160, 144)
MAX_SPRITE_SIZE = (8, 16)
MIN_SPRITE_SIZE = (8, 8)
CLOCK_SPEED_IN_HERZ = 4_194_304.0
CLOCK_CYCLE_IN_SECONDS = 1.0 / CLOCK_SPEED_IN_HERZ
CLOCK_CYCLE_PER_MACHINE_CYCLE = 4
MACHINE_CYCLE_IN_SECONDS = CLOCK_CYCLE_IN_SECONDS / float(CLOCK_CYCLE_PER_MACHINE_CYCLE)
HSYNC_IN_HERZ = 9_198_000.0
HSYNC_IN_SECONDS = 1.0 / HSYNC_IN_HERZ
VSYNC_IN_HERZ = 59.73
VSYNC_IN_SECONDS = 1.0 / VSYNC_IN_HERZ