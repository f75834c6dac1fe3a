# Timing and sequencing constants shared by the test and calibration runners.
# All durations are in milliseconds unless the name says otherwise.

MONOCHROME = "monochrome"
COLOR = "color"
CONDITIONS = (MONOCHROME, COLOR)

DISPLAY_TIME_MS = 1000
ROUNDS_PER_CONDITION = 7
BREAK_SECONDS = 120
COUNTDOWN_SECONDS = 3
TICK_MS = 1000
ROUND_COMPLETE_PAUSE_MS = 500

CALIBRATION_PREP_MS = 300
CALIBRATION_RETRY_MS = 300
CALIBRATION_LEVEL_PAUSE_MS = 500
CALIBRATION_MISTAKES_PER_LIFE = 3
CALIBRATION_LIVES = 3

MIN_GRID_SIDE = 3
MAX_GRID_SIDE = 9

MONOCHROME_CELL_COLOR = "#ffffff"


def starting_condition(started_with_color: bool) -> str:
    return COLOR if started_with_color else MONOCHROME


def other_condition(condition: str) -> str:
    return MONOCHROME if condition == COLOR else COLOR
