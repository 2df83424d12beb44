"""
SciCal Configuration Settings
"""
import os

# Application Settings
APP_NAME = "SciCal Scientific Calculator"
VERSION = "1.0.0"

# Display Settings (Optimized for 720x480 display - Landscape)
WINDOW_WIDTH = 720
WINDOW_HEIGHT = 480
DISPLAY_FONT = ("Consolas", 24, "bold")   # LCD/segmented-style font
BUTTON_FONT = ("Segoe UI", 11)
LABEL_FONT = ("Segoe UI", 10)

# ── Neumorphic Palettes ────────────────────────────────────────────────────────

# LIGHT palette  – soft sage-green background
NEU_LIGHT = {
    "bg":           "#DDE6ED",   # base surface
    "bg_dark":      "#C8D4DF",   # slightly darker variant (inset feel)
    "shadow_dark":  "#B2BFC8",   # outset shadow – dark side
    "shadow_lite":  "#FFFFFF",   # outset shadow – light side
    "display_bg":   "#C8D4DF",   # display inner area
    "display_fg":   "#1A2332",   # high-contrast dark text (LCD dark on light)
    "btn_bg":       "#DDE6ED",
    "btn_fg":       "#2B3A4A",
    "operator_fg":  "#1E7A56",   # teal-green accent
    "equals_bg":    "#2E8B57",   # sea-green confirm
    "equals_fg":    "#FFFFFF",
    "mode_fg":      "#2C5F8A",   # muted blue
    "mode_bg":      "#C8D4DF",
    "accent":       "#2E8B57",
    "subtext":      "#6E8090",
    "success":      "#2E8B57",
    "danger":       "#B03A2E",
    "listbox_bg":   "#C8D4DF",
    "listbox_fg":   "#1A2332",
}

# DARK palette  – deep slate with green accents
NEU_DARK = {
    "bg":           "#1E2530",
    "bg_dark":      "#161C26",
    "shadow_dark":  "#10161E",
    "shadow_lite":  "#283040",
    "display_bg":   "#161C26",
    "display_fg":   "#9ADDB0",   # soft green glow – LCD green-on-dark
    "btn_bg":       "#1E2530",
    "btn_fg":       "#BDD0E0",
    "operator_fg":  "#4DB888",
    "equals_bg":    "#2D8A58",
    "equals_fg":    "#FFFFFF",
    "mode_fg":      "#5E8FC8",
    "mode_bg":      "#283040",
    "accent":       "#4DB888",
    "subtext":      "#4E6070",
    "success":      "#4DB888",
    "danger":       "#E55A4E",
    "listbox_bg":   "#161C26",
    "listbox_fg":   "#9ADDB0",
}


def get_theme(dark: bool) -> dict:
    """Return the active neumorphic colour palette."""
    return NEU_DARK if dark else NEU_LIGHT


def _env_flag(name, default=False):
    return os.environ.get(name, str(default)).strip().lower() in ("1", "true", "yes", "on")


DARK_MODE = _env_flag("SCICAL_DARK_MODE")

# Calculator Settings
OPERATORS = ("+", "-", "*", "/")
ZERO_TEXT = "0"
ERROR_TEXT = "Error"
ERROR_RESET_DELAY = 1.5   # seconds the error sentinel stays on screen
DEFAULT_ANGLE_MODE = "deg"

# Functions whose argument carries an angle unit when evaluated
TRIG_FUNCTIONS = (
    "sin", "cos", "tan", "sec", "csc", "cot",
    "asin", "acos", "atan", "asec", "acsc", "acot",
    "sinh", "cosh", "tanh", "sech", "csch", "coth",
)

# History Settings
MAX_HISTORY_ITEMS = 20

# Logging Settings
LOG_LEVEL = os.environ.get("SCICAL_LOG_LEVEL", "WARNING")
LOG_FILE = os.environ.get("SCICAL_LOG_FILE") or None
LOG_JSON = _env_flag("SCICAL_LOG_JSON")
