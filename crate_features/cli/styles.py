"""Theme, colors, and visual constants for the crate-features terminal output."""

from rich.box import ROUNDED, SIMPLE
from rich.style import Style
from rich.theme import Theme

# ── Color palette ──────────────────────────────────────────────────────────────

PRIMARY = "bright_cyan"
SUCCESS = "bright_green"
WARNING = "bright_yellow"
ERROR = "bright_red"
MUTED = "dim white"

# ── Rich theme ─────────────────────────────────────────────────────────────────

FEATURES_THEME = Theme(
    {
        "info": Style(color="bright_cyan"),
        "success": Style(color="bright_green", bold=True),
        "warning": Style(color="bright_yellow"),
        "error": Style(color="bright_red", bold=True),
        "muted": Style(color="white", dim=True),
        "header": Style(color="bright_cyan", bold=True),
        "removed": Style(color="bright_red"),
        "known": Style(color="white", dim=True),
    }
)

# ── Unicode icons ──────────────────────────────────────────────────────────────

ICON_CHECK = "✓"       # ✓
ICON_CROSS = "✗"       # ✗
ICON_ARROW = "▶"       # ▶
ICON_WARN = "⚠"        # ⚠
ICON_BRANCH = "└"      # └
ICON_CRATE = "\U0001f4e6"   # 📦
ICON_WORKSPACE = "\U0001f5c3"  # 🗃

# ── Box styles ─────────────────────────────────────────────────────────────────

PANEL_BOX = ROUNDED
TABLE_BOX = SIMPLE

# ── Spinner ────────────────────────────────────────────────────────────────────

SPINNER_STYLE = "dots"
SPINNER_COLOR = PRIMARY

# ── Messages ───────────────────────────────────────────────────────────────────

KNOWN_FEATURES_NOTICE = (
    "Some features that do not affect compilation but can limit functionality "
    "were found and left enabled. Add them to a keep table, or disable them by "
    "hand if you are sure they are unused."
)
