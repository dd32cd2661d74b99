# Overrides for loguru's built-in levels: (icon, hex colour)
STANDARD_LOG_LEVELS = {
    "DEBUG": ("🕸️", "#DC5F00"),
    "INFO": ("📰", "#FC5F39"),
    "WARNING": ("⚠️", "#DC5F00"),
    "ERROR": ("❌", "#ff0000"),
    "CRITICAL": ("💀", "#ff0000"),
}

# Project levels: (severity number, icon, hex colour)
CUSTOM_LOG_LEVELS = {
    "CINESCOUT": (50, "🎞️", "#7871d6"),
    "PROVIDER": (40, "👻", "#d6bb71"),
    "CRAWLER": (35, "🕷️", "#d171d6"),
    "MATCHER": (33, "🎯", "#006989"),
    "DATABASE": (32, "💾", "#5aa5d9"),
    "PIPELINE": (25, "🏭", "#5fba64"),
}


def loguru_color(hex_color: str) -> str:
    return f"<fg {hex_color}>"
