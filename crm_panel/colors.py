"""Swatch colors for the product color labels."""

DEFAULT_COLOR_HEX = "#CCCCCC"

COLOR_MAP = {
    "lila": "#C084FC",
    "blanco": "#FFFFFF",
    "azul": "#2563EB",
    "gris": "#9CA3AF",
    "rosa": "#F472B6",
    "negro": "#111827",
}


def get_color_hex(color_name):
    """
    Map a color label to a hex swatch. Labels that are already hex codes
    pass through; unknown or empty labels get the neutral grey.
    """
    if not color_name:
        return DEFAULT_COLOR_HEX
    color = color_name.strip().lower()
    if color.startswith("#"):
        return color_name.strip()
    return COLOR_MAP.get(color, DEFAULT_COLOR_HEX)
