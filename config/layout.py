"""
Poster footer styling.

Colors, spacing and text-fit constants shared by every generated poster.
Pixel values are absolute; ratios are fractions of the resized template width.
"""

# Colors
FOOTER_BACKGROUND = (240, 247, 255)
SEPARATOR_COLOR = (27, 117, 187)
TEXT_GRADIENT = ((27, 117, 187), (37, 42, 120))  # left -> right
LOGO_BACKGROUND = (255, 255, 255)

# Footer geometry
LAYOUT = {
    "photo_ratio": 0.15,        # photo diameter as fraction of template width
    "min_photo_size": 80,
    "left_margin": 40,
    "photo_gap": 24,            # photo -> text column
    "text_gap": 12,             # text column -> separator
    "separator_width": 2,
    "separator_gap": 16,        # separator -> logo
    "right_margin": 40,
    "vertical_padding": 20,     # above and below the tallest element
    "min_text_column": 160,
}

# Text fitting
FONT_FIT = {
    "char_width_ratio": 0.55,   # average glyph width / font size
    "shrink_ratio": 0.92,
    "preferred_ratio": 0.07,    # preferred size as fraction of column width
    "preferred_min": 24,
    "preferred_max": 48,
    "floor_min": 12,
    "floor_max": 20,
    "floor_divisor": 40,        # floor grows with column width
    "line_height": 1.5,
    "padding": 4,
    "line_count": 4,
}
