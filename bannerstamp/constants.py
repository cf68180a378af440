STANDARD_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp", ".bmp", ".tif", ".tiff"}

LAYOUT_BOTTOM_ANCHORED = "bottom_anchored"
LAYOUT_CENTERED_QUOTE = "centered_quote"
VALID_LAYOUT_MODES = {LAYOUT_BOTTOM_ANCHORED, LAYOUT_CENTERED_QUOTE}

VALID_ALIGNS = {"left", "center", "right"}
VALID_BADGE_POSITIONS = {"left", "center", "right"}
VALID_LOGO_POSITIONS = {"top-left", "top-center", "top-right"}
VALID_ACCENTS = {"none", "underline", "divider", "separator", "letterbox"}
VALID_DECORATIONS = {"burst", "warm_vignette", "bold_vignette"}

DEFAULT_CANVAS_WIDTH = 1080
DEFAULT_CANVAS_HEIGHT = 1350
DEFAULT_TITLE = "Sample Title"
DEFAULT_THEME_ID = "default"

DEFAULT_CHAR_WIDTH_FACTOR = 0.55
CONDENSED_CHAR_WIDTH_FACTOR = 0.45
DEFAULT_CONTENT_PADDING = 80
DEFAULT_MIN_TITLE_FONT_SIZE = 18

# gold, orange, cyan, electric blue, soft yellow, lavender, lime green,
# red, royal blue, magenta, vibrant yellow
DEFAULT_HIGHLIGHT_COLORS = (
    "#FFD700",
    "#FF8C00",
    "#00FFFF",
    "#1E90FF",
    "#F4E04D",
    "#C084FC",
    "#00FF4C",
    "#FF0000",
    "#003CFF",
    "#FF00C8",
    "#FFEA00",
)
MAX_HIGHLIGHT_COLORS = 11

COLOR_NAMES = {
    "gold": "#FFD700",
    "orange": "#FF8C00",
    "cyan": "#00FFFF",
    "electricblue": "#1E90FF",
    "softyellow": "#F4E04D",
    "lavender": "#C084FC",
    "limegreen": "#00FF4C",
    "lime": "#00FF4C",
    "red": "#FF0000",
    "royalblue": "#003CFF",
    "magenta": "#FF00C8",
    "vibrantyellow": "#FFEA00",
    "gray": "#E0E0E0",
    "grey": "#E0E0E0",
    "lightgray": "#D3D3D3",
    "lightgrey": "#D3D3D3",
    "silver": "#C0C0C0",
    "white": "#FFFFFF",
    "black": "#000000",
}

DEFAULT_LINE_COLOR = "#FF8C00"
DEFAULT_FRAME_COLOR = "#FFD700"
DEFAULT_BORDER_COLOR = "#000000"
PLACEHOLDER_COLOR = (70, 130, 180)

# Typeface family -> candidate font file names, first match wins.
TYPEFACE_FILES: dict[str, tuple[str, ...]] = {
    "Noto Sans": ("NotoSans-Regular.ttf",),
    "Noto Sans Bold": ("NotoSans-Bold.ttf",),
    "Inter": ("Inter-Regular.ttf", "Inter.ttf"),
    "Bebas Neue": ("BebasNeue-Regular.ttf",),
    "Anton": ("Anton-Regular.ttf",),
    "Impact": ("Impact.ttf", "impact.ttf"),
    "Oswald": ("Oswald-Bold.ttf",),
    "Montserrat": ("Montserrat-ExtraBold.ttf",),
    "League Spartan": ("LeagueSpartan-Bold.ttf",),
    "Raleway": ("Raleway-Heavy.ttf",),
    "Roboto Condensed": ("RobotoCondensed-Bold.ttf",),
    "Poppins": ("Poppins-ExtraBold.ttf",),
    "Playfair Display": ("PlayfairDisplay-Black.ttf",),
}

# Cache hints that swap the title for a random bundled quote on quote themes.
RANDOM_QUOTE_HINTS = {"InspirationTagalog", "HugotTagalog", "babaeTagalog"}
NO_STORE_HINTS = RANDOM_QUOTE_HINTS
CACHE_CONTROL_NO_STORE = "no-store, no-cache, must-revalidate, proxy-revalidate"
CACHE_CONTROL_SHORT = "public, max-age=60"
CACHE_CONTROL_DEFAULT = "public, max-age=300"
