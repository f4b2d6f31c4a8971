TEXT_PRIMARY = "#D1D5DB"
TEXT_MUTED = "#9CA3AF"
TEXT_FAINT = "#6B7280"


BG = "#111827"
SIDEBAR_BG = "#1F2937"
SURFACE = "#1F2937"
SURFACE_ALT = "#374151"
INPUT_BG = "#111827"
BORDER = "#4B5563"

ACCENT = "#3B82F6"
ACCENT_SOFT = "#1E3A5F"
USER_AVATAR = "#3B82F6"
MODEL_AVATAR = "#22C55E"
LINK = "#60A5FA"
DANGER = "#EF4444"
SUCCESS = "#22C55E"
WARNING = "#F59E0B"
