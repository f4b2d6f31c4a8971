import os
from pathlib import Path


APP_TITLE = "Gemini Agent"


GEMINI_API_KEY = (os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY") or "").strip()
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash").strip()
GEMINI_API_URL = os.getenv("GEMINI_API_URL", "https://generativelanguage.googleapis.com/v1beta").rstrip("/")

STREAM_CONNECT_TIMEOUT_S = float(os.getenv("GEMINI_STREAM_CONNECT_TIMEOUT_S", "10"))
_stream_read_timeout_raw = os.getenv("GEMINI_STREAM_READ_TIMEOUT_S", "300").strip().lower()
STREAM_READ_TIMEOUT_S = None if _stream_read_timeout_raw in ("", "none", "null") else float(_stream_read_timeout_raw)


DATA_DIR = Path(os.getenv("GEMINI_DESKTOP_DATA_DIR") or (Path(__file__).resolve().parents[1] / "config"))
STORE_FILE = DATA_DIR / "storage.json"
STORAGE_KEY = "chatSessions"
SESSION_SAVE_DELAY_S = float(os.getenv("GEMINI_SESSION_SAVE_DELAY_S", "0.2"))


GEOLOCATION_URL = os.getenv("GEMINI_GEOLOCATION_URL", "https://ipapi.co/json/").strip()
GEOLOCATION_TIMEOUT_S = float(os.getenv("GEMINI_GEOLOCATION_TIMEOUT_S", "5"))
FIXED_LOCATION = os.getenv("GEMINI_LOCATION", "").strip()

LOG_LEVEL = os.getenv("GEMINI_DESKTOP_LOG_LEVEL", "WARNING").strip().upper() or "WARNING"


DEFAULT_TITLE = "New Chat"
TITLE_MAX_CHARS = 40

THINKING_BUDGET_MAX = 24576
THINKING_BUDGET_STEP = 1024
TOP_K_MAX = 120


SIDEBAR_WIDTH = 340
CHAT_MAX_WIDTH = 860
IMAGE_PREVIEW_SIZE = 96
IMAGE_EXTENSIONS = ["png", "jpg", "jpeg", "gif", "webp", "bmp"]
TEXT_SOURCE_EXTENSIONS = ["txt", "md", "csv", "json", "log"]
