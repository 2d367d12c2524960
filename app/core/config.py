"""
Basic configuration

- CORS origins for development and production
- Storage locations for answers, the local key-value store and photo uploads
- Answer storage backend selection (local vs. remote with local fallback)
- Supports environment variables for deployment overrides
"""
import os

# Default localhost origins for development
DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
]

# Get additional CORS origins from environment variable
ADDITIONAL_CORS_ORIGINS = os.getenv("CORS_ORIGINS", "").split(",") if os.getenv("CORS_ORIGINS") else []

# Filter out empty strings from split
ADDITIONAL_CORS_ORIGINS = [origin.strip() for origin in ADDITIONAL_CORS_ORIGINS if origin.strip()]

# Combine default and additional origins
CORS_ORIGINS = DEFAULT_CORS_ORIGINS + ADDITIONAL_CORS_ORIGINS

# Server-side storage
DATA_DIR = os.getenv("DATA_DIR", "data")
UPLOADS_DIR = os.getenv("UPLOADS_DIR", "uploads")
MAX_UPLOAD_BYTES = 10 * 1024 * 1024  # 10MB

# Checklist template revision the answers are pinned to
ANSWER_SCHEMA_VERSION = os.getenv("ANSWER_SCHEMA_VERSION", "ms-2024.1")

# Client-side answer storage
STORAGE_NAMESPACE = os.getenv("STORAGE_NAMESPACE", "immobilien-app")
LOCAL_STORE_PATH = os.getenv("LOCAL_STORE_PATH", os.path.join(DATA_DIR, "local_store.json"))
USE_REMOTE_ANSWER_STORAGE = os.getenv("USE_REMOTE_ANSWER_STORAGE", "false").lower() == "true"
ANSWER_STORAGE_URL = os.getenv("ANSWER_STORAGE_URL", "http://localhost:3001")
REMOTE_STORAGE_TIMEOUT_SECONDS = 5.0

# Debounced autosave timings
SAVE_QUIET_PERIOD_SECONDS = 0.5
SAVED_DISPLAY_SECONDS = 2.0
ERROR_DISPLAY_SECONDS = 5.0

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
