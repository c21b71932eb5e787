"""
Centralized paths and config. Override via env vars so the app works from any CWD.
"""
import logging
import os

# Base data directory (sqlite store of past analyses). Set ANALYZER_DATA_DIR to override.
DATA_DIR = os.environ.get("ANALYZER_DATA_DIR", "data")
DB_PATH = os.path.join(DATA_DIR, "analyzer.db")

# OpenAI-compatible chat completions endpoint.
OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY", "")
OPENAI_BASE_URL = os.environ.get("OPENAI_BASE_URL", "https://api.openai.com/v1")
DEFAULT_MODEL_ID = os.environ.get("ANALYZER_MODEL", "gpt-4o-mini")
TEMPERATURE = float(os.environ.get("ANALYZER_TEMPERATURE", "0.5"))
REQUEST_TIMEOUT_S = int(os.environ.get("ANALYZER_TIMEOUT_S", "120"))

# 2 retries = 3 attempts in total. Delay grows linearly: 1s, 2s, ...
MAX_RETRIES = int(os.environ.get("ANALYZER_MAX_RETRIES", "2"))
RETRY_DELAY_S = float(os.environ.get("ANALYZER_RETRY_DELAY_S", "1.0"))

# Pasted / uploaded contracts longer than this are rejected before the LLM call.
MAX_INPUT_CHARS = int(os.environ.get("ANALYZER_MAX_INPUT_CHARS", "5000"))
MIN_INPUT_CHARS = 50
# Max upload size in MB.
MAX_UPLOAD_MB = int(os.environ.get("ANALYZER_MAX_UPLOAD_MB", "10"))

# Evidence highlighting policy defaults.
EVIDENCE_THRESHOLD = float(os.environ.get("ANALYZER_EVIDENCE_THRESHOLD", "0.25"))
FALLBACK_THRESHOLD = float(os.environ.get("ANALYZER_FALLBACK_THRESHOLD", "0.35"))
WORD_WEIGHT = float(os.environ.get("ANALYZER_WORD_WEIGHT", "0.4"))
NGRAM_WEIGHT = float(os.environ.get("ANALYZER_NGRAM_WEIGHT", "0.6"))

LOG_LEVEL = os.environ.get("ANALYZER_LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def ensure_dirs():
    """Create data directories if they don't exist."""
    os.makedirs(DATA_DIR, exist_ok=True)


def configure_logging(level: str = None):
    logging.basicConfig(level=(level or LOG_LEVEL).upper(), format=LOG_FORMAT)
