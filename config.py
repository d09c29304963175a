"""App-wide configuration and environment settings."""

import os
from dotenv import load_dotenv

load_dotenv()  # Load from .env file


def _flag(key, default="false"):
    return os.getenv(key, default).lower() in ("true", "1")


# Extraction provider: "gemini" (hosted) or "ollama" (local)
AI_PROVIDER = os.getenv("AI_PROVIDER", "gemini").lower()

# LLM (Google Gemini)
GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY", "")
LLM_MODEL = os.getenv("LLM_MODEL", "gemini-2.5-flash-lite")

# LLM (Ollama)
OLLAMA_BASE_URL = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
OLLAMA_MODEL = os.getenv("OLLAMA_MODEL", "llama3.2")

# Rate-limit retry policy for extraction calls
EXTRACTION_MAX_RETRIES = int(os.getenv("EXTRACTION_MAX_RETRIES", "3"))
EXTRACTION_BASE_DELAY = float(os.getenv("EXTRACTION_BASE_DELAY", "1.0"))

# Storage (in-memory stores are used when MONGODB_URL is empty)
MONGODB_URL = os.getenv("MONGODB_URL", "")
DATABASE_NAME = os.getenv("DATABASE_NAME", "loan_marketplace")
SESSION_TTL_SECONDS = int(os.getenv("SESSION_TTL_SECONDS", "3600"))

# Lender portal auth
JWT_SECRET = os.getenv("JWT_SECRET", "change-me-in-production")
JWT_EXPIRY_DAYS = int(os.getenv("JWT_EXPIRY_DAYS", "7"))

# Chat flow
CREDIT_LOOKUP_DELAY = float(os.getenv("CREDIT_LOOKUP_DELAY", "0.8"))  # Simulated bureau latency
PROVISIONAL_USER_SCORE = 70  # Used for matching until KYC produces a real score

# LangSmith
LANGSMITH_TRACING = _flag("LANGSMITH_TRACING")
LANGSMITH_PROJECT = os.getenv("LANGSMITH_PROJECT", "loan-marketplace")

# Server
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
