"""Configuration for GreenPrompt."""

import os

from dotenv import load_dotenv

# Find the project root (where .env lives)
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
load_dotenv(os.path.join(PROJECT_ROOT, ".env"))

# Rule document (thresholds, phrase patterns, impact coefficients)
RULES_PATH = os.getenv(
    "GREENPROMPT_RULES_PATH",
    os.path.join(os.path.dirname(os.path.abspath(__file__)), "rules.json"),
)

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# HTTP
CORS_ALLOW_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",")
    if origin.strip()
]
MAX_PROMPT_CHARS = int(os.getenv("MAX_PROMPT_CHARS", "262144"))

# Requests allowed per client per window on the HTTP API; 0 turns rate limiting off
RATE_LIMIT_MAX_REQUESTS = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "120"))
RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))
