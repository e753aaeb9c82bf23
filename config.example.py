# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real secrets. Use .env (local, gitignored).

This file exists to make the repo self-documenting even without opening .env.
"""

ENV_VARS = {
    # App / logging
    "FOCUS_APP_NAME": "App display name (default: focus-radar).",
    "FOCUS_LOG_LEVEL": "Console logging level (default: INFO).",
    "FOCUS_LANGUAGE": "Initial summary language, en or zh (a saved /lang choice wins).",
    # LLM / OpenRouter
    "FOCUS_OPENROUTER_API_KEY": "OpenRouter API key (without it reviews run in offline demo mode).",
    "FOCUS_OPENROUTER_BASE_URL": "OpenRouter base URL (default: https://openrouter.ai/api/v1).",
    "FOCUS_LLM_MODELS": "Comma/space separated list of models to try in order.",
    "FOCUS_HTTP_REFERER": "Optional OpenRouter metadata header.",
    "FOCUS_APP_TITLE": "Optional OpenRouter metadata header title.",
    "FOCUS_LLM_CONNECT_TIMEOUT_SECONDS": "Connect timeout (default: 5).",
    "FOCUS_LLM_READ_TIMEOUT_SECONDS": "Read timeout (default: 40, never below first-token timeout).",
    "FOCUS_LLM_FIRST_TOKEN_TIMEOUT_SECONDS": "Give up on a model after this long without output (default: 30).",
    # Paths (gitignored)
    "FOCUS_DATA_DIR": "Local data directory (default: .local/focus_radar).",
    "FOCUS_STORE_DB_PATH": "Key/value SQLite path (default: <data_dir>/store.sqlite3).",
}
