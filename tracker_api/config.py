import os

from dotenv import load_dotenv

load_dotenv()


def env_flag(name: str, default: bool = False):
    """
    Read a boolean flag from the environment.

    Args:
        name (str): Environment variable name.
        default (bool): Value used when the variable is unset or empty.

    Returns:
        bool: Parsed flag.
    """
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change-me")
    JSON_SORT_KEYS = False

    MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017")
    MONGO_DB_NAME = os.getenv("MONGO_DB_NAME", "movie_tracker")

    REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    CACHE_ENABLED = env_flag("CACHE_ENABLED", default=True)
    CACHE_TTL_SECONDS = int(os.getenv("CACHE_TTL_SECONDS", 600))

    GITHUB_CLIENT_ID = os.getenv("GITHUB_CLIENT_ID", "")
    GITHUB_CLIENT_SECRET = os.getenv("GITHUB_CLIENT_SECRET", "")
    CALLBACK_URL = os.getenv("CALLBACK_URL", "http://localhost:3000/github/callback")

    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE = os.getenv("LOG_FILE") or None

    PORT = int(os.getenv("PORT", 3000))
