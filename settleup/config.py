import os
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    # Comma separated list, "*" allows any origin
    CORS_ORIGINS = [
        origin.strip() for origin in os.environ.get("CORS_ORIGINS", "*").split(",") if origin.strip()
    ]

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

    # Load the demo users, groups and expenses into a fresh store
    SEED_DEMO_DATA = _env_flag("SEED_DEMO_DATA", True)

    # Acting user when the store starts empty
    CURRENT_USER_NAME = os.environ.get("CURRENT_USER_NAME", "You")

config = Config()
