import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./marauders_map.db")
    DB_AUTO_CREATE = bool(data.get("DB_AUTO_CREATE", False))
    API_PREFIX = data.get("API_PREFIX", "/api")
    API_PORT = data.get("API_PORT", 4001)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", ["http://localhost:3001"])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")

    # No default: an empty secret aborts startup
    JWT_SECRET = data.get("JWT_SECRET", os.environ.get("JWT_SECRET", ""))
    JWT_ALGORITHM = data.get("JWT_ALGORITHM", "HS256")
    ACCESS_TOKEN_TTL_SECONDS = int(data.get("ACCESS_TOKEN_TTL_SECONDS", 15 * 60))
    REFRESH_TOKEN_TTL_SECONDS = int(data.get("REFRESH_TOKEN_TTL_SECONDS", 7 * 24 * 3600))

    BCRYPT_ROUNDS = int(data.get("BCRYPT_ROUNDS", 12))
    PASSWORD_MIN_LENGTH = int(data.get("PASSWORD_MIN_LENGTH", 8))
    ALLOWED_EMAIL_DOMAIN = data.get("ALLOWED_EMAIL_DOMAIN", "hogwarts.edu")
    REVOKE_TOKENS_ON_PASSWORD_CHANGE = bool(
        data.get("REVOKE_TOKENS_ON_PASSWORD_CHANGE", False)
    )

    PRESENCE_ONLINE_WINDOW_SECONDS = int(data.get("PRESENCE_ONLINE_WINDOW_SECONDS", 60))
    PRESENCE_STALE_AFTER_SECONDS = int(data.get("PRESENCE_STALE_AFTER_SECONDS", 60))
    PRESENCE_SWEEP_INTERVAL_SECONDS = int(data.get("PRESENCE_SWEEP_INTERVAL_SECONDS", 120))
    PRESENCE_SWEEP_ENABLED = bool(data.get("PRESENCE_SWEEP_ENABLED", True))
