import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "checkin_db"),
}

# "mysql" or "memory" (no database needed; data is lost on restart)
STORE_BACKEND = os.getenv("STORE_BACKEND", "mysql")

# Hosted verify-pin function; empty means PINs are checked against the users table
PIN_VERIFY_URL = os.getenv("PIN_VERIFY_URL", "")
PIN_VERIFY_TIMEOUT = float(os.getenv("PIN_VERIFY_TIMEOUT", "10"))

EXPORT_GRACE_MINUTES = int(os.getenv("EXPORT_GRACE_MINUTES", "5"))
BACKGROUND_WORKERS = int(os.getenv("BACKGROUND_WORKERS", "4"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

DEBUG = True

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also create a demo admin (PIN 0000) on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
