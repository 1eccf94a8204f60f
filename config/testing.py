import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "checkin_test_db"),
}

STORE_BACKEND = "memory"

PIN_VERIFY_URL = ""
PIN_VERIFY_TIMEOUT = 5.0

EXPORT_GRACE_MINUTES = 5
BACKGROUND_WORKERS = 2

LOG_LEVEL = "WARNING"

DEBUG = False
TESTING = True

AUTO_INIT_DB = False
AUTO_SEED_DB = False
