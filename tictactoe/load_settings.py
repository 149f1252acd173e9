import os
from dotenv import load_dotenv

load_dotenv()

user = os.getenv("DB_USER")
password = os.getenv("DB_PASSWORD")
host = os.getenv("DB_HOST")
port = os.getenv("DB_PORT", "5432")
db_name = os.getenv("DB_NAME")

if os.getenv("DATABASE_URL"):
    database_url = os.getenv("DATABASE_URL")
elif host:
    database_url = f"postgresql+asyncpg://{user}:{password}@{host}:{port}/{db_name}"
else:
    database_url = "sqlite+aiosqlite:///./tictactoe.sqlite3"

cache_backend = os.getenv("CACHE_BACKEND", "redis").lower()
redis_url = os.getenv("REDIS_URL", "redis://redis:6379/0")
cache_ttl_sec = int(os.getenv("CACHE_TTL_SEC", "60"))

# Upper bounds for a single call; an expired call surfaces as a transient error.
storage_timeout_sec = float(os.getenv("STORAGE_TIMEOUT_SEC", "2.0"))
cache_timeout_sec = float(os.getenv("CACHE_TIMEOUT_SEC", "0.5"))
lock_timeout_sec = float(os.getenv("LOCK_TIMEOUT_SEC", "5.0"))
max_commit_attempts = int(os.getenv("MAX_COMMIT_ATTEMPTS", "3"))

lock_idle_sec = float(os.getenv("LOCK_IDLE_SEC", "300"))
lock_sweep_interval_sec = int(os.getenv("LOCK_SWEEP_INTERVAL_SEC", "60"))

log_level = os.getenv("LOG_LEVEL", "INFO").upper()

if __name__ == "__main__":
    print(database_url, cache_backend, redis_url)
