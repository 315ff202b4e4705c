import os
import pathlib
from dotenv import load_dotenv

load_dotenv()

line_channel_access_token = os.getenv("LINE_CHANNEL_ACCESS_TOKEN", "")
redis_url = os.getenv("REDIS_URL", "redis://redis:6379/0")

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
    file_path = pathlib.Path(__file__).parent / "actor_storage.sqlite3"
    database_url = f"sqlite+aiosqlite:///{file_path}"

enable_scheduler = os.getenv("ENABLE_SCHEDULER", "1").strip().lower() not in ("0", "false", "no", "off")

if __name__ == "__main__":
    print(database_url, redis_url, enable_scheduler)
