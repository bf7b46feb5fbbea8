from pathlib import Path
import os
import sys
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase

def app_root_dir() -> Path:
    if getattr(sys, "frozen", False):
        exe_dir = Path(sys.executable).resolve().parent
        return exe_dir.parent
    return Path(__file__).resolve().parent

def resolve_db_path(root_dir: Path) -> Path:
    custom_path = os.getenv("APP_DB_PATH")
    if not custom_path:
        data_dir = root_dir / "data"
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir / "itassets.db"

    db_path = Path(custom_path).expanduser()
    if not db_path.is_absolute():
        db_path = (root_dir / db_path).resolve()

    db_path.parent.mkdir(parents=True, exist_ok=True)
    return db_path

def resolve_database_url(root_dir: Path) -> str:
    # DATABASE_URL wins (e.g. postgresql+psycopg2://...), otherwise a local SQLite file
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    return f"sqlite:///{resolve_db_path(root_dir).as_posix()}"

ROOT_DIR = app_root_dir()
DATABASE_URL = resolve_database_url(ROOT_DIR)

# bulk actions open one session per item from worker threads
connect_args = {"check_same_thread": False, "timeout": 30} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(
    DATABASE_URL,
    connect_args=connect_args,
)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)

class Base(DeclarativeBase):
    pass
