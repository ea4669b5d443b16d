from lucid_recall.common.db.models.base import MainDB_Base
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
# NOTE: import every table model to register it with MainDB_Base.metadata
from lucid_recall.common.db.models.memory.conversations import Conversation, ConversationTurn
from lucid_recall.common.db.models.memory.facts import Fact
from lucid_recall.common.db.models.memory.library_entries import LibraryEntry
from lucid_recall.common.db.models.memory.summaries import ConversationSummary

from dotenv import load_dotenv
import os
from pathlib import Path

def delete_all_tables(engine: Engine) -> None:
    MainDB_Base.metadata.drop_all(engine)
    print("All tables deleted.")

def create_all_tables(engine: Engine) -> None:
    # the Vector columns and HNSW indexes need the pgvector extension
    with engine.begin() as conn:
        conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
    MainDB_Base.metadata.create_all(engine)
    print(f"Created tables: {sorted(MainDB_Base.metadata.tables.keys())}")

# NOTE: trouble shooting: if imports do not work, run from the project root with the package installed (pip install -e .)
if __name__ == "__main__":
    # one-off script to reset db, by deleting then creating all tables

    # load in the proper .env file, defaulted to .env.dev
    APP_ENV = os.getenv("APP_ENV", "dev")
    # This file is in scripts/db/, so we go up two levels to project root
    SERVICE_ROOT = Path(__file__).resolve().parents[2]
    env_file_path = SERVICE_ROOT / f".env.{APP_ENV}"

    # Load the .env file manually
    print(f"Loading env file from: {env_file_path}")
    load_dotenv(dotenv_path=env_file_path)

    MAIN_DB_USER = os.getenv("MAIN_DB_USER")
    MAIN_DB_PW = os.getenv("MAIN_DB_PW")
    MAIN_DB_HOST = os.getenv("MAIN_DB_HOST")
    MAIN_DB_PORT = os.getenv("MAIN_DB_PORT")
    MAIN_DB_NAME = os.getenv("MAIN_DB_NAME")

    assert MAIN_DB_HOST and MAIN_DB_NAME, "MAIN_DB_HOST and MAIN_DB_NAME must be set"

    # psycopg2 for the sync one-off script; the service itself runs on asyncpg
    MAIN_DB_URL = f"postgresql+psycopg2://{MAIN_DB_USER}:{MAIN_DB_PW}@{MAIN_DB_HOST}:{MAIN_DB_PORT}/{MAIN_DB_NAME}?sslmode=require"

    try:
        engine = create_engine(MAIN_DB_URL)
    except Exception as e:
        print(f"Error connecting to database: {e}")
        exit(1)

    # NOTE: this is the actual logic to reset: edit as needed
    delete_all_tables(engine)
    create_all_tables(engine)
    print("All tables reset successfully!")
