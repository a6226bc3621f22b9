"""
SQLite 어댑터 (WAL, BEGIN IMMEDIATE 쓰기 트랜잭션) 및 스키마
"""

from adapters.db.sqlite_adapter import MEMORY_DB, SQLiteAdapter, get_db_path, init_schema

__all__ = [
    "MEMORY_DB",
    "SQLiteAdapter",
    "get_db_path",
    "init_schema",
]
