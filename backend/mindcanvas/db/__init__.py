"""Database Package - SQLAlchemy declarative Base.

Invariants:
    - Single async engine per process (infrastructure.database.init_db)
    - asyncpg for PostgreSQL, aiosqlite for local and test databases
"""
