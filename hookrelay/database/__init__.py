from hookrelay.database.async_db import (
    AsyncSessionLocal,
    async_engine,
    create_tables,
    dispose_engine,
    get_async_db,
    get_async_db_context,
    wait_for_database,
)

__all__ = [
    "AsyncSessionLocal",
    "async_engine",
    "create_tables",
    "dispose_engine",
    "get_async_db",
    "get_async_db_context",
    "wait_for_database",
]
