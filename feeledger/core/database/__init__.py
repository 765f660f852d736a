from feeledger.core.database.session import async_session, engine, get_db
from feeledger.core.database.base import Base, BigIntPK, MoneyAmount

__all__ = ["async_session", "engine", "get_db", "Base", "BigIntPK", "MoneyAmount"]
