from sqlalchemy import BigInteger, Integer, Numeric
from sqlalchemy.orm import DeclarativeBase

# SQLite only autoincrements INTEGER PRIMARY KEY columns
BigIntPK = BigInteger().with_variant(Integer, "sqlite")

# Every stored rupee amount: totals, reductions, balances, payments
MoneyAmount = Numeric(15, 2)


class Base(DeclarativeBase):
    """Declarative base shared by ledger, registry and audit tables."""
