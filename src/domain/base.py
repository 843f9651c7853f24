"""Base class for domain entities"""

from datetime import datetime
from sqlalchemy import BigInteger, Integer
from sqlmodel import SQLModel

# SQLite only auto-increments INTEGER primary keys
IdType = BigInteger().with_variant(Integer(), "sqlite")


class BaseModel(SQLModel):
    """Common base for all SQLModel table entities"""
    pass


def epoch_millis(moment: datetime) -> int:
    """Milliseconds since the Unix epoch for a naive UTC datetime"""
    return int((moment - datetime(1970, 1, 1)).total_seconds() * 1000)
