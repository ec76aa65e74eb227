"""Shared base for persisted domain entities"""

from sqlalchemy import BigInteger, Integer
from sqlmodel import SQLModel

# BIGINT primary keys; SQLite only auto-increments INTEGER PRIMARY KEY
IdType = BigInteger().with_variant(Integer(), "sqlite")


class BaseModel(SQLModel):
    """Base class for all SQLModel entities in the lifecycle engine"""

    pass
