"""
SQLAlchemy schema and session setup for the production preorder store.
"""

from __future__ import annotations

from sqlalchemy import BigInteger, Column, Integer, String, Text, create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

Base = declarative_base()


class PreorderRow(Base):
    __tablename__ = "preorders"

    row_id = Column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    # Submission time in milliseconds; two preorders in the same millisecond share it.
    id = Column(BigInteger, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    message = Column(Text, nullable=True)
    productId = Column(String(255), nullable=True)
    productName = Column(String(255), nullable=True)
    # ISO-8601 UTC string, same format as the JSON store
    created_at = Column(String(32), nullable=False, index=True)

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "message": self.message,
            "productId": self.productId,
            "productName": self.productName,
            "created_at": self.created_at,
        }


def create_session_factory(database_url: str) -> sessionmaker:
    """
    Build a session factory for any SQLAlchemy URL (Postgres, MySQL or SQLite
    for tests) and make sure the schema exists.
    """
    if not database_url:
        raise ValueError("DATABASE_URL is required for the SQL preorder store")
    engine = create_engine(
        database_url,
        future=True,
        pool_pre_ping=True,
        pool_recycle=1800,
    )
    Base.metadata.create_all(engine)
    return sessionmaker(
        bind=engine, class_=Session, expire_on_commit=False, future=True
    )
