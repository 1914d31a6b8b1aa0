"""SQLAlchemy models for ledgerkit database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    JSON,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Currency(Base):
    """Currency model."""

    __tablename__ = "currencies"

    id = Column(Integer, primary_key=True)
    code = Column(String(3), unique=True, nullable=False)
    name = Column(String, nullable=False)
    is_base = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)


class Account(Base):
    """Ledger account model."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    bank_name = Column(String, nullable=False)
    currency_id = Column(Integer, ForeignKey("currencies.id"), nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    # Relationships
    transactions = relationship(
        "Transaction",
        back_populates="account",
        cascade="all, delete-orphan",
        foreign_keys="Transaction.account_id",
    )


class BankConfiguration(Base):
    """Bank export configuration model.

    ``field_mapping`` is stored as JSON: canonical mapping key -> source column.
    """

    __tablename__ = "bank_configurations"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    type = Column(String, nullable=False, default="bank")
    field_mapping = Column(JSON, nullable=False, default=dict)
    has_headers = Column(Boolean, default=True, nullable=False)
    delimiter = Column(String, default=",", nullable=False)
    encoding = Column(String, default="utf-8", nullable=False)
    date_format = Column(String, default="YYYY-MM-DD", nullable=False)
    amount_handling = Column(String, default="signed", nullable=False)
    currency = Column(String(3), nullable=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    # Relationships
    processing_rules = relationship(
        "ProcessingRule", back_populates="bank_configuration", cascade="all, delete-orphan"
    )


class ProcessingRule(Base):
    """Import processing rule model.

    Conditions and actions are stored as JSON lists of plain dicts.
    """

    __tablename__ = "processing_rules"

    id = Column(Integer, primary_key=True)
    bank_config_id = Column(Integer, ForeignKey("bank_configurations.id"), nullable=False)
    name = Column(String, nullable=False)
    type = Column(String, nullable=False)
    active = Column(Boolean, default=True, nullable=False)
    rule_order = Column(Integer, default=0, nullable=False)
    conditions = Column(JSON, nullable=False, default=list)
    condition_logic = Column(String, default="ANY", nullable=False)
    actions = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    # Relationships
    bank_configuration = relationship("BankConfiguration", back_populates="processing_rules")


class Transaction(Base):
    """Ledger transaction model."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    date = Column(Date, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    description = Column(String, nullable=True)
    reference = Column(String, nullable=True)
    category_id = Column(String, nullable=True)
    subcategory_id = Column(String, nullable=True)
    transaction_type = Column(String, nullable=True)
    transaction_group = Column(String, nullable=True)
    payee = Column(String, nullable=True)
    payer = Column(String, nullable=True)
    notes = Column(String, nullable=True)
    currency_id = Column(Integer, ForeignKey("currencies.id"), nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    destination_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    destination_amount = Column(Numeric(12, 2), nullable=True)
    reconciliation_reference = Column(String, nullable=True, index=True)
    reconciled_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    # Relationships
    account = relationship("Account", back_populates="transactions", foreign_keys=[account_id])


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
