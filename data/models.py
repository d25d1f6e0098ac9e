from sqlalchemy import Boolean, Column, Float, Index, Integer, String, false

from data.db import Base


class PendingTrade(Base):
    """
    A trade waiting in the queue for aggregation.

    Rows are appended by producers and flipped to processed exactly once by
    the worker. They are never deleted.
    """
    __tablename__ = "trades_q"
    __table_args__ = (
        Index("ix_trades_q_processed", "processed"),
        {"sqlite_autoincrement": True},  # ids are never reused
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    account = Column(String, nullable=False)
    symbol = Column(String, nullable=False)
    volume = Column(Float, nullable=False)
    open_price = Column(Float, nullable=False)
    close_price = Column(Float, nullable=False)
    side = Column(String, nullable=False)       # buy / sell
    processed = Column(Boolean, nullable=False, default=False, server_default=false())

    def __repr__(self):
        return f"<PendingTrade #{self.id} {self.account} {self.side} {self.symbol} processed={self.processed}>"


class AccountStats(Base):
    """Running per-account aggregate of processed trades."""
    __tablename__ = "account_stats"

    account = Column(String, primary_key=True)
    trade_count = Column(Integer, nullable=False, default=0, server_default="0")
    cumulative_profit = Column(Float, nullable=False, default=0.0, server_default="0")

    def __repr__(self):
        return f"<AccountStats {self.account} trades={self.trade_count} profit={self.cumulative_profit}>"
