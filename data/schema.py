from pydantic import BaseModel, ConfigDict, Field

from core.enums import Side


class TradeCreate(BaseModel):
    """
    A trade submitted by a producer.
    On the wire the prices are named ``open`` and ``close``.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    account: str = Field(min_length=1)
    symbol: str = Field(pattern=r"^[A-Z]{6}$")   # currency pair, e.g. EURUSD
    volume: float = Field(gt=0)                   # lots
    open_price: float = Field(gt=0, alias="open")
    close_price: float = Field(gt=0, alias="close")
    side: Side


class TradeRecord(BaseModel):
    """
    Snapshot of one queued trade row.
    """
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    account: str
    symbol: str
    volume: float
    open_price: float
    close_price: float
    side: Side
    processed: bool = False


class AccountStatsRecord(BaseModel):
    """
    Aggregate for one account. Accounts never aggregated read as zero.
    """
    model_config = ConfigDict(from_attributes=True, frozen=True)

    account: str
    trade_count: int = 0
    cumulative_profit: float = 0.0

    @classmethod
    def zero(cls, account: str) -> "AccountStatsRecord":
        return cls(account=account)
