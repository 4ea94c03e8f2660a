from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass(frozen=True)
class RawTokenTransfer:
    tx_hash: str
    tx_index: str
    timestamp: int
    from_address: str       # normalized
    to_address: str         # normalized
    token_address: str
    value_raw: str          # integer string, token units before decimals
    token_symbol: str = ""
    token_decimals: int = 0

    # untouched provider row, echoed back in the start-wallet report
    fields: Dict[str, str] = field(default_factory=dict, compare=False, hash=False)


@dataclass(frozen=True)
class TransferPage:
    """
    Result of one transfer-history query. An empty page is the provider's
    "no transactions" answer, not an error.
    """

    address: str
    transfers: List[RawTokenTransfer]

    @property
    def is_empty(self) -> bool:
        return not self.transfers


@dataclass(frozen=True)
class ClassifyOutcome:
    address: str
    is_contract: Optional[bool] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.is_contract is not None
