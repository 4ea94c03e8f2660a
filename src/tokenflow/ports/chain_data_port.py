from __future__ import annotations

from abc import ABC, abstractmethod
from tokenflow.core.dto import TransferPage

class ChainDataPort(ABC):
    """
    Abstract Class for the two chain queries the tracer needs.
    """

    # --- ERC-20 Transfer events ---

    @abstractmethod
    def fetch_transfers(self, address: str, token: str, limit: int) -> TransferPage:
        """
        Most recent `limit` transfers of `token` touching `address`, newest
        first. An empty page means "no transactions"; provider failures raise
        DataSourceError.
        """
        raise NotImplementedError

    # --- Is-Contract checker ---

    @abstractmethod
    def is_contract(self, address: str) -> bool:
        raise NotImplementedError
