from tokenflow.ports.chain_data_port import ChainDataPort
from tokenflow.core.dto import RawTokenTransfer, TransferPage
from tokenflow.core.errors import DataSourceError
from typing import Optional, Dict, Iterable, List

class StaticChainAdapter(ChainDataPort):
    """In-memory chain for dev/testing. Records every call it serves."""

    def __init__(self,
                 transfers: Optional[List[RawTokenTransfer]] = None,
                 contracts: Optional[Dict[str, bool]] = None,
                 failing_addresses: Optional[Iterable[str]] = None,
                 failing_contract_checks: Optional[Iterable[str]] = None,
                 ):
        self._transfers = transfers or []
        self._contract = {k.lower(): v for k, v in (contracts or {}).items()}
        self._failing = {a.lower() for a in (failing_addresses or [])}
        self._failing_code = {a.lower() for a in (failing_contract_checks or [])}
        self.fetch_calls: List[str] = []
        self.contract_calls: List[str] = []

    def fetch_transfers(self, address, token, limit):
        ad = address.lower()
        tk = token.lower()
        self.fetch_calls.append(ad)
        if ad in self._failing:
            raise DataSourceError(f"static failure for {ad}")

        items = [
            t for t in self._transfers
            if (t.from_address == ad or t.to_address == ad)
            and t.token_address == tk
        ]
        items.sort(key=lambda x: x.timestamp, reverse=True)
        return TransferPage(address=ad, transfers=items[:limit])

    def is_contract(self, address):
        ad = address.lower()
        self.contract_calls.append(ad)
        if ad in self._failing_code:
            raise DataSourceError(f"static eth_getCode failure for {ad}")
        return bool(self._contract.get(ad, False))
