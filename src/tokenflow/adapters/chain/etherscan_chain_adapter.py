import logging
from typing import Any, Dict, List, Optional
import requests

from tokenflow.config.settings import (
    ETHERSCAN_API_KEY,
    ETHERSCAN_CHAIN_ID,
    ETHERSCAN_BASE_URL,
    ETHERSCAN_REQUESTS_PER_SEC,
    ETHERSCAN_TIMEOUT_SEC,
    ETHERSCAN_MAX_RETRIES,
    ETHERSCAN_NO_RESULTS_MESSAGE,
)

from tokenflow.adapters.chain.rate_limiter import SimpleRateLimiter, backoff_sleep
from tokenflow.core.address import is_address, is_digits, normalize, parse_decimals
from tokenflow.core.errors import ConfigurationError, DataSourceError, RateLimitError
from tokenflow.ports.chain_data_port import ChainDataPort
from tokenflow.core.dto import RawTokenTransfer, TransferPage


logger = logging.getLogger(__name__)


class EtherscanChainAdapter(ChainDataPort):

    def __init__(
        self,
        api_key: Optional[str] = None,
        session: Optional[requests.Session] = None,
        requests_per_sec: float = ETHERSCAN_REQUESTS_PER_SEC,
    ) -> None:
        self._api_key = api_key or ETHERSCAN_API_KEY
        if not self._api_key:
            raise ConfigurationError("Missing ETHERSCAN_API_KEY (env, .env file or api_key argument)")
        self._chainid = ETHERSCAN_CHAIN_ID
        self._base_url = ETHERSCAN_BASE_URL
        self._timeout = ETHERSCAN_TIMEOUT_SEC
        self._max_retries = ETHERSCAN_MAX_RETRIES

        self._rl = SimpleRateLimiter(requests_per_sec)
        self._session = session or requests.Session()

        self._is_contract_cache: Dict[str, bool] = {}

    # ---------- internal ----------

    def _call(self, params: Dict[str, Any]) -> Dict[str, Any]:
        req = dict(params)
        req["apikey"] = self._api_key
        req["chainid"] = str(self._chainid)

        last_err: Optional[Exception] = None

        for attempt in range(self._max_retries):
            try:
                self._rl.wait()
                resp = self._session.get(
                    self._base_url,
                    params=req,
                    timeout=self._timeout,
                )
                resp.raise_for_status()
                data = resp.json()
            except (requests.RequestException, ValueError) as e:
                last_err = e
                logger.debug("etherscan %s attempt %d failed: %s", params.get("action"), attempt + 1, e)
                backoff_sleep(attempt)
                continue

            if not isinstance(data, dict):
                raise DataSourceError(f"Unexpected Etherscan payload: {data!r}")

            status = str(data.get("status", "1"))
            message = str(data.get("message", "OK"))
            result = data.get("result")

            status_text = f"{message} {result if isinstance(result, str) else ''}".lower()
            if status == "0" and "rate limit" in status_text:
                last_err = RateLimitError(message)
                backoff_sleep(attempt)
                continue

            # missing/invalid key: fatal for the whole trace
            if status == "0" and "api key" in status_text:
                raise ConfigurationError(f"Etherscan rejected the API key: {result}")

            return data

        raise DataSourceError(f"Etherscan failed after retries: {last_err}")

    @staticmethod
    def _parse_transfer(row: Any) -> RawTokenTransfer:
        if not isinstance(row, dict):
            raise DataSourceError(f"Invalid transfer row: {row!r}")

        from_addr = row.get("from") or ""
        to_addr = row.get("to") or ""
        if not is_address(from_addr) or not is_address(to_addr):
            raise DataSourceError(f"Invalid transfer addresses in tx {row.get('hash')}")

        try:
            timestamp = int(row.get("timeStamp", 0))
        except (TypeError, ValueError) as e:
            raise DataSourceError(f"Invalid timestamp in tx {row.get('hash')}") from e

        value = str(row.get("value") or "0")
        if not is_digits(value):
            raise DataSourceError(f"Invalid value in tx {row.get('hash')}: {value!r}")

        return RawTokenTransfer(
            tx_hash=str(row.get("hash", "")),
            tx_index=str(row.get("transactionIndex", "")),
            timestamp=timestamp,
            from_address=normalize(from_addr),
            to_address=normalize(to_addr),
            token_address=normalize(str(row.get("contractAddress") or "")),
            value_raw=value,
            token_symbol=str(row.get("tokenSymbol") or ""),
            token_decimals=parse_decimals(row.get("tokenDecimal")),
            fields={str(k): v for k, v in row.items()},
        )

    # ---------- port methods ----------

    def fetch_transfers(self, address: str, token: str, limit: int) -> TransferPage:
        data = self._call({
            "module": "account",
            "action": "tokentx",
            "address": address,
            "contractaddress": token,
            "page": 1,
            "offset": int(limit),
            "sort": "desc",
        })

        status = str(data.get("status", ""))
        message = str(data.get("message", ""))
        rows = data.get("result")

        if status != "1":
            # "No transactions found" comes back as status 0 with an empty list
            if message.startswith(ETHERSCAN_NO_RESULTS_MESSAGE) or (isinstance(rows, list) and not rows):
                return TransferPage(address=address, transfers=[])
            raise DataSourceError(f"Etherscan tokentx error for {address}: {message} ({rows})")

        if not isinstance(rows, list):
            raise DataSourceError(f"Etherscan tokentx returned no list for {address}: {rows!r}")

        transfers: List[RawTokenTransfer] = [self._parse_transfer(r) for r in rows[: int(limit)]]
        return TransferPage(address=address, transfers=transfers)

    def is_contract(self, address: str) -> bool:
        addr = normalize(address)
        if addr in self._is_contract_cache:
            return self._is_contract_cache[addr]

        data = self._call({
            "module": "proxy",
            "action": "eth_getCode",
            "address": addr,
            "tag": "latest",
        })

        code = data.get("result")
        if "error" in data or not isinstance(code, str) or not code.startswith("0x"):
            raise DataSourceError(f"Invalid eth_getCode result for {addr}: {data}")

        is_c = code not in ("0x", "0x0")
        self._is_contract_cache[addr] = is_c
        return is_c
