import os
from dotenv import load_dotenv
load_dotenv()
# ---- Etherscan ----
ETHERSCAN_API_KEY = os.environ.get("ETHERSCAN_API_KEY")
ETHERSCAN_CHAIN_ID = int(os.environ.get("ETHERSCAN_CHAIN_ID", "1"))    # Ethereum mainnet
ETHERSCAN_BASE_URL = "https://api.etherscan.io/v2/api"

ETHERSCAN_REQUESTS_PER_SEC = float(os.environ.get("ETHERSCAN_REQUESTS_PER_SEC", "4.0"))
ETHERSCAN_TIMEOUT_SEC = 15
ETHERSCAN_MAX_RETRIES = 3

# Etherscan answers an empty account history with status "0" and this message
ETHERSCAN_NO_RESULTS_MESSAGE = "No transactions found"

# ---- Trace bounds ----
TRACE_MIN_HOPS = 1
TRACE_MAX_HOPS = 4
TRACE_DEFAULT_HOPS = 2

TRACE_MIN_PER_ADDRESS = 10
TRACE_MAX_PER_ADDRESS = 200
TRACE_DEFAULT_PER_ADDRESS = 50

TRACE_DEFAULT_DIRECTION = "downstream"

# addresses classified (eth_getCode) after traversal
TRACE_CLASSIFY_LIMIT = 25
# transfers touching the start wallet kept in the report
TRACE_START_TRANSFERS_LIMIT = 100

TRACE_FETCH_WORKERS = int(os.environ.get("TRACE_FETCH_WORKERS", "4"))

# ---- Formatting ----
MAX_TOKEN_DECIMALS = 36
START_NODE_LABEL = "START"
