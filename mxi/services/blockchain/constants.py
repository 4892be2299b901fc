"""
Blockchain constants.

Minimal BEP-20 ABI used for USDT balance reads, transfers and decoding.
"""

USDT_ABI = [
    {
        "constant": True,
        "inputs": [{"name": "_owner", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "balance", "type": "uint256"}],
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [],
        "name": "decimals",
        "outputs": [{"name": "", "type": "uint8"}],
        "type": "function",
    },
    {
        "constant": False,
        "inputs": [
            {"name": "_to", "type": "address"},
            {"name": "_value", "type": "uint256"},
        ],
        "name": "transfer",
        "outputs": [{"name": "", "type": "bool"}],
        "type": "function",
    },
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "name": "from", "type": "address"},
            {"indexed": True, "name": "to", "type": "address"},
            {"indexed": False, "name": "value", "type": "uint256"},
        ],
        "name": "Transfer",
        "type": "event",
    },
]

# Gas limit headroom over the estimate for token transfers
GAS_LIMIT_MULTIPLIER = 1.2
DEFAULT_TOKEN_GAS_LIMIT = 100000

# Receipt status values
TX_STATUS_PENDING = "pending"
TX_STATUS_SUCCESS = "success"
TX_STATUS_REVERTED = "reverted"
TX_STATUS_UNKNOWN = "unknown"
