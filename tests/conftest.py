import copy
import logging
import os

import pytest

ORDER_SIG = "(address,uint256,(uint16,address))"
FEE_SIG = "(uint16,address)"

_FEE_COMPONENTS = [
    {"name": "bps", "type": "uint16", "internalType": "uint16"},
    {"name": "recipient", "type": "address", "internalType": "address"},
]

_ORDER_COMPONENTS = [
    {"name": "maker", "type": "address", "internalType": "address"},
    {"name": "amount", "type": "uint256", "internalType": "uint256"},
    {
        "name": "fee",
        "type": "tuple",
        "internalType": "struct Exchange.Fee",
        "components": _FEE_COMPONENTS,
    },
]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep SOLGEN_* settings from the outer shell out of the tests."""
    for k in list(os.environ):
        if k.startswith("SOLGEN_"):
            monkeypatch.delenv(k, raising=False)
    yield


@pytest.fixture(autouse=True)
def _reset_logging():
    """Drop handlers bound to per-test capture streams."""
    yield
    root = logging.getLogger("solgen")
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()
    root.setLevel(logging.NOTSET)


@pytest.fixture
def token_abi():
    """ERC20-ish ABI: view + mutating methods, a named and an anonymous event."""
    return [
        {
            "type": "constructor",
            "stateMutability": "nonpayable",
            "inputs": [{"name": "supply", "type": "uint256"}],
        },
        {
            "type": "function",
            "name": "balanceOf",
            "stateMutability": "view",
            "inputs": [{"name": "owner", "type": "address"}],
            "outputs": [{"name": "", "type": "uint256"}],
        },
        {
            "type": "function",
            "name": "transfer",
            "stateMutability": "nonpayable",
            "inputs": [
                {"name": "to", "type": "address"},
                {"name": "value", "type": "uint256"},
            ],
            "outputs": [{"name": "", "type": "bool"}],
        },
        {
            "type": "function",
            "name": "totalSupply",
            "constant": True,
            "inputs": [],
            "outputs": [{"name": "", "type": "uint256"}],
        },
        {
            "type": "event",
            "name": "Transfer",
            "anonymous": False,
            "inputs": [
                {"name": "from", "type": "address", "indexed": True},
                {"name": "to", "type": "address", "indexed": True},
                {"name": "value", "type": "uint256", "indexed": False},
            ],
        },
        {
            "type": "event",
            "name": "Debug",
            "anonymous": True,
            "inputs": [{"name": "", "type": "bytes", "indexed": False}],
        },
        {"type": "fallback", "stateMutability": "payable"},
    ]


@pytest.fixture
def order_abi():
    """Exchange ABI with nested tuples, arrays of tuples and a tuple in an event body."""
    order = {
        "name": "order",
        "type": "tuple",
        "internalType": "struct Exchange.Order",
        "components": copy.deepcopy(_ORDER_COMPONENTS),
    }
    fee = {
        "name": "fee",
        "type": "tuple",
        "internalType": "struct Exchange.Fee",
        "components": copy.deepcopy(_FEE_COMPONENTS),
    }
    return [
        {
            "type": "function",
            "name": "fill",
            "stateMutability": "nonpayable",
            "inputs": [copy.deepcopy(order), {"name": "", "type": "uint256"}],
            "outputs": [],
        },
        {
            "type": "function",
            "name": "quote",
            "stateMutability": "view",
            "inputs": [dict(copy.deepcopy(order), name="o")],
            "outputs": [{"name": "price", "type": "uint256"}, fee],
        },
        {
            "type": "function",
            "name": "batch",
            "stateMutability": "nonpayable",
            "inputs": [
                {
                    "name": "orders",
                    "type": "tuple[]",
                    "internalType": "struct Exchange.Order[]",
                    "components": copy.deepcopy(_ORDER_COMPONENTS),
                }
            ],
            "outputs": [],
        },
        {
            "type": "event",
            "name": "Filled",
            "anonymous": False,
            "inputs": [
                {"name": "id", "type": "uint256", "indexed": True},
                dict(copy.deepcopy(order), indexed=False),
            ],
        },
    ]


@pytest.fixture
def expose():
    """Build a customs dict exposing the given method names."""

    def _expose(*names, structs=None):
        return {"Methods": {n: True for n in names}, "Structs": dict(structs or {})}

    return _expose
