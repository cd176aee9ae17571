"""Minimal ABI of the deployed weather consumer contract.

Only the entries the relay and CLI touch are listed.
"""

from __future__ import annotations

from typing import Any

NEW_REQUEST_EVENT = "newRequest"
COMPLETE_FUNCTION = "rawCompleteRequest"
SUBMIT_FUNCTION = "requestTemperature"

CONSUMER_ABI: list[dict[str, Any]] = [
    {
        "anonymous": False,
        "inputs": [
            {"indexed": False, "internalType": "uint256", "name": "requestId", "type": "uint256"},
            {"indexed": False, "internalType": "int256", "name": "lat", "type": "int256"},
            {"indexed": False, "internalType": "int256", "name": "log", "type": "int256"},
        ],
        "name": NEW_REQUEST_EVENT,
        "type": "event",
    },
    {
        "inputs": [
            {"internalType": "uint256", "name": "requestId", "type": "uint256"},
            {"internalType": "string", "name": "temp", "type": "string"},
        ],
        "name": COMPLETE_FUNCTION,
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [
            {"internalType": "int256", "name": "lat", "type": "int256"},
            {"internalType": "int256", "name": "log", "type": "int256"},
        ],
        "name": SUBMIT_FUNCTION,
        "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
        "stateMutability": "payable",
        "type": "function",
    },
    {
        "inputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
        "name": "requests",
        "outputs": [
            {"internalType": "uint256", "name": "requestId", "type": "uint256"},
            {"internalType": "int256", "name": "lat", "type": "int256"},
            {"internalType": "int256", "name": "log", "type": "int256"},
            {"internalType": "uint8", "name": "status", "type": "uint8"},
            {"internalType": "string", "name": "temp", "type": "string"},
        ],
        "stateMutability": "view",
        "type": "function",
    },
]
