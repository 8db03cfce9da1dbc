"""
Chain - On-chain interaction layer for tokenwright.

Provides the JSON-RPC client, ABI helpers, the ``ChainBackend`` boundary
and the transaction executor used for every state-changing call.

Uses httpx + eth-account + eth-abi instead of the heavyweight web3.py.
"""
