"""
Pneuma - On-chain interaction layer for nftmx.

Provides the LCD client, fee oracle, sequence guard and transaction
assembly/broadcast for executing Terra smart contracts.

Uses httpx + bip-utils + eth-keys instead of the heavyweight Terra SDK.
"""
