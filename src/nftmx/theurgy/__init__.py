"""
Theurgy - Command implementations for the nftmx CLI.

Each module corresponds to one or more top-level CLI commands:
- execute:  Submit arbitrary contract messages in one transaction
- criteria: buy / set-buy-criteria / set-sell-criteria shortcuts
- status:   Resolve a transaction's outcome by hash or sequence
- gas:      Show the fee oracle's gas prices
"""
