"""
Services module for the wager book.

- sync: cross-provider game identity resolution and mapping repair
- settlement: bet settlement, odds math and the weekly ledger
- schedule_service: broadcast-slot classification
"""
