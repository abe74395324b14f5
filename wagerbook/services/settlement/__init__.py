"""
Bet settlement.

- selection_parser: free-text selection → structured fields
- settlement_engine: pure per-bet grading (single, parlay, head-to-head)
- settlement_service: settles a week's active bets and persists outcomes
- odds_math / ledger: payouts and who-owes-whom for the group
"""
