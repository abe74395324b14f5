"""
Game Identity Sync

Keeps internal games linked to the scores provider (ESPN) and the odds
provider (The Odds API).

Key components:
- Matchers: Score and pick candidate games across providers
- Adapters: Fetch and normalize provider data
- Mapping repair: Persist accepted matches and report gaps
"""
