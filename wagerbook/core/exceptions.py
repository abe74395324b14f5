"""
Error taxonomy for identity resolution and settlement.

None of these cross a batch boundary: batch operations catch them per item
and report them as issues on that item.
"""
from typing import Optional


class WagerbookError(Exception):
    """Base class for all domain errors."""


class NoMatchFound(WagerbookError):
    """No candidate from a provider reached the confidence threshold."""

    def __init__(self, source: str, game_id: str, best_confidence: int = 0):
        self.source = source
        self.game_id = game_id
        self.best_confidence = best_confidence
        super().__init__(
            f"No {source} match for game {game_id} (best confidence {best_confidence}%)"
        )


class IncompleteGameState(WagerbookError):
    """A referenced game is not final yet or lacks the stats a bet needs."""

    def __init__(self, game_id: Optional[str], reason: str):
        self.game_id = game_id
        self.reason = reason
        super().__init__(f"Game {game_id} not ready: {reason}")


class AmbiguousSelection(WagerbookError):
    """Free-text selection cannot be mapped to a side, player, or direction."""

    def __init__(self, selection: str, reason: str):
        self.selection = selection
        self.reason = reason
        super().__init__(f"Cannot interpret selection '{selection}': {reason}")


class UpstreamFetchFailure(WagerbookError):
    """An external provider could not be reached or returned an error."""

    def __init__(self, source: str, detail: str):
        self.source = source
        self.detail = detail
        super().__init__(f"{source} fetch failed: {detail}")
