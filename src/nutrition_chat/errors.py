"""Error types raised across service boundaries."""


class CompletionError(RuntimeError):
    """Raised when the completion provider fails after all retries."""


class LedgerSaveError(RuntimeError):
    """Raised when a ledger save fails and the mutation was rolled back."""


class MealNotFoundError(LookupError):
    """Raised when a meal entry id does not exist in any daily log."""
