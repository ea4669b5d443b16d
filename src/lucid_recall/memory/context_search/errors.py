# caller contract violations for the context search engine
# NOTE: provider/parse failures are never raised to callers, only these are.

class ContextSearchContractError(ValueError):
    """Raised before any I/O when a caller passes an invalid query, owner, or scope."""
    pass
