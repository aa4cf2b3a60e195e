class FoodLinkError(Exception):
    """Base class for domain errors surfaced to the request layer."""

class ValidationError(FoodLinkError):
    """Malformed input; rejected before any mutation."""

class InvalidStatusError(ValidationError):
    pass

class ConflictError(FoodLinkError):
    """Lost a compare-and-set race or hit a terminal/incompatible state."""

class NotFoundError(FoodLinkError):
    pass

class OracleContractError(FoodLinkError):
    """The ranking oracle answered with something outside the candidate set."""
