# jobmatch/utils/errors.py
class UserInputError(RuntimeError):
    """
    Raised for invalid caller input (malformed ids, unknown model type,
    unknown algorithm, unknown version). Never retried.
    """


class InsufficientDataError(RuntimeError):
    """
    Raised by train engines when there are too few labeled samples.

    Callers catch this one specifically to degrade to heuristic scoring.
    """

    def __init__(self, available: int, required: int, what: str = "labeled samples"):
        self.available = available
        self.required = required
        super().__init__(
            f"Insufficient data: {available} {what} available, {required} required"
        )


class RegistryError(RuntimeError):
    """
    Transient failure of the model registry or artifact store.
    """
