class LifecycleError(Exception):
    """Base for failures a caller can show to the operator verbatim."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class LifecycleValidationError(LifecycleError):
    # missing/invalid input, raised before anything is persisted
    status_code = 400


class NotFoundError(LifecycleError):
    status_code = 404


class RuleViolationError(LifecycleError):
    # blocked status, asset not assigned, ...
    status_code = 400
