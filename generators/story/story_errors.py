class ValidationError(ValueError):
    """User input is missing or invalid. No external call was made."""


class ServiceError(RuntimeError):
    """The generation service could not produce a result."""


class GenerationServiceError(RuntimeError):
    """A story generation attempt failed at the generation service.

    The whole operation may be retried from the start; nothing is retried
    automatically.
    """

    def __init__(self, message: str, stage: str):
        super().__init__(message)
        self.stage = stage
