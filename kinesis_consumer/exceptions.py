from pydantic import ValidationError


class KinesisConsumerException(Exception):
    pass


class ConfigurationError(KinesisConsumerException, ValueError):
    pass


class ConfigurationNotFoundError(KinesisConsumerException, LookupError):
    def __init__(self, key: str, message: str) -> None:
        super().__init__(message)
        self.key = key


class ConfigurationStateError(KinesisConsumerException):
    def __init__(self, key: str, message: str) -> None:
        super().__init__(message)
        self.key = key


class NoProviderConfigured(KinesisConsumerException):
    pass


def describe(title: str, error: ValidationError) -> str:
    details = "; ".join(
        f"{'.'.join(str(part) for part in entry['loc']) or '<root>'}: {entry['msg']}"
        for entry in error.errors()
    )
    return f"Invalid {title} configuration: {details}"
