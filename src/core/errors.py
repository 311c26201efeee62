"""Domain errors raised at the configuration boundary."""


class CCASError(Exception):
    """Base class for pack-opening pipeline errors."""


class ConfigurationError(CCASError):
    """Pack or rarity key absent, or configuration failed validation.

    Raised before any session state is touched, so a pull that fails with
    this error leaves pity counters and emotion meters as they were.
    """

    def __init__(self, message: str, key: str | None = None) -> None:
        super().__init__(message)
        self.key = key
