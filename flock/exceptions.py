class FlockError(Exception):
    """Base class for pipeline errors"""


class ProviderError(FlockError):
    """A provider cannot be used as configured"""

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider}: {message}")
        self.provider = provider


class StoreConflict(FlockError):
    """A unique key was taken by a concurrent writer"""

    def __init__(self, entity: str, key: str):
        super().__init__(f"{entity} with key {key} already exists")
        self.entity = entity
        self.key = key
