"""Repository errors

Raised by repository adapters so use cases can react to storage conflicts
without depending on the persistence library.
"""


class DuplicateRecordError(Exception):
    """A unique constraint was violated while writing an entity"""

    def __init__(self, entity: str, detail: str = ""):
        self.entity = entity
        self.detail = detail
        super().__init__(f"Duplicate {entity}: {detail}" if detail else f"Duplicate {entity}")
