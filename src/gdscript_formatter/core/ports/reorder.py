from typing import Protocol


class Reorderer(Protocol):
    def reorder(self, source: str) -> str: ...
