"""Run-local uniqueness gate keyed by content hash."""

from typing import Set

from .rng import content_hash


class Deduplicator:
    def __init__(self):
        self.hashes: Set[str] = set()

    def __len__(self) -> int:
        return len(self.hashes)

    def __contains__(self, value: str) -> bool:
        return value in self.hashes

    def admit(self, value: str) -> bool:
        """Record ``value`` and return True unless it was already admitted."""
        if value in self.hashes:
            return False
        self.hashes.add(value)
        return True


def symbol_hash(view_box: str, content: str) -> str:
    return content_hash(f"{view_box}|{content}")
