"""Generation of Godot resource UIDs."""

from __future__ import annotations

import random
import string
from typing import Optional

UID_SCHEME = "uid://"
UID_LENGTH = 22
_UID_ALPHABET = string.ascii_lowercase + string.ascii_uppercase + string.digits


class UidGenerator:
    """Produces ``uid://`` tokens from an injected random source."""

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._rng = rng or random.Random()

    @classmethod
    def seeded(cls, seed: int) -> "UidGenerator":
        return cls(random.Random(seed))

    def generate(self) -> str:
        token = "".join(self._rng.choice(_UID_ALPHABET) for _ in range(UID_LENGTH))
        return f"{UID_SCHEME}{token}"


__all__ = ["UID_LENGTH", "UID_SCHEME", "UidGenerator"]
