"""Randomness source for claims.

Draws are a pure function of the caller's entropy and the call context, so a
claim can be replayed from its log entry. The unpredictable seed is only
known once the claim is being processed. This keeps casual accounts from
steering their rolls but is not a defence against whoever controls the
seed; swap the source for a committed one if that matters.
"""

import hashlib
from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class DrawContext:
    timestamp: int
    unpredictable_seed: str
    caller: str


class RandomnessSource(Protocol):
    def draw(self, entropy: int, context: DrawContext, salt: str, bound: int) -> int:
        ...


class HashRandomnessSource:
    """SHA-256 over (entropy, timestamp, seed, caller, salt) reduced modulo bound."""

    def draw(self, entropy: int, context: DrawContext, salt: str, bound: int) -> int:
        if bound <= 0:
            raise ValueError("bound must be positive")
        material = ":".join(
            [
                str(entropy),
                str(context.timestamp),
                context.unpredictable_seed,
                context.caller,
                salt,
            ]
        )
        digest = hashlib.sha256(material.encode()).digest()
        return int.from_bytes(digest, "big") % bound
