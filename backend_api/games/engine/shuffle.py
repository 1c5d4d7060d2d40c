from __future__ import annotations

import random
from typing import List, Optional, Sequence, TypeVar

T = TypeVar("T")


def _rng(rng: Optional[random.Random]) -> random.Random:
    return rng if rng is not None else random.Random()


# PUBLIC_INTERFACE
def shuffle_sequence(items: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """Return a uniformly shuffled copy of items.

    The input sequence is never mutated. Pass a seeded random.Random to get a
    reproducible order in tests.
    """
    result = list(items)
    _rng(rng).shuffle(result)
    return result


def count_letters(word: str) -> int:
    """Number of non-whitespace characters in word."""
    return sum(1 for ch in word if not ch.isspace())


# PUBLIC_INTERFACE
def scramble_word(word: str, rng: Optional[random.Random] = None) -> str:
    """Scramble the non-space characters of word.

    The result is always a permutation of the word's non-space characters, with
    spaces dropped. When the letters allow more than one arrangement the result
    never equals the original letter sequence.

    Example:
        scramble_word("ICE CREAM") -> "MCAIREEC" (some arrangement of ICECREAM)
    """
    letters = [ch for ch in word if not ch.isspace()]
    original = "".join(letters)
    if len(set(letters)) < 2:
        return original

    scrambled = "".join(shuffle_sequence(letters, rng))
    if scrambled == original:
        # A one-step rotation differs whenever two distinct letters exist.
        scrambled = scrambled[1:] + scrambled[0]
    return scrambled
