# anagram_index.py
# Sorted-letter index over the word list: one bucket per anagram class.

from typing import Dict, Iterable, List, Optional, Tuple

from errors import ConfigurationError
from utils import EMPTY


def anagram_key(letters: Iterable[str]) -> str:
    """Canonical form of a letter multiset: its letters sorted, case kept."""
    return "".join(sorted(letters))


class AnagramIndex:
    """
    Anagram index with the API the move generator and legality checker use:
      - AnagramIndex.build(words) -> AnagramIndex
      - lookup(key) -> tuple of words, or None
      - is_word(str) -> bool
    Internals:
      _buckets: Dict[key, List[word]] in first-seen order per bucket.
    """

    __slots__ = ("_buckets", "_size")

    def __init__(self, buckets: Dict[str, List[str]], size: int):
        self._buckets = buckets
        self._size = size

    # ---------- Public API ----------
    @classmethod
    def build(cls, words: Iterable[str]) -> "AnagramIndex":
        """
        Bucket every word under its sorted-letter key. Words are taken as
        given (no case folding); repeats of a word are kept once.
        """
        buckets: Dict[str, List[str]] = {}
        size = 0
        for w in words:
            if not isinstance(w, str) or not w:
                raise ConfigurationError(f"dictionary entry {w!r} is not a word")
            if EMPTY in w or any(ch.isspace() for ch in w):
                raise ConfigurationError(f"dictionary entry {w!r} contains a blank or whitespace")
            bucket = buckets.setdefault(anagram_key(w), [])
            if w in bucket:
                continue
            bucket.append(w)
            size += 1
        return cls(buckets, size)

    def lookup(self, key: str) -> Optional[Tuple[str, ...]]:
        """Every word spelled with exactly the letters of ``key``, or None."""
        bucket = self._buckets.get(key)
        if bucket is None:
            return None
        return tuple(bucket)

    lookup_exact = lookup

    def is_word(self, word: str) -> bool:
        """True if ``word`` is spelled exactly as one of the indexed words."""
        bucket = self._buckets.get(anagram_key(word))
        if bucket is None:
            return False
        return any(w == word for w in bucket)

    def __contains__(self, word: str) -> bool:
        return self.is_word(word)

    def __len__(self) -> int:
        return self._size

    @property
    def key_count(self) -> int:
        return len(self._buckets)
