"""
Text preprocessing for the category classifier.

Descriptions become fixed-length integer sequences:
"Uber ride to airport!" → ["uber", "ride", "to", "airport"] → [4, 9, 2, 11, 0, 0, ...]

Id 0 is reserved for padding. Real word ids start at 1.
"""

import re
from typing import Iterable, Optional


PAD_INDEX = 0

_PUNCTUATION = re.compile(r"[^\w\s]")


def tokenize(text: str) -> list[str]:
    """Lower-case, strip punctuation, split on whitespace."""
    return _PUNCTUATION.sub("", text.lower()).split()


def pad_sequences(sequences: Iterable[list[int]], length: int = 20) -> list[list[int]]:
    """Truncate or right-pad every sequence with PAD_INDEX to `length`."""
    return [
        seq[:length] + [PAD_INDEX] * max(0, length - len(seq))
        for seq in sequences
    ]


class Vocabulary:
    """
    Grow-only word → id mapping.

    A word seen for the first time gets the next unused id (one above the
    highest id so far), whether it shows up while training or while
    predicting.
    """

    def __init__(self, word_index: Optional[dict[str, int]] = None):
        self._word_index: dict[str, int] = dict(word_index or {})
        self._next_id = max(self._word_index.values(), default=PAD_INDEX) + 1

    def __len__(self) -> int:
        return len(self._word_index)

    def __contains__(self, word: str) -> bool:
        return word in self._word_index

    @property
    def word_index(self) -> dict[str, int]:
        return dict(self._word_index)

    @property
    def max_index(self) -> int:
        """Highest id in use, PAD_INDEX when empty."""
        return self._next_id - 1

    def index_of(self, word: str) -> int:
        if word not in self._word_index:
            self._word_index[word] = self._next_id
            self._next_id += 1
        return self._word_index[word]

    def encode(self, text: str) -> list[int]:
        return [self.index_of(word) for word in tokenize(text)]

    def encode_all(self, texts: Iterable[str]) -> list[list[int]]:
        return [self.encode(text) for text in texts]

    @classmethod
    def from_json(cls, data: dict) -> "Vocabulary":
        """Rebuild from the persisted mapping, ignoring malformed entries."""
        return cls({
            str(word): int(idx)
            for word, idx in data.items()
            if isinstance(idx, (int, float)) and int(idx) > PAD_INDEX
        })
