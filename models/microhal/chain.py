"""
Character-level transition tables.

A Chain maps a fixed-width prefix (the concatenated contents of a PrefixWindow)
to a SuffixDistribution that counts which characters were observed right after
that prefix. Drawing from a distribution is weighted by those counts.
"""

from collections import deque

from models.microhal.errors import EmptyDistributionError, UnknownPrefixError

STOP_CHARACTERS = frozenset("!?.")

# Fill character of a window that has not yet seen `order` characters
PAD_CHARACTER = "\x00"


def is_stop_character(char):
    """Return True if `char` ends a sentence."""
    return char in STOP_CHARACTERS


class PrefixWindow:
    """
    Fixed-width sliding buffer of characters used as a chain lookup key.

    The window starts out filled with PAD_CHARACTER, so keys produced before
    `order` characters have been shifted in are padded.
    """

    def __init__(self, order):
        self.order = order
        self._chars = deque(PAD_CHARACTER * order, maxlen=order)

    def shift(self, char):
        """Drop the oldest character and append `char`."""
        self._chars.append(char)

    def as_key(self):
        return "".join(self._chars)

    def __str__(self):
        return self.as_key()

    def __repr__(self):
        return f"PrefixWindow({self.as_key()!r})"


class SuffixDistribution:
    """Weighted multiset of the characters seen after one prefix."""

    def __init__(self, total=0, counts=None):
        self.total = total
        self.counts = dict(counts) if counts else {}

    def add(self, char):
        self.counts[char] = self.counts.get(char, 0) + 1
        self.total += 1

    def generate(self, rng):
        """
        Draw one character with probability proportional to its count.

        Args:
            rng (numpy.random.Generator): Random source for the draw

        Returns:
            str: The selected character

        Raises:
            EmptyDistributionError: If nothing was ever added
        """
        if self.total <= 0:
            raise EmptyDistributionError("Cannot draw from an empty suffix distribution")

        draw = int(rng.integers(0, self.total))
        cumulative = 0
        for char, weight in self.counts.items():
            cumulative += weight
            if draw < cumulative:
                return char

        # total disagrees with counts
        raise EmptyDistributionError(
            f"Draw {draw} fell outside the distribution (total={self.total})")

    def to_dict(self):
        return {"total": self.total, "counts": dict(self.counts)}

    @classmethod
    def from_dict(cls, data):
        """
        Rebuild a distribution from its persisted form.

        Raises:
            TypeError: If the document does not have the expected shape
            ValueError: If a key is not a single character, a count is not a
                        positive integer, or the total is not their sum
        """
        if not isinstance(data, dict):
            raise TypeError(f"Suffix distribution must be an object, got {type(data).__name__}")
        total = data["total"]
        counts = data["counts"]
        if not isinstance(counts, dict):
            raise TypeError(f"Suffix counts must be an object, got {type(counts).__name__}")
        if isinstance(total, bool) or not isinstance(total, int):
            raise ValueError(f"Suffix total must be an integer, got {total!r}")
        for char, count in counts.items():
            if len(char) != 1:
                raise ValueError(f"Suffix key must be a single character, got {char!r}")
            if isinstance(count, bool) or not isinstance(count, int) or count < 1:
                raise ValueError(f"Count for {char!r} must be a positive integer, got {count!r}")
        if total != sum(counts.values()):
            raise ValueError(
                f"Suffix total {total} does not match counts sum {sum(counts.values())}")
        return cls(total=total, counts=counts)

    def __eq__(self, other):
        if not isinstance(other, SuffixDistribution):
            return NotImplemented
        return self.total == other.total and self.counts == other.counts

    def __repr__(self):
        return f"SuffixDistribution(total={self.total}, counts={self.counts!r})"


class Chain:
    """
    Mapping from prefix key to SuffixDistribution, for one reading direction.

    The chain only ever grows: observations are counted, never removed.
    """

    def __init__(self, suffixes=None):
        self.suffixes = dict(suffixes) if suffixes else {}

    def add(self, prefix_key, char):
        """
        Record that `char` followed `prefix_key`.

        Args:
            prefix_key (str): Window key the observation belongs to
            char (str): The observed next character
        """
        suffix = self.suffixes.get(prefix_key)
        if suffix is None:
            suffix = SuffixDistribution()
            self.suffixes[prefix_key] = suffix
        suffix.add(char)

    def generate(self, prefix_key, rng):
        """
        Draw the next character for `prefix_key`.

        Raises:
            UnknownPrefixError: If `prefix_key` was never observed
        """
        suffix = self.suffixes.get(prefix_key)
        if suffix is None:
            raise UnknownPrefixError(prefix_key)
        return suffix.generate(rng)

    def to_dict(self):
        return {key: suffix.to_dict() for key, suffix in self.suffixes.items()}

    @classmethod
    def from_dict(cls, data):
        if not isinstance(data, dict):
            raise TypeError(f"Chain must be an object, got {type(data).__name__}")
        return cls({key: SuffixDistribution.from_dict(value)
                    for key, value in data.items()})

    def __contains__(self, prefix_key):
        return prefix_key in self.suffixes

    def __getitem__(self, prefix_key):
        return self.suffixes[prefix_key]

    def __len__(self):
        return len(self.suffixes)

    def __eq__(self, other):
        if not isinstance(other, Chain):
            return NotImplemented
        return self.suffixes == other.suffixes
