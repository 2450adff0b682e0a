import sys


class KeywordRanker:
    """
    Keeps a usage count per seed candidate and orders candidates by it.

    Candidates that were never presented before sort *after* every known
    candidate, so generation keeps returning to well-trained parts of the model.
    """

    def __init__(self, usage=None):
        self.usage = dict(usage) if usage else {}

    def add(self, candidates):
        """Count one use for every entry of `candidates`, duplicates included."""
        for candidate in candidates:
            self.usage[candidate] = self.usage.get(candidate, 0) + 1

    def sort(self, candidates):
        """
        Order candidates by ascending prior usage.

        Args:
            candidates (list): Keyword strings, in text order

        Returns:
            list: New list, least-used first, never-used last; ties keep
                  their input order
        """
        return sorted(candidates, key=lambda c: self.usage.get(c, sys.maxsize))

    def to_dict(self):
        return dict(self.usage)

    @classmethod
    def from_dict(cls, data):
        return cls(data)

    def __len__(self):
        return len(self.usage)
