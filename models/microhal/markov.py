"""
Bidirectional character-level Markov model.

The right chain is trained reading text left-to-right and predicts the
character that follows a window. The left chain is trained on the reversed
text and predicts the character that precedes a window. Together they let a
single seed keyword grow into a sentence in both directions.
"""

import numpy as np

from models.microhal.chain import Chain, PrefixWindow, is_stop_character
from models.microhal.errors import ConfigurationError, UnknownPrefixError


class MarkovModel:
    """
    Pair of character chains sharing one order and one random source.
    """

    def __init__(self, order, rng=None, left_chain=None, right_chain=None):
        """
        Initializes an empty model.

        Args:
            order (int): Width of the prefix window in characters
            rng (numpy.random.Generator, optional): Random source for draws
            left_chain (Chain, optional): Pre-trained backward chain
            right_chain (Chain, optional): Pre-trained forward chain

        Raises:
            ConfigurationError: If order is not a positive integer
        """
        if isinstance(order, bool) or not isinstance(order, int) or order < 1:
            raise ConfigurationError(f"Order must be a positive integer, got {order!r}")

        self.order = order
        self.rng = rng if rng is not None else np.random.default_rng()
        self.left_chain = left_chain if left_chain is not None else Chain()
        self.right_chain = right_chain if right_chain is not None else Chain()

    def get_keywords(self, text):
        """
        Lists every `order`-wide window of `text`, in text order.

        Args:
            text (str): Raw input text

        Returns:
            list: `len(text) - order + 1` keywords (duplicates kept), or an
                  empty list if the text is shorter than the order
        """
        if len(text) < self.order:
            return []

        window = PrefixWindow(self.order)
        keywords = []
        for i, char in enumerate(text):
            if i >= self.order:
                keywords.append(window.as_key())
            window.shift(char)
        keywords.append(window.as_key())
        return keywords

    def add_string(self, text):
        """Train both chains on `text`."""
        self._train_forward(self.right_chain, text)
        self._train_forward(self.left_chain, text[::-1])

    def _train_forward(self, chain, text):
        window = PrefixWindow(self.order)
        for i, char in enumerate(text):
            if i >= self.order:
                chain.add(window.as_key(), char)
            window.shift(char)

    def get_string(self, keyword, max_length):
        """
        Grows a string outward from `keyword` in both directions.

        Forward growth keeps a stop character it draws and then stops;
        backward growth stops on a stop character without keeping it. Each
        side produces at most `max_length` characters.

        Args:
            keyword (str): Seed, normally one of get_keywords()
            max_length (int): Per-direction cap on generated characters

        Returns:
            str: Backward part + keyword + forward part

        Raises:
            UnknownPrefixError: If the right chain has never seen `keyword`
        """
        # Checks the keyword is known; the drawn character is discarded
        self.right_chain.generate(keyword, self.rng)

        left_window = PrefixWindow(self.order)
        right_window = PrefixWindow(self.order)
        for char in reversed(keyword):
            left_window.shift(char)
        for char in keyword:
            right_window.shift(char)

        right = []
        while len(right) < max_length:
            try:
                char = self.right_chain.generate(right_window.as_key(), self.rng)
            except UnknownPrefixError:
                break
            right.append(char)
            if is_stop_character(char):
                break
            right_window.shift(char)

        left = []
        while len(left) < max_length:
            try:
                char = self.left_chain.generate(left_window.as_key(), self.rng)
            except UnknownPrefixError:
                break
            if is_stop_character(char):
                break
            left.append(char)
            left_window.shift(char)

        return "".join(reversed(left)) + keyword + "".join(right)

    def to_dict(self):
        return {
            "order": self.order,
            "left_chain": self.left_chain.to_dict(),
            "right_chain": self.right_chain.to_dict(),
        }

    @classmethod
    def from_dict(cls, data, rng=None):
        return cls(
            data["order"],
            rng=rng,
            left_chain=Chain.from_dict(data["left_chain"]),
            right_chain=Chain.from_dict(data["right_chain"]),
        )
