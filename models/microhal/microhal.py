"""
Microhal response orchestrator.

Ties the Markov model and the keyword ranker together: for each input it picks
a seed keyword, grows a response from it and then absorbs the input into the
model. An instance is identified by its name and persisted as one document.
"""

from models.microhal.errors import (
    ConfigurationError,
    PersistenceError,
    UnknownPrefixError,
)
from models.microhal.keywords import KeywordRanker
from models.microhal.markov import MarkovModel

# First sentence every new instance learns, so it can answer something
BOOTSTRAP_SENTENCE = "I have nothing to say to you..."


class Microhal:
    """
    A named, self-learning chatbot instance.
    """

    def __init__(self, name, order, logger=None, markov=None, keywords=None, rng=None):
        """
        Initializes a Microhal instance.

        Args:
            name (str): Instance name, also the name of its document
            order (int): Width of the character window used by the model
            logger (Logger, required): Logger instance for logging activities
            markov (MarkovModel, optional): Existing model to wrap
            keywords (KeywordRanker, optional): Existing keyword usage table
            rng (numpy.random.Generator, optional): Random source for a new model

        Raises:
            ValueError: If no logger is provided
            ConfigurationError: If order is invalid or does not match `markov`
        """
        if logger is None:
            raise ValueError("Logger instance must be provided")
        self.logger = logger

        if markov is None:
            markov = MarkovModel(order, rng=rng)
        elif markov.order != order:
            raise ConfigurationError(
                f"Model order {markov.order} does not match requested order {order}")

        self._name = name
        self.markov = markov
        self.keywords = keywords if keywords is not None else KeywordRanker()

    @property
    def name(self):
        return self._name

    @property
    def order(self):
        return self.markov.order

    @classmethod
    def create(cls, name, order, store, logger, rng=None):
        """
        Create a fresh instance, teach it the bootstrap sentence and save it.

        Any existing document with the same name is overwritten.

        Args:
            name (str): Instance name
            order (int): Width of the character window
            store (MicrohalJsonStore): Where the instance document is written
            logger (Logger): Logger instance
            rng (numpy.random.Generator, optional): Random source

        Returns:
            Microhal: The new instance
        """
        microhal = cls(name, order, logger=logger, rng=rng)
        microhal.process_input(BOOTSTRAP_SENTENCE, order + 1)
        store.save(microhal.to_dict())

        logger.info("Microhal instance created", extra={
            "metrics": {
                "name": name,
                "order": order,
                "path": store.path_for(name),
            }
        })
        return microhal

    @classmethod
    def load(cls, name, store, logger, rng=None):
        """
        Rebuild an instance from its saved document.

        Raises:
            PersistenceError: If the document is missing or corrupt
        """
        document = store.load(name)
        try:
            microhal = cls.from_dict(document, logger=logger, rng=rng)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.error(f"Corrupt instance document: {e}", extra={
                "metrics": {"name": name, "error": str(e)}
            })
            raise PersistenceError(f"Corrupt document for instance {name!r}: {e}") from e

        logger.info("Microhal instance loaded", extra={
            "metrics": {"name": name, "order": microhal.order}
        })
        return microhal

    def process_input(self, text, max_length):
        """
        Produce a response to `text` and learn from it.

        Every keyword of the input is ranked and counted as used; the ranked
        keywords are tried in order until one seeds a response. The input is
        added to the model only after the response is chosen.

        Args:
            text (str): Input sentence
            max_length (int): Per-direction cap on generated characters

        Returns:
            str: The response, or an empty string if no keyword was known

        Raises:
            ConfigurationError: If max_length is smaller than the order
        """
        if max_length < self.order:
            raise ConfigurationError(
                f"max_length must be at least the order (got {max_length}, "
                f"expected at least {self.order})")

        candidates = self.keywords.sort(self.markov.get_keywords(text))
        self.keywords.add(candidates)

        response = ""
        seed = None
        attempts = 0
        for keyword in candidates:
            attempts += 1
            try:
                response = self.markov.get_string(keyword, max_length)
            except UnknownPrefixError:
                continue
            seed = keyword
            break

        self.markov.add_string(text)

        self.logger.debug("Input processed", extra={
            "metrics": {
                "input_length": len(text),
                "candidates": len(candidates),
                "attempts": attempts,
                "seed": seed,
                "response_length": len(response),
            }
        })
        return response

    def to_dict(self):
        document = {"name": self.name}
        document.update(self.markov.to_dict())
        document["keywords"] = self.keywords.to_dict()
        return document

    @classmethod
    def from_dict(cls, data, logger=None, rng=None):
        markov = MarkovModel.from_dict(data, rng=rng)
        return cls(
            data["name"],
            markov.order,
            logger=logger,
            markov=markov,
            keywords=KeywordRanker.from_dict(data["keywords"]),
        )
