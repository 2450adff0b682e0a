#!/usr/bin/env python3
"""
MicrohalJsonStore - JSON document store for Microhal instances

This module keeps persistence away from the chatbot core. Every instance is
stored as a single JSON document named after the instance:

    <data_dir>/<name>.json

The store only deals with plain dictionaries; building a Microhal from the
document is the job of Microhal.from_dict().
"""

import os
import json
import tempfile

from models.microhal.errors import PersistenceError

REQUIRED_FIELDS = ("name", "order", "left_chain", "right_chain", "keywords")


class MicrohalJsonStore:
    """
    Reads and writes instance documents in a data directory.
    """

    def __init__(self, data_dir, logger=None):
        """
        Initialize the store.

        Args:
            data_dir (str): Directory holding one JSON file per instance
            logger: Logger instance for logging store operations
        """
        self.data_dir = data_dir
        self.logger = logger

    def path_for(self, name):
        """
        Get the document path of an instance.

        Args:
            name (str): Instance name

        Returns:
            str: Absolute path of the instance document
        """
        return os.path.abspath(os.path.join(self.data_dir, f"{name}.json"))

    def exists(self, name):
        return os.path.isfile(self.path_for(name))

    def save(self, document):
        """
        Write an instance document, replacing any previous one atomically.

        Args:
            document (dict): Instance document, see Microhal.to_dict()

        Returns:
            str: Path the document was written to

        Raises:
            PersistenceError: If the document cannot be encoded or written
        """
        path = self.path_for(document["name"])
        tmp_path = None
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            # ASCII output escapes lone surrogates instead of failing to encode them
            payload = json.dumps(document)

            fd, tmp_path = tempfile.mkstemp(
                dir=os.path.dirname(path), prefix=".microhal-", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_path, path)
            tmp_path = None
        except (OSError, TypeError, ValueError) as e:
            if self.logger:
                self.logger.error(f"Failed to save instance document: {e}", extra={
                    "metrics": {"path": path, "error": str(e)}
                })
            raise PersistenceError(f"Could not save {path}: {e}") from e
        finally:
            if tmp_path and os.path.exists(tmp_path):
                os.remove(tmp_path)

        if self.logger:
            self.logger.info("Instance document saved", extra={
                "metrics": {
                    "path": path,
                    "bytes": len(payload.encode("utf-8")),
                }
            })
        return path

    def load(self, name):
        """
        Read and validate an instance document.

        Args:
            name (str): Instance name

        Returns:
            dict: The decoded document

        Raises:
            PersistenceError: If the document is missing, unreadable, not
                              valid JSON, or not a document for `name`
        """
        path = self.path_for(name)
        try:
            with open(path, "r", encoding="utf-8") as f:
                document = json.load(f)
        except (OSError, ValueError) as e:
            if self.logger:
                self.logger.error(f"Failed to load instance document: {e}", extra={
                    "metrics": {"path": path, "error": str(e)}
                })
            raise PersistenceError(f"Could not load {path}: {e}") from e

        self._validate(name, path, document)

        if self.logger:
            self.logger.info("Instance document loaded", extra={
                "metrics": {
                    "path": path,
                    "order": document["order"],
                    "left_prefixes": len(document["left_chain"]),
                    "right_prefixes": len(document["right_chain"]),
                    "keywords": len(document["keywords"]),
                }
            })
        return document

    def _validate(self, name, path, document):
        if not isinstance(document, dict):
            raise PersistenceError(f"{path} does not hold a JSON object")

        missing = [field for field in REQUIRED_FIELDS if field not in document]
        if missing:
            raise PersistenceError(
                f"{path} is missing fields: {', '.join(missing)}")

        if document["name"] != name:
            raise PersistenceError(
                f"{path} belongs to instance {document['name']!r}, expected {name!r}")

        for field in ("left_chain", "right_chain", "keywords"):
            if not isinstance(document[field], dict):
                raise PersistenceError(
                    f"{path} field {field!r} must be an object, "
                    f"got {type(document[field]).__name__}")
