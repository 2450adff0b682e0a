import os
import json
import pytest
from unittest.mock import MagicMock
from models.microhal.errors import PersistenceError
from utils.storage.json_store import MicrohalJsonStore


@pytest.fixture
def mock_logger():
    """Create a mock logger for testing"""
    logger = MagicMock()
    logger.info = MagicMock()
    logger.error = MagicMock()
    return logger


@pytest.fixture
def store(tmp_path, mock_logger):
    return MicrohalJsonStore(str(tmp_path / "data"), logger=mock_logger)


@pytest.fixture
def document():
    return {
        "name": "bot",
        "order": 2,
        "left_chain": {".c": {"total": 1, "counts": {"b": 1}}},
        "right_chain": {
            "ab": {"total": 2, "counts": {"c": 2}},
            "\x00a": {"total": 1, "counts": {"é": 1}},
        },
        "keywords": {"ab": 3, "bc": 1},
    }


def test_path_for(store, tmp_path):
    assert store.path_for("bot") == str(tmp_path / "data" / "bot.json")


def test_save_and_load_round_trip(store, document, mock_logger):
    path = store.save(document)

    assert os.path.isfile(path)
    assert store.exists("bot")
    assert store.load("bot") == document
    mock_logger.info.assert_called()


def test_save_creates_data_dir(store, document, tmp_path):
    assert not (tmp_path / "data").exists()
    store.save(document)
    assert (tmp_path / "data" / "bot.json").exists()


def test_save_overwrites_and_leaves_no_temp_files(store, document, tmp_path):
    store.save(document)
    document["keywords"]["ab"] = 10
    store.save(document)

    assert store.load("bot")["keywords"]["ab"] == 10
    assert os.listdir(tmp_path / "data") == ["bot.json"]


def test_save_failure(store, document, mocker, mock_logger):
    mocker.patch("utils.storage.json_store.os.replace", side_effect=OSError("disk full"))

    with pytest.raises(PersistenceError, match="disk full"):
        store.save(document)
    mock_logger.error.assert_called()
    assert not store.exists("bot")


def test_load_missing(store):
    assert not store.exists("nobody")
    with pytest.raises(PersistenceError):
        store.load("nobody")


def test_load_invalid_json(store, tmp_path):
    os.makedirs(tmp_path / "data")
    (tmp_path / "data" / "bot.json").write_text("{not json")

    with pytest.raises(PersistenceError):
        store.load("bot")


def test_load_missing_fields(store, tmp_path):
    os.makedirs(tmp_path / "data")
    (tmp_path / "data" / "bot.json").write_text(json.dumps({"name": "bot", "order": 2}))

    with pytest.raises(PersistenceError, match="missing fields"):
        store.load("bot")


def test_load_not_an_object(store, tmp_path):
    os.makedirs(tmp_path / "data")
    (tmp_path / "data" / "bot.json").write_text("[1, 2, 3]")

    with pytest.raises(PersistenceError, match="JSON object"):
        store.load("bot")


def test_load_name_mismatch(store, tmp_path, document):
    os.makedirs(tmp_path / "data")
    document["name"] = "someone_else"
    (tmp_path / "data" / "bot.json").write_text(json.dumps(document))

    with pytest.raises(PersistenceError, match="someone_else"):
        store.load("bot")


def test_load_chain_not_an_object(store, tmp_path, document):
    os.makedirs(tmp_path / "data")
    document["left_chain"] = []
    (tmp_path / "data" / "bot.json").write_text(json.dumps(document))

    with pytest.raises(PersistenceError, match="'left_chain' must be an object"):
        store.load("bot")


def test_save_escapes_lone_surrogates(store, document, tmp_path):
    document["keywords"] = {"b\udcff": 1}

    path = store.save(document)

    with open(path, "rb") as f:
        assert b"\\udcff" in f.read()
    assert store.load("bot")["keywords"] == {"b\udcff": 1}
