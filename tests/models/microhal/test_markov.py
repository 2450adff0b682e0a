import pytest
import numpy as np
from models.microhal.chain import PAD_CHARACTER
from models.microhal.errors import ConfigurationError, UnknownPrefixError
from models.microhal.markov import MarkovModel


@pytest.fixture
def model():
    """Order-2 model trained on a short repeating sentence."""
    markov = MarkovModel(2, rng=np.random.default_rng(7))
    markov.add_string("abcabc.")
    return markov


@pytest.mark.parametrize("order", [0, -1, 2.5, "3", None, True])
def test_invalid_order(order):
    with pytest.raises(ConfigurationError):
        MarkovModel(order)


def test_new_model_is_empty():
    markov = MarkovModel(3)
    assert markov.order == 3
    assert len(markov.left_chain) == 0
    assert len(markov.right_chain) == 0


def test_get_keywords():
    markov = MarkovModel(2)
    assert markov.get_keywords("hello") == ["he", "el", "ll", "lo"]


def test_get_keywords_keeps_duplicates_and_order():
    markov = MarkovModel(2)
    keywords = markov.get_keywords("abab")
    assert keywords == ["ab", "ba", "ab"]
    assert len(keywords) == len("abab") - 2 + 1


def test_get_keywords_exact_order_length():
    markov = MarkovModel(3)
    assert markov.get_keywords("abc") == ["abc"]


def test_get_keywords_short_text():
    markov = MarkovModel(4)
    assert markov.get_keywords("abc") == []
    assert markov.get_keywords("") == []


def test_add_string_right_chain(model):
    right = model.right_chain
    assert right["ab"].counts == {"c": 2}
    assert right["bc"].counts == {"a": 1, ".": 1}
    assert right["ca"].counts == {"b": 1}
    # No padded keys: observations start once the window is full
    assert not any(PAD_CHARACTER in key for key in right.suffixes)


def test_add_string_left_chain(model):
    # Trained on the reversed string ".cbacba"
    left = model.left_chain
    assert left[".c"].counts == {"b": 1}
    assert left["cb"].counts == {"a": 2}
    assert left["ba"].counts == {"c": 1}
    assert left["ac"].counts == {"b": 1}


def test_add_string_every_window_is_a_key():
    text = "the cat sat on the mat."
    markov = MarkovModel(3)
    markov.add_string(text)

    for i in range(3, len(text)):
        window = text[i - 3:i]
        assert window in markov.right_chain
        assert text[i] in markov.right_chain[window].counts


def test_add_string_counts_accumulate():
    markov = MarkovModel(2)
    markov.add_string("abc")
    markov.add_string("abc")
    assert markov.right_chain["ab"].counts == {"c": 2}
    assert markov.right_chain["ab"].total == 2


def test_get_string_unknown_keyword(model):
    before = model.to_dict()
    with pytest.raises(UnknownPrefixError):
        model.get_string("zz", 10)
    assert model.to_dict() == before


def test_get_string_contains_keyword(model):
    for _ in range(25):
        result = model.get_string("ab", 4)
        assert "ab" in result


def test_get_string_scenario(model):
    for _ in range(25):
        result = model.get_string("ab", 4)

        # Backward growth is deterministic here and never meets a stop character
        assert result.startswith("cabcab")
        right = result[len("cabcab"):]
        assert 1 <= len(right) <= 4
        assert right[0] == "c"
        # Forward growth ends at the first stop character, keeping it
        if "." in right:
            assert right.index(".") == len(right) - 1


def test_get_string_respects_max_length(model):
    for max_length in (2, 3, 5, 8):
        for _ in range(10):
            result = model.get_string("ab", max_length)

            # Backward growth never stops early in this model, so it fills up
            left = result[:max_length]
            right = result[max_length + 2:]
            assert result[max_length:max_length + 2] == "ab"
            assert len(left) == max_length
            assert len(right) <= max_length


def test_backward_growth_drops_stop_character():
    markov = MarkovModel(2, rng=np.random.default_rng(0))
    markov.add_string("Hi. ok!")

    # Reading backwards from "ok": " " then "." which ends growth unkept
    assert markov.get_string("ok", 10) == " ok!"


def test_forward_growth_keeps_stop_character():
    markov = MarkovModel(2, rng=np.random.default_rng(0))
    markov.add_string("xyz!")

    assert markov.get_string("xy", 10) == "xyz!"


def test_forward_growth_stops_on_unknown_prefix():
    markov = MarkovModel(2, rng=np.random.default_rng(0))
    markov.add_string("abcd")

    # "cd" was never followed by anything
    assert markov.get_string("ab", 10) == "abcd"


def test_dict_round_trip(model):
    restored = MarkovModel.from_dict(model.to_dict())
    assert restored.order == model.order
    assert restored.left_chain == model.left_chain
    assert restored.right_chain == model.right_chain
    assert restored.to_dict() == model.to_dict()
