from models.microhal.keywords import KeywordRanker


def test_sort_without_history_keeps_order():
    ranker = KeywordRanker()
    candidates = ["he", "el", "ll", "lo"]
    assert ranker.sort(candidates) == candidates


def test_sort_returns_new_list():
    ranker = KeywordRanker()
    candidates = ["b", "a"]
    ranked = ranker.sort(candidates)
    assert ranked == candidates
    assert ranked is not candidates


def test_add_counts_every_occurrence():
    ranker = KeywordRanker()
    ranker.add(["ab", "ba", "ab"])
    ranker.add(["ab"])
    assert ranker.usage == {"ab": 3, "ba": 1}
    assert len(ranker) == 2


def test_sort_least_used_first():
    ranker = KeywordRanker({"aa": 5, "bb": 1, "cc": 3})
    assert ranker.sort(["aa", "bb", "cc"]) == ["bb", "cc", "aa"]


def test_sort_novel_candidates_last():
    ranker = KeywordRanker()
    ranker.add(["lo"])
    ranker.add(["lo"])
    ranker.add(["he"])

    ranked = ranker.sort(["new", "lo", "he", "other"])
    assert ranked == ["he", "lo", "new", "other"]


def test_sort_ties_are_stable():
    ranker = KeywordRanker({"x": 2, "y": 2, "z": 2})
    assert ranker.sort(["z", "x", "y"]) == ["z", "x", "y"]


def test_dict_round_trip():
    ranker = KeywordRanker()
    ranker.add(["ab", "bc", "ab"])

    restored = KeywordRanker.from_dict(ranker.to_dict())
    assert restored.usage == ranker.usage
    assert restored.to_dict() == {"ab": 2, "bc": 1}
