from flowshare.core.priorities import DEFAULT_PRIORITY, MAX_PRIORITY, normalize_priority


def test_normalize_priority_clamps():
    assert normalize_priority(None) == DEFAULT_PRIORITY
    assert normalize_priority("2") == 2
    assert normalize_priority(9) == MAX_PRIORITY
    assert normalize_priority(-1) == DEFAULT_PRIORITY
    assert normalize_priority("high") == DEFAULT_PRIORITY
