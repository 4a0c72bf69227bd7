from typing import Dict, Iterable, Set


def exclude_keys(data: Dict, keys: Set[str]) -> Dict:
    return {k: v for k, v in data.items() if k not in keys}


def assert_same_keys(data: Dict, expected: Iterable[str]) -> None:
    assert set(data) == set(expected), f"unexpected keys: {set(data) ^ set(expected)}"
