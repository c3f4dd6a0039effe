"""Helpers that call back into core lazily."""


def normalize(name: str) -> str:
    return name.strip().lower()


def _bump(x: int) -> int:
    from pkg_a.core import compute_value

    return compute_value(x)
