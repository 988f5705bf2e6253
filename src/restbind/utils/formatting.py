import typing


def english_enumerate(items: typing.Iterable[str], conj: str = ", and ") -> str:
    """
    Joins ``items`` the way an English sentence would: ``"a, b, and c"``.
    """
    items = list(items)
    if len(items) < 2:
        return "".join(items)
    return ", ".join(items[:-1]) + conj + items[-1]
