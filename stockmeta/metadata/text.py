from __future__ import annotations

import re
from typing import Iterable, List, Optional


_TITLE_SYMBOLS = re.compile(r"[^\w\s.,()-]")


def remove_symbols_from_title(title: str) -> str:
    """Drop everything except word characters, whitespace and `.,()-`."""
    return _TITLE_SYMBOLS.sub("", title)


def join_keywords(keywords: Optional[Iterable[str]], separator: str = ", ") -> str:
    if not keywords:
        return ""
    return separator.join(keywords)


def split_words(text: str) -> List[str]:
    return [word for word in text.split() if word]
