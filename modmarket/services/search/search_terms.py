"""
Preparation of free-text search input.

`SearchTerms` normalizes a raw search string and splits it into the terms used
for tokenized matching: quoted phrases are kept whole, everything else is
split into words. It also decides how the text should be searched: PostgreSQL
databases use full-text search, every other database falls back to tokenized
`LIKE` matching.
"""

import re

from sqlalchemy.orm import Session
from text_unidecode import unidecode

from modmarket.schemas._modmarket import SearchType


class SearchTerms:
    punctuation = r"!#$%&()*+,-./:;<=>?@[\]^_`{|}~"
    quoted_regex = re.compile(r"""(["'])(?:(?=(\\?))\2.)*?\1""")
    remove_quotes_regex = re.compile(r"""^['"](.*)['"]$""")

    @classmethod
    def _normalize_search(cls, search: str, normalize_characters: bool) -> str:
        if normalize_characters:
            search = unidecode(search).lower()
        return search.strip()

    @classmethod
    def _build_search_list(cls, search: str) -> list[str]:
        search_list: list[str] = []

        if cls.quoted_regex.search(search):
            for match in cls.quoted_regex.finditer(search):
                search_list.append(cls.remove_quotes_regex.sub(r"\1", match.group(0)).strip())

            search = cls.quoted_regex.sub("", search)

        # quotes are removed by now, punctuation only separates words
        search = search.translate(str.maketrans(cls.punctuation, " " * len(cls.punctuation)))
        search_list.extend(search.split())

        return [term for term in search_list if term]

    def __init__(self, session: Session, search: str, normalize_characters: bool = False) -> None:
        if session.get_bind().name == "postgresql":
            self.search_type = SearchType.full_text
        else:
            self.search_type = SearchType.tokenized

        self.search = self._normalize_search(search, normalize_characters)
        self.search_list = self._build_search_list(self.search)
