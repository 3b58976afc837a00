"""Locale-specific phrase tables used to read stock and search-page text.

Phrases are matched as lowercase substrings, so stems such as ``nedostupn``
cover every inflection of the word.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class PhraseTable:
    locale: str
    out_of_stock: tuple[str, ...]
    in_stock: tuple[str, ...]
    no_results: tuple[str, ...]
    # Stock markers for rows read from a results table.
    row_in_stock: tuple[str, ...]
    # Stripped from a search term to build its stemmed key; longest first.
    dosage_words: tuple[str, ...]
    block_markers: tuple[str, ...] = ("Error 500", "Error 403", "Access Denied")


SLOVAK = PhraseTable(
    locale="sk",
    out_of_stock=("nie je", "zadne", "nedostupn"),
    in_stock=("na sklade", "skladom", "dostupn"),
    no_results=(
        "nenašli sme žiadne",
        "nenašli sa žiadne",
        "žiadne výsledky",
        "no results",
        "nenájdené",
    ),
    row_in_stock=("na sklade", "skladom", "áno", ">0"),
    dosage_words=(
        "tablety",
        "tablets",
        "tablet",
        "kapsuly",
        "kapsula",
        "capsules",
        "capsule",
        "mg",
        "ml",
    ),
)

ENGLISH = PhraseTable(
    locale="en",
    out_of_stock=("out of stock", "unavailable", "sold out"),
    in_stock=("in stock", "available"),
    no_results=("no results", "no products found", "nothing found"),
    row_in_stock=("in stock", "yes", ">0"),
    dosage_words=("tablets", "tablet", "capsules", "capsule", "mg", "ml"),
)

PHRASE_TABLES: dict[str, PhraseTable] = {
    SLOVAK.locale: SLOVAK,
    ENGLISH.locale: ENGLISH,
}


def get_phrase_table(locale: str) -> PhraseTable:
    """Pick the table for a locale such as ``sk-SK``; unknown locales get Slovak."""
    language = (locale or "").split("-")[0].split("_")[0].lower()
    return PHRASE_TABLES.get(language, SLOVAK)
