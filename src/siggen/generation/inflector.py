"""String inflections available to generation templates.

English pluralization and case conversion in the style of Rails'
ActiveSupport, which is what template authors expect from names such as
``classify`` and ``tableize``. Rules are tried in order; the first pattern
that matches wins.
"""

from __future__ import annotations

import re

_PLURALS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(pattern, re.IGNORECASE), replacement)
    for pattern, replacement in (
        (r"(quiz)$", r"\1zes"),
        (r"^(oxen)$", r"\1"),
        (r"^(ox)$", r"\1en"),
        (r"^(m|l)ice$", r"\1ice"),
        (r"^(m|l)ouse$", r"\1ice"),
        (r"(matr|vert|ind)(?:ix|ex)$", r"\1ices"),
        (r"(x|ch|ss|sh)$", r"\1es"),
        (r"([^aeiouy]|qu)y$", r"\1ies"),
        (r"(hive)$", r"\1s"),
        (r"(?:([^f])fe|([lr])f)$", r"\1\2ves"),
        (r"sis$", "ses"),
        (r"([ti])a$", r"\1a"),
        (r"([ti])um$", r"\1a"),
        (r"(buffal|tomat)o$", r"\1oes"),
        (r"(bu)s$", r"\1ses"),
        (r"(alias|status)$", r"\1es"),
        (r"(octop|vir)i$", r"\1i"),
        (r"(octop|vir)us$", r"\1i"),
        (r"^(ax|test)is$", r"\1es"),
        (r"s$", "s"),
        (r"$", "s"),
    )
]

_SINGULARS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(pattern, re.IGNORECASE), replacement)
    for pattern, replacement in (
        (r"(database)s$", r"\1"),
        (r"(quiz)zes$", r"\1"),
        (r"(matr)ices$", r"\1ix"),
        (r"(vert|ind)ices$", r"\1ex"),
        (r"^(ox)en", r"\1"),
        (r"(alias|status)(es)?$", r"\1"),
        (r"(octop|vir)(us|i)$", r"\1us"),
        (r"^(a)x[ie]s$", r"\1xis"),
        (r"(cris|test)(is|es)$", r"\1is"),
        (r"(shoe)s$", r"\1"),
        (r"(o)es$", r"\1"),
        (r"(bus)(es)?$", r"\1"),
        (r"^(m|l)ice$", r"\1ouse"),
        (r"(x|ch|ss|sh)es$", r"\1"),
        (r"(m)ovies$", r"\1ovie"),
        (r"(s)eries$", r"\1eries"),
        (r"([^aeiouy]|qu)ies$", r"\1y"),
        (r"([lr])ves$", r"\1f"),
        (r"(tive)s$", r"\1"),
        (r"(hive)s$", r"\1"),
        (r"([^f])ves$", r"\1fe"),
        (r"(^analy)(sis|ses)$", r"\1sis"),
        (r"((a)naly|(b)a|(d)iagno|(p)arenthe|(p)rogno|(s)ynop|(t)he)(sis|ses)$", r"\1sis"),
        (r"([ti])a$", r"\1um"),
        (r"(n)ews$", r"\1ews"),
        (r"(ss)$", r"\1"),
        (r"s$", ""),
    )
]

_IRREGULARS = {
    "person": "people",
    "man": "men",
    "child": "children",
    "sex": "sexes",
    "move": "moves",
    "zombie": "zombies",
}

_UNCOUNTABLES = frozenset(
    {"equipment", "information", "rice", "money", "species", "series", "fish", "sheep", "jeans", "police"}
)


def _match_case(source: str, replacement: str) -> str:
    return source[0] + replacement[1:] if source[:1].isupper() else replacement


def _apply(word: str, rules: list[tuple[re.Pattern[str], str]], irregulars: dict[str, str]) -> str:
    if not word:
        return word
    # Only the last word of an underscored/camelized phrase is inflected.
    match = re.search(r"([A-Za-z]+)$", word)
    if match is None:
        return word
    head, tail = word[: match.start()], match.group(1)
    if tail.lower() in _UNCOUNTABLES:
        return word
    for singular, plural in irregulars.items():
        if tail.lower() == singular:
            return head + _match_case(tail, plural)
    for pattern, replacement in rules:
        if pattern.search(tail):
            return head + pattern.sub(replacement, tail, count=1)
    return word


def pluralize(word: str) -> str:
    """``"post"`` -> ``"posts"``, ``"person"`` -> ``"people"``."""
    irregulars = dict(_IRREGULARS)
    irregulars.update({plural: plural for plural in _IRREGULARS.values()})
    return _apply(word, _PLURALS, irregulars)


def singularize(word: str) -> str:
    """``"posts"`` -> ``"post"``, ``"people"`` -> ``"person"``."""
    irregulars = {plural: singular for singular, plural in _IRREGULARS.items()}
    irregulars.update({singular: singular for singular in _IRREGULARS})
    return _apply(word, _SINGULARS, irregulars)


def camelize(term: str, uppercase_first_letter: bool = True) -> str:
    """``"active_model/errors"`` -> ``"ActiveModel::Errors"``."""
    if uppercase_first_letter:
        string = re.sub(r"^[a-z\d]*", lambda m: m.group(0).capitalize(), term)
    else:
        string = term[:1].lower() + term[1:]
    return re.sub(
        r"(?:_|(/))([a-z\d]*)",
        lambda m: ("::" if m.group(1) else "") + m.group(2).capitalize(),
        string,
        flags=re.IGNORECASE,
    )


def underscore(camel_cased_word: str) -> str:
    """``"ActiveModel::Errors"`` -> ``"active_model/errors"``."""
    word = camel_cased_word.replace("::", "/")
    word = re.sub(r"([A-Z\d]+)([A-Z][a-z])", r"\1_\2", word)
    word = re.sub(r"([a-z\d])([A-Z])", r"\1_\2", word)
    return word.replace("-", "_").lower()


def classify(table_name: str) -> str:
    """Class name for a table name: ``"articles"`` -> ``"Article"``.

    Anything up to the last dot is treated as a schema prefix and dropped.
    """
    return camelize(singularize(table_name.rsplit(".", 1)[-1]))


def tableize(class_name: str) -> str:
    """Table name for a class name: ``"RawScaledScorer"`` -> ``"raw_scaled_scorers"``."""
    return pluralize(underscore(class_name))


INFLECTIONS = {
    "pluralize": pluralize,
    "singularize": singularize,
    "camelize": camelize,
    "underscore": underscore,
    "classify": classify,
    "tableize": tableize,
}
