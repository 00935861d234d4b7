"""Unit tests for template inflections."""

import pytest

from siggen.generation.inflector import (
    INFLECTIONS,
    camelize,
    classify,
    pluralize,
    singularize,
    tableize,
    underscore,
)


@pytest.mark.parametrize(
    ("singular", "plural"),
    [
        ("post", "posts"),
        ("category", "categories"),
        ("box", "boxes"),
        ("status", "statuses"),
        ("person", "people"),
        ("child", "children"),
        ("wife", "wives"),
        ("matrix", "matrices"),
        ("blog_post", "blog_posts"),
    ],
)
def test_pluralize_and_singularize(singular: str, plural: str) -> None:
    assert pluralize(singular) == plural
    assert singularize(plural) == singular


def test_uncountable_words_are_unchanged() -> None:
    assert pluralize("sheep") == "sheep"
    assert singularize("information") == "information"


def test_already_inflected_words() -> None:
    assert pluralize("people") == "people"
    assert singularize("person") == "person"


def test_case_is_kept_for_irregulars() -> None:
    assert pluralize("Person") == "People"


@pytest.mark.parametrize(
    ("word", "expected"),
    [
        ("article", "Article"),
        ("blog_post", "BlogPost"),
        ("active_model/errors", "ActiveModel::Errors"),
    ],
)
def test_camelize(word: str, expected: str) -> None:
    assert camelize(word) == expected


def test_camelize_lower_first() -> None:
    assert camelize("blog_post", uppercase_first_letter=False) == "blogPost"


@pytest.mark.parametrize(
    ("word", "expected"),
    [
        ("Article", "article"),
        ("BlogPost", "blog_post"),
        ("ActiveModel::Errors", "active_model/errors"),
        ("HTMLParser", "html_parser"),
    ],
)
def test_underscore(word: str, expected: str) -> None:
    assert underscore(word) == expected


@pytest.mark.parametrize(
    ("table", "expected"),
    [
        ("articles", "Article"),
        ("blog_posts", "BlogPost"),
        ("people", "Person"),
        ("public.comments", "Comment"),
    ],
)
def test_classify(table: str, expected: str) -> None:
    assert classify(table) == expected


def test_tableize() -> None:
    assert tableize("RawScaledScorer") == "raw_scaled_scorers"
    assert tableize("Person") == "people"


def test_inflections_registry() -> None:
    assert set(INFLECTIONS) == {"pluralize", "singularize", "camelize", "underscore", "classify", "tableize"}
