import pytest

from plugins.pdf_tools.core import PageRangeError, resolve_page_range, resolve_page_targets


@pytest.mark.parametrize("expression", [None, "", "   "])
def test_absent_expression_selects_first_page(expression):
    assert resolve_page_range(expression, 5) == [0]


def test_empty_document_selects_nothing():
    assert resolve_page_range(None, 0) == []
    assert resolve_page_range("1-3", 0) == []


def test_single_pages_and_ranges():
    assert resolve_page_range("3", 5) == [2]
    assert resolve_page_range("2-4", 5) == [1, 2, 3]
    assert resolve_page_range("1,3,5-7", 10) == [0, 2, 4, 5, 6]


def test_ranges_are_clipped_to_the_document():
    assert resolve_page_range("1-100", 5) == [0, 1, 2, 3, 4]
    assert resolve_page_range("2,4-6,11", 10) == [1, 3, 4, 5]
    assert resolve_page_range("7", 5) == []
    assert resolve_page_range("0", 5) == []


def test_token_order_is_preserved_without_dedup():
    assert resolve_page_range("3,1", 5) == [2, 0]
    assert resolve_page_range("3,1-2", 5) == [2, 0, 1]
    assert resolve_page_range("2,2", 5) == [1, 1]


def test_reversed_range_emits_nothing():
    assert resolve_page_range("4-2", 5) == []


def test_whitespace_and_blank_tokens_are_ignored():
    assert resolve_page_range(" 1 , 3 - 4 ,", 5) == [0, 2, 3]


@pytest.mark.parametrize("expression", ["abc", "2-x", "-3", "4-", "1,two", "1.5"])
def test_malformed_tokens_raise(expression):
    with pytest.raises(PageRangeError) as excinfo:
        resolve_page_range(expression, 5)
    assert excinfo.value.token is not None


def test_targets_default_to_every_page():
    assert resolve_page_targets(None, 3) == [0, 1, 2]
    assert resolve_page_targets("all", 3) == [0, 1, 2]
    assert resolve_page_targets(" ALL ", 2) == [0, 1]
    assert resolve_page_targets("2", 3) == [1]
