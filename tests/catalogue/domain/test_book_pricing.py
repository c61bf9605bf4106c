"""Tests for print-on-demand book pricing."""

import pytest
from protean.exceptions import ValidationError

from catalogue.pricing import calculate_book_prices


def _cents(num_pages):
    return [option.price_cents for option in calculate_book_prices(num_pages)]


class TestBookPrices:
    def test_two_hundred_pages(self):
        assert _cents(200) == [1017, 1928, 1389, 2300]

    def test_variant_order(self):
        options = calculate_book_prices(120)

        assert [(o.hardcover, o.color) for o in options] == [
            (False, False),
            (True, False),
            (False, True),
            (True, True),
        ]

    def test_formatted_price(self):
        options = calculate_book_prices(200)

        assert [o.formatted for o in options] == ["$10.17", "$19.28", "$13.89", "$23.00"]

    def test_zero_pages_is_the_flat_cost(self):
        plain, hardcover, color, both = _cents(0)

        assert plain == color == 223
        assert hardcover == both == 1135

    @pytest.mark.parametrize("pages", [1, 57, 200, 333, 1200])
    def test_surcharges_never_make_a_book_cheaper(self, pages):
        plain, hardcover, color, both = _cents(pages)

        assert plain <= color <= both
        assert plain < hardcover <= both

    def test_more_pages_cost_more(self):
        assert _cents(100)[0] < _cents(101)[0]

    def test_negative_pages_rejected(self):
        with pytest.raises(ValidationError) as exc:
            calculate_book_prices(-1)

        assert "num_pages" in exc.value.messages

    @pytest.mark.parametrize("pages", ["200", 12.5, True, None])
    def test_non_integer_pages_rejected(self, pages):
        with pytest.raises(ValidationError):
            calculate_book_prices(pages)
