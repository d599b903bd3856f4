"""Tests for showbridge.core.pagination."""

import pytest
from pydantic import ValidationError

from showbridge.core.pagination import LimitOffset, PageParams, to_limit_offset


class TestToLimitOffset:
    """Tests for to_limit_offset."""

    def test_page_and_page_size(self):
        assert to_limit_offset(PageParams(page=3, page_size=15)) == LimitOffset(15, 30)

    def test_page_size_only_starts_at_zero(self):
        assert to_limit_offset(PageParams(page_size=25)) == LimitOffset(25, 0)

    def test_no_parameters(self):
        assert to_limit_offset(PageParams()) == LimitOffset(None, None)
        assert to_limit_offset(None) == LimitOffset(None, None)

    @pytest.mark.parametrize("page", [0, -4])
    def test_page_below_one_is_clamped(self, page):
        assert to_limit_offset(PageParams(page=page, page_size=10)) == LimitOffset(10, 0)

    def test_explicit_limit_offset_used_verbatim(self):
        params = PageParams(page=5, page_size=10, limit=3, offset=7)

        assert to_limit_offset(params) == LimitOffset(3, 7)

    def test_explicit_offset_alone_wins(self):
        params = PageParams(page=2, page_size=10, offset=4)

        assert to_limit_offset(params) == LimitOffset(None, 4)

    def test_page_without_page_size_sends_nothing(self):
        assert to_limit_offset(PageParams(page=2)) == LimitOffset(None, None)

    def test_negative_page_size_is_rejected(self):
        with pytest.raises(ValidationError):
            PageParams(page_size=-1)
