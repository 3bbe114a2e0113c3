import pytest

from juriscloud.resources.pagination import page_range, page_window, total_pages


@pytest.mark.parametrize("total, expected", [(0, 1), (1, 1), (9, 1), (10, 2), (18, 2), (19, 3), (100, 12)])
def test_total_pages(total, expected):
    assert total_pages(total, 9) == expected


def test_page_range_is_inclusive():
    assert page_range(1, 9) == (0, 8)
    assert page_range(3, 9) == (18, 26)


def test_window_shows_every_page_when_few():
    assert page_window(1, 1) == [1]
    assert page_window(2, 5) == [1, 2, 3, 4, 5]


def test_window_near_start_shows_first_five():
    assert page_window(1, 12) == [1, 2, 3, 4, 5]
    assert page_window(3, 12) == [1, 2, 3, 4, 5]


def test_window_near_end_shows_last_five():
    assert page_window(10, 12) == [8, 9, 10, 11, 12]
    assert page_window(12, 12) == [8, 9, 10, 11, 12]


def test_window_centres_current_page():
    assert page_window(4, 12) == [2, 3, 4, 5, 6]
    assert page_window(7, 12) == [5, 6, 7, 8, 9]
