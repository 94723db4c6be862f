from app.utils.pagination import build_pagination


def test_page_counters_cover_the_returned_items():
    page = build_pagination(["c", "d"], total=5, page=2, per_page=2, base_url="/media")

    assert page["from"] == 3
    assert page["to"] == 4
    assert page["last_page"] == 3
    assert page["prev_page_url"] == "/media?page=1"
    assert page["next_page_url"] == "/media?page=3"


def test_page_past_the_end_reports_empty_range():
    page = build_pagination([], total=2, page=5, per_page=1, base_url="/media")

    assert page["data"] == []
    assert page["from"] == 0
    assert page["to"] == 0
    assert page["next_page_url"] is None


def test_invalid_page_arguments_fall_back_to_defaults():
    page = build_pagination(["a"], total=1, page="abc", per_page=None)

    assert page["current_page"] == 1
    assert page["per_page"] == 50
    assert page["to"] == 1
