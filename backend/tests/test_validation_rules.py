import pytest

from app.errors import ConflictError, ValidationError
from app.models.inquiry import (
    ALLOWED_TRANSITIONS,
    InquiryStatus,
    can_transition,
    ensure_transition,
    is_path_locked,
    price_for,
)
from app.schemas.content import ProjectCreate
from app.services.content_service import slugify
from app.utils.request_parsing import coerce_list, validate_model


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, []),
        ("", []),
        ("kitchen", ["kitchen"]),
        ('["a", "b", ""]', ["a", "b"]),
        (["a", "", None, "b"], ["a", "b"]),
        ("[not json", ["[not json"]),
    ],
)
def test_coerce_list(raw, expected):
    assert coerce_list(raw) == expected


def test_validate_model_reports_field():
    with pytest.raises(ValidationError) as exc_info:
        validate_model(ProjectCreate, {"tag": "Residential"})

    assert exc_info.value.message.startswith("title:")
    assert exc_info.value.details[0]["field"] == "title"


def test_project_form_values_are_normalized():
    project = validate_model(
        ProjectCreate,
        {"title": "  Loft  ", "tag": "Commercial", "year": 2024, "images": "https://a/1.jpg", "info": '{"budget": "1M"}'},
    )

    assert project.title == "Loft"
    assert project.year == "2024"
    assert project.images == ["https://a/1.jpg"]
    assert project.info.budget == "1M"


def test_slugify():
    assert slugify("  Maison & Jardin -- 2024 ") == "maison-jardin-2024"


def test_terminal_statuses_have_no_exits():
    assert ALLOWED_TRANSITIONS[InquiryStatus.COMPLETED] == frozenset()
    assert ALLOWED_TRANSITIONS[InquiryStatus.CANCELLED] == frozenset()
    assert set(ALLOWED_TRANSITIONS) == set(InquiryStatus)


def test_transitions():
    assert can_transition(InquiryStatus.DRAFT, InquiryStatus.SUBMITTED)
    assert can_transition(InquiryStatus.PAID, InquiryStatus.PAID)
    assert not can_transition(InquiryStatus.PAID, InquiryStatus.DRAFT)
    assert not can_transition(InquiryStatus.COMPLETED, InquiryStatus.CANCELLED)

    with pytest.raises(ConflictError):
        ensure_transition(InquiryStatus.SUBMITTED, InquiryStatus.SUBMITTED, allow_same=False)


def test_path_lock():
    assert not is_path_locked({"status": "draft"})
    assert is_path_locked({"status": "draft", "stripeSessionId": "cs_1"})
    assert is_path_locked({"status": "submitted"})


def test_prices():
    assert price_for(30, False) == 6499
    assert price_for(60, True) == 14999
    assert price_for(90, False) == 15999
