import pytest

from app.models.manuscript import CoAuthor, Manuscript, ManuscriptStatus, normalize_status
from factories import make_manuscript


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("Submitted", ManuscriptStatus.SUBMITTED),
        ("In Review", ManuscriptStatus.IN_REVIEW),
        ("InReview", ManuscriptStatus.IN_REVIEW),
        ("in_review", ManuscriptStatus.IN_REVIEW),
        ("  ACCEPTED ", ManuscriptStatus.ACCEPTED),
        ("published", ManuscriptStatus.PUBLISHED),
        (ManuscriptStatus.SUSPENDED, ManuscriptStatus.SUSPENDED),
    ],
)
def test_normalize_status_accepts_known_spellings(raw, expected):
    assert normalize_status(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "   ", "Retracted", "under_review", 3])
def test_normalize_status_rejects_unknown(raw):
    assert normalize_status(raw) is None


def test_manuscript_serializes_camel_case():
    m = make_manuscript()
    body = m.model_dump(by_alias=True, mode="json")

    assert body["status"] == "Submitted"
    assert body["submittedById"] == m.submitted_by_id
    assert body["coAuthors"][0]["givenName"] == "Ada"
    assert "submitted_by_id" not in body


def test_to_row_uses_column_names_and_structured_co_authors():
    row = make_manuscript().to_row()

    assert row["submitted_by_id"]
    assert isinstance(row["co_authors"], list)
    assert row["co_authors"][1]["last_name"] == "Turing"
    assert Manuscript.model_validate(row).co_authors[1].last_name == "Turing"


def test_with_status_returns_new_record_with_next_version():
    m = make_manuscript(status=ManuscriptStatus.SUBMITTED)
    moved = m.with_status(ManuscriptStatus.IN_REVIEW)

    assert moved.status == ManuscriptStatus.IN_REVIEW
    assert moved.version == m.version + 1
    assert m.status == ManuscriptStatus.SUBMITTED


def test_co_author_strips_whitespace():
    c = CoAuthor.model_validate({"givenName": " Grace ", "lastName": "Hopper ", "email": " g@navy.mil"})
    assert (c.given_name, c.last_name, c.email) == ("Grace", "Hopper", "g@navy.mil")
    assert c.title == ""
