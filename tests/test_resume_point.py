import pytest

from topicwalk.core.models import ResumeStatus
from topicwalk.orchestration.utils import compute_resume_point


def test_resumes_after_least_advanced_subscriber() -> None:
    rp = compute_resume_point({"A": 5, "B": 12}, 1)

    assert rp.seq_id == 6
    assert rp.status is ResumeStatus.OK
    assert rp.least_subscriber == "A"


def test_no_subscribers_uses_requested_start() -> None:
    rp = compute_resume_point({}, 1)

    assert rp.seq_id == 1
    assert rp.status is ResumeStatus.NO_SUBSCRIBERS
    assert rp.least_subscriber is None


def test_later_requested_start_wins() -> None:
    assert compute_resume_point({"A": 5, "B": 12}, 20).seq_id == 20


def test_requested_start_equal_to_consumed_is_not_redelivered() -> None:
    assert compute_resume_point({"A": 5}, 5).seq_id == 6


def test_never_consumed_counts_as_zero() -> None:
    rp = compute_resume_point({"A": 5, "B": None}, 1)

    assert rp.seq_id == 1
    assert rp.least_subscriber == "B"


def test_requested_start_must_be_positive() -> None:
    with pytest.raises(ValueError):
        compute_resume_point({}, 0)


def test_first_of_equal_markers_is_least() -> None:
    rp = compute_resume_point({"B": 5, "A": 5, "C": 9}, 1)

    assert rp.seq_id == 6
    assert rp.least_subscriber == "B"
