"""Unit tests for the required-label filter."""

import logging

import pytest

from pr_retrigger.workers.eligibility import LabelFilter
from pr_retrigger.workers.models import PullRequest


@pytest.fixture
def make_pr(pr_payload):
    def build(*labels: str) -> PullRequest:
        return PullRequest.from_api(pr_payload(7, title="Tidy up", labels=labels))

    return build


class TestLabelFilter:
    def test_no_pattern_accepts_everything(self, make_pr) -> None:
        label_filter = LabelFilter(None)

        assert label_filter.is_eligible(make_pr())
        assert label_filter.is_eligible(make_pr("wip"))

    def test_empty_pattern_is_unset(self, make_pr) -> None:
        assert LabelFilter("").is_eligible(make_pr())

    def test_matching_label_qualifies(self, make_pr) -> None:
        label_filter = LabelFilter("ready-.*")

        assert label_filter.is_eligible(make_pr("wip", "ready-for-ci"))
        assert label_filter.matching_labels(make_pr("wip", "ready-for-ci")) == [
            "ready-for-ci"
        ]

    def test_unmatched_labels_are_skipped_and_logged(self, make_pr, caplog) -> None:
        label_filter = LabelFilter("ready-.*")

        with caplog.at_level(logging.INFO):
            assert not label_filter.is_eligible(make_pr("wip"))

        assert "Skipped: PR does not have a required label #7: Tidy up" in caplog.text

    def test_no_labels_with_pattern_is_skipped(self, make_pr) -> None:
        assert not LabelFilter("ready").is_eligible(make_pr())

    @pytest.mark.parametrize(
        "label",
        ["READY-to-merge", "Ready-For-CI", "needs-ready-check"],
    )
    def test_match_is_case_insensitive_and_unanchored(self, make_pr, label) -> None:
        assert LabelFilter("ready-").is_eligible(make_pr(label))
