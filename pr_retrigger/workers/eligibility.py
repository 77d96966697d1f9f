"""Required-label filter for pull requests."""

import logging
import re

from .models import PullRequest

logger = logging.getLogger(__name__)


class LabelFilter:
    """Qualifies pull requests carrying a label that matches a pattern.

    Without a pattern every pull request qualifies. Matching is
    case-insensitive and may hit anywhere in the label name.
    """

    def __init__(self, pattern: str | None = None):
        self.pattern = re.compile(pattern, re.IGNORECASE) if pattern else None

    def matching_labels(self, pr: PullRequest) -> list[str]:
        """Label names of ``pr`` that match the pattern."""
        if self.pattern is None:
            return pr.label_names
        return [name for name in pr.label_names if self.pattern.search(name)]

    def is_eligible(self, pr: PullRequest) -> bool:
        if self.pattern is None:
            return True
        eligible = bool(self.matching_labels(pr))
        if not eligible:
            logger.info(
                f"Skipped: PR does not have a required label #{pr.number}: {pr.title}"
            )
        return eligible
