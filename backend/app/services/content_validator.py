"""
Structural validation of generated article HTML.

Runs placeholder detection, word-count bounds, heading integrity and section
density checks, and aggregates them into a 0-100 quality score and a
pass/fail verdict. Hard issues (placeholders, missing or duplicate title
heading) force a failure regardless of score.
"""
import re
from dataclasses import dataclass, field
from typing import List, Optional

from bs4 import BeautifulSoup

from . import heading_analyzer
from .heading_analyzer import HeadingAnalysis, MISSING_TITLE_HEADING, DUPLICATE_TITLE_HEADING

PASS_SCORE = 70
HARD_ISSUE_PENALTY = 30
SOFT_ISSUE_PENALTY = 5
BELOW_TARGET_PENALTY = 10
MIN_WORD_RATIO = 0.8
MAX_WORD_RATIO = 1.25

# Unresolved template markers left behind by the model
TEXT_PLACEHOLDER_PATTERNS = [
    re.compile(r"\[[A-Z][A-Z0-9_ ]{2,}\]"),  # [PRODUCT_NAME], [INSERT LINK]
    re.compile(r"[\[(]\s*(?:to (?:be )?completed?|à compléter)\s*[\])]", re.IGNORECASE),
    re.compile(r"\bTO (?:BE )?COMPLETED?\b|À COMPLÉTER"),
    re.compile(r"\blorem ipsum\b", re.IGNORECASE),
    re.compile(r"\bTBD\b"),
]
TEMPLATE_TOKEN_PATTERN = re.compile(r"\{\{\s*[^{}]+?\s*\}\}")


@dataclass
class ContentValidation:
    passed: bool
    score: int
    issues: List[str] = field(default_factory=list)
    hard_issues: List[str] = field(default_factory=list)
    length_issues: List[str] = field(default_factory=list)  # covered by the below-target penalty
    word_count: int = 0
    placeholders: List[str] = field(default_factory=list)
    headings: Optional[HeadingAnalysis] = None

    @property
    def soft_issues(self) -> List[str]:
        return [
            issue for issue in self.issues
            if issue not in self.hard_issues and issue not in self.length_issues
        ]


def strip_html(html: str) -> str:
    soup = BeautifulSoup(html or "", "html.parser")
    return soup.get_text(" ", strip=True)


def count_words(html: str) -> int:
    """Count whitespace-separated tokens of the visible text."""
    return len(strip_html(html).split())


def find_placeholders(html: str) -> List[str]:
    """Return unresolved placeholder markers, in order of appearance, without duplicates."""
    found: List[str] = []

    for match in TEMPLATE_TOKEN_PATTERN.finditer(html or ""):
        if match.group(0) not in found:
            found.append(match.group(0))

    text = strip_html(html)
    for pattern in TEXT_PLACEHOLDER_PATTERNS:
        for match in pattern.finditer(text):
            if match.group(0) not in found:
                found.append(match.group(0))

    return found


def required_sections(target_min: int, words_per_section: int) -> int:
    """Minimum number of H2 sections expected for the target length."""
    if words_per_section <= 0:
        return 2
    return max(2, target_min // words_per_section)


def validate(
    article_html: str,
    target_min: int,
    target_max: int,
    *,
    selection_fallback: bool = False,
    words_per_section: int = 300,
) -> ContentValidation:
    """Validate generated article HTML against its target length.

    Args:
        article_html: Article body
        target_min: Campaign minimum word count
        target_max: Campaign maximum word count
        selection_fallback: True when the product scorer fell back to catalog order
        words_per_section: Expected words per H2 section (section density check)

    Returns:
        ContentValidation with score, issues and verdict
    """
    issues: List[str] = []
    hard_issues: List[str] = []
    length_issues: List[str] = []
    soft_count = 0

    def hard(issue: str):
        issues.append(issue)
        hard_issues.append(issue)

    def soft(issue: str):
        nonlocal soft_count
        issues.append(issue)
        soft_count += 1

    # 1. Placeholders
    placeholders = find_placeholders(article_html)
    for placeholder in placeholders:
        hard(f"unresolved placeholder: {placeholder}")

    # 2. Word count
    word_count = count_words(article_html)
    if word_count < MIN_WORD_RATIO * target_min:
        issue = f"word count too low: {word_count} words (target {target_min}-{target_max})"
        issues.append(issue)
        length_issues.append(issue)
    elif target_max and word_count > MAX_WORD_RATIO * target_max:
        soft(f"word count too high: {word_count} words (target {target_min}-{target_max})")

    # 3. Heading integrity
    headings = heading_analyzer.analyze(article_html)
    for error in headings.errors:
        if error in (MISSING_TITLE_HEADING, DUPLICATE_TITLE_HEADING):
            hard(error)
        else:
            soft(error)

    # 4. Section density
    needed = required_sections(target_min, words_per_section)
    if headings.h2_count < needed:
        soft(f"too few sections: {headings.h2_count} H2 headings (expected at least {needed})")

    # 5. Product selection quality
    if selection_fallback:
        soft("no product matched the campaign keywords; products were taken in catalog order")

    score = 100
    if hard_issues:
        score -= HARD_ISSUE_PENALTY
    score -= SOFT_ISSUE_PENALTY * soft_count
    if word_count < target_min:
        score -= BELOW_TARGET_PENALTY
    score = max(0, min(100, score))

    return ContentValidation(
        passed=score >= PASS_SCORE and not hard_issues,
        score=score,
        issues=issues,
        hard_issues=hard_issues,
        length_issues=length_issues,
        word_count=word_count,
        placeholders=placeholders,
        headings=headings,
    )
