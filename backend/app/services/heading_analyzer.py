"""
Heading hierarchy analyzer.

Validates the h1-h6 structure of generated HTML for SEO: exactly one title
heading, no skipped levels, enough section headings, and no orphan deep
headings. Produces a 0-100 structural score.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from bs4 import BeautifulSoup

HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6"]

MISSING_TITLE_HEADING = "missing title heading"
DUPLICATE_TITLE_HEADING = "duplicate title heading"
ORPHAN_DEEP_HEADING = "orphan deep heading"


@dataclass(frozen=True)
class HeadingNode:
    level: int
    text: str
    id: Optional[str] = None
    position: int = 0


@dataclass
class HeadingAnalysis:
    score: int
    h1_count: int
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    headings: List[HeadingNode] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def h2_count(self) -> int:
        return sum(1 for h in self.headings if h.level == 2)

    @property
    def structure(self) -> str:
        """Indented outline of the headings."""
        if not self.headings:
            return "No headings found"
        lines = []
        for heading in self.headings:
            indent = "  " * (heading.level - 1)
            anchor = f" [#{heading.id}]" if heading.id else ""
            lines.append(f"{indent}H{heading.level}{anchor}: {heading.text}")
        return "\n".join(lines)


def extract_headings(html: str) -> List[HeadingNode]:
    """Extract h1-h6 elements in document order."""
    soup = BeautifulSoup(html or "", "html.parser")
    headings = []
    for position, tag in enumerate(soup.find_all(HEADING_TAGS)):
        headings.append(HeadingNode(
            level=int(tag.name[1]),
            text=tag.get_text(" ", strip=True),
            id=tag.get("id") or None,
            position=position,
        ))
    return headings


# ── Individual checks ─────────────────────────────────────────────────────
# Each returns (errors, warnings).


def check_title_heading(headings: List[HeadingNode]) -> Tuple[List[str], List[str]]:
    """Exactly one h1 is required, and it should come first."""
    errors, warnings = [], []
    h1_count = sum(1 for h in headings if h.level == 1)

    if h1_count == 0:
        errors.append(MISSING_TITLE_HEADING)
    elif h1_count > 1:
        errors.append(DUPLICATE_TITLE_HEADING)
    elif headings[0].level != 1:
        warnings.append("title heading is not the first heading")

    return errors, warnings


def check_level_skips(headings: List[HeadingNode]) -> Tuple[List[str], List[str]]:
    """A heading may go at most one level deeper than its predecessor."""
    errors = []
    for prev, curr in zip(headings, headings[1:]):
        if curr.level - prev.level > 1:
            errors.append(
                f"heading level skipped from H{prev.level} to H{curr.level} "
                f"at \"{curr.text}\""
            )
    return errors, []


def check_section_headings(headings: List[HeadingNode]) -> Tuple[List[str], List[str]]:
    """Main content should be split into H2 sections, with ids for navigation."""
    warnings = []
    h2s = [h for h in headings if h.level == 2]

    if not h2s and len(headings) > 1:
        warnings.append("no section headings (H2)")
    elif len(h2s) < 3 and len(headings) > 4:
        warnings.append(f"only {len(h2s)} section headings (H2), 4-7 recommended")

    if h2s and not any(h.id for h in h2s):
        warnings.append("section headings (H2) have no id attributes for navigation")

    return [], warnings


def check_orphan_deep_headings(headings: List[HeadingNode]) -> Tuple[List[str], List[str]]:
    """H4 and deeper must sit under a heading exactly one level up."""
    errors = []
    for i, curr in enumerate(headings):
        if curr.level < 4:
            continue
        has_parent = False
        for prev in reversed(headings[:i]):
            if prev.level == curr.level - 1:
                has_parent = True
                break
            if prev.level <= curr.level - 2:
                break
        if not has_parent:
            errors.append(ORPHAN_DEEP_HEADING)
    return errors, []


CHECKS = (
    check_title_heading,
    check_level_skips,
    check_section_headings,
    check_orphan_deep_headings,
)


def compute_score(headings: List[HeadingNode], errors: List[str], warnings: List[str]) -> int:
    h1_count = sum(1 for h in headings if h.level == 1)
    h2s = [h for h in headings if h.level == 2]
    h2_with_ids = sum(1 for h in h2s if h.id)

    score = 100 - 15 * len(errors) - 5 * len(warnings)

    if h1_count == 1:
        score += 10
    if 4 <= len(h2s) <= 7:
        score += 10
    if h2_with_ids >= 0.8 * len(h2s):
        score += 5

    return max(0, min(100, score))


def analyze(html: str) -> HeadingAnalysis:
    """Analyze the heading structure of an HTML document."""
    headings = extract_headings(html)
    errors: List[str] = []
    warnings: List[str] = []

    for check in CHECKS:
        check_errors, check_warnings = check(headings)
        errors.extend(check_errors)
        warnings.extend(check_warnings)

    return HeadingAnalysis(
        score=compute_score(headings, errors, warnings),
        h1_count=sum(1 for h in headings if h.level == 1),
        errors=errors,
        warnings=warnings,
        headings=headings,
    )
