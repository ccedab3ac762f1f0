from __future__ import annotations

import re
from typing import Dict

BRACKET_CITATION_RE = re.compile(r"\[\d+\]")
AUTHOR_YEAR_CITATION_RE = re.compile(r"\([A-Za-z]+,\s*\d{4}\)")
# also matches plain [n], so a bracketed citation is counted by both patterns
FOOTNOTE_CITATION_RE = re.compile(r"\[\^?\d+\^?\]")


def citation_breakdown(content: str) -> Dict[str, int]:
    text = content or ""
    return {
        "bracket": len(BRACKET_CITATION_RE.findall(text)),
        "author_year": len(AUTHOR_YEAR_CITATION_RE.findall(text)),
        "footnote": len(FOOTNOTE_CITATION_RE.findall(text)),
    }


def count_citations(content: str) -> int:
    """Sum of the three independent citation pattern counts."""
    return sum(citation_breakdown(content).values())
