"""Outcome and motion taxonomies.

Case outcomes arrive as free text from many courts.  These helpers map that
text onto the small closed vocabularies the analyzers work with: motion
categories, grant/deny decisions, settlement/dismissal/judgment classes and
which side of the caption prevailed.  Every classifier returns ``None`` when
the text does not support a decision, so callers can exclude the case from
that one computation instead of guessing.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional, Tuple

from .normalization import normalize_text


class MotionCategory(str, Enum):
    """Recognized motion categories."""

    SUMMARY_JUDGMENT = "summary_judgment"
    DISMISS = "dismiss"
    COMPEL_DISCOVERY = "compel_discovery"
    SUPPRESS_EVIDENCE = "suppress_evidence"
    CONTINUANCE = "continuance"
    PROTECTIVE_ORDER = "protective_order"
    STRIKE = "strike"
    AMEND = "amend"
    RECONSIDERATION = "reconsideration"
    SANCTIONS = "sanctions"
    DEFAULT_JUDGMENT = "default_judgment"
    PRELIMINARY_INJUNCTION = "preliminary_injunction"
    OTHER = "other"

    @property
    def label(self) -> str:
        return MOTION_LABELS[self]


MOTION_LABELS = {
    MotionCategory.SUMMARY_JUDGMENT: "Summary Judgment",
    MotionCategory.DISMISS: "Motion to Dismiss",
    MotionCategory.COMPEL_DISCOVERY: "Motion to Compel Discovery",
    MotionCategory.SUPPRESS_EVIDENCE: "Motion to Suppress Evidence",
    MotionCategory.CONTINUANCE: "Motion for Continuance",
    MotionCategory.PROTECTIVE_ORDER: "Protective Order",
    MotionCategory.STRIKE: "Motion to Strike",
    MotionCategory.AMEND: "Motion to Amend",
    MotionCategory.RECONSIDERATION: "Motion for Reconsideration",
    MotionCategory.SANCTIONS: "Motion for Sanctions",
    MotionCategory.DEFAULT_JUDGMENT: "Motion for Default Judgment",
    MotionCategory.PRELIMINARY_INJUNCTION: "Motion for Preliminary Injunction",
    MotionCategory.OTHER: "Other Motion",
}

# Checked in order; the first matching keyword wins.
_MOTION_KEYWORDS: List[Tuple[Tuple[str, ...], MotionCategory]] = [
    (("summary judgment", "msj"), MotionCategory.SUMMARY_JUDGMENT),
    (("default judgment",), MotionCategory.DEFAULT_JUDGMENT),
    (("preliminary injunction", "injunction", "tro"), MotionCategory.PRELIMINARY_INJUNCTION),
    (("dismiss", "mtd"), MotionCategory.DISMISS),
    (("compel",), MotionCategory.COMPEL_DISCOVERY),
    (("suppress",), MotionCategory.SUPPRESS_EVIDENCE),
    (("continuance", "continue", "postpone"), MotionCategory.CONTINUANCE),
    (("protective",), MotionCategory.PROTECTIVE_ORDER),
    (("strike",), MotionCategory.STRIKE),
    (("amend",), MotionCategory.AMEND),
    (("reconsider",), MotionCategory.RECONSIDERATION),
    (("sanction",), MotionCategory.SANCTIONS),
]


class OutcomeClass(str, Enum):
    SETTLED = "settled"
    DISMISSED = "dismissed"
    JUDGMENT = "judgment"
    OTHER = "other"


def classify_motion(motion_type: Optional[str]) -> Optional[MotionCategory]:
    """Map a raw ``motion_type`` onto a :class:`MotionCategory`."""
    text = normalize_text(motion_type)
    if not text:
        return None
    words = set(text.split())
    for keywords, category in _MOTION_KEYWORDS:
        for keyword in keywords:
            # Short abbreviations must match a whole word
            if (len(keyword) <= 3 and keyword in words) or (len(keyword) > 3 and keyword in text):
                return category
    return MotionCategory.OTHER


def motion_granted(outcome: Optional[str]) -> Optional[bool]:
    """True for granted motions, False for denied, None when undeterminable."""
    text = normalize_text(outcome)
    if not text:
        return None
    if "denied" in text or "deny" in text or "rejected" in text or "overruled" in text:
        # "granted in part, denied in part" counts as granted
        if "granted in part" in text or "partially granted" in text:
            return True
        return False
    if "granted" in text or "grant" in text or "approved" in text or "sustained" in text:
        return True
    return None


def classify_outcome(outcome: Optional[str]) -> OutcomeClass:
    text = normalize_text(outcome)
    if not text:
        return OutcomeClass.OTHER
    if "settle" in text or "compromise" in text or "agreed" in text or "stipulated" in text:
        return OutcomeClass.SETTLED
    if "dismiss" in text or "withdrawn" in text:
        return OutcomeClass.DISMISSED
    if "judgment" in text or "verdict" in text or "awarded" in text or "granted" in text:
        return OutcomeClass.JUDGMENT
    return OutcomeClass.OTHER


def is_settlement(outcome: Optional[str]) -> bool:
    return classify_outcome(outcome) is OutcomeClass.SETTLED


_PLAINTIFF_LOSS = (
    "judgment for defendant",
    "judgment for the defendant",
    "defense verdict",
    "defendant verdict",
    "not liable",
    "not guilty",
    "acquitted",
    "dismiss",
    "lost",
)
_PLAINTIFF_WIN = (
    "judgment for plaintiff",
    "judgment for the plaintiff",
    "plaintiff verdict",
    "verdict for plaintiff",
    "liable",
    "guilty",
    "awarded",
    "prevailed",
    "won",
)


def plaintiff_prevailed(outcome: Optional[str]) -> Optional[bool]:
    """Whether the plaintiff side prevailed; None for settlements and unclear text."""
    text = normalize_text(outcome)
    if not text or is_settlement(text):
        return None
    words = set(text.split())
    # Loss phrases first so "not liable" is not read as "liable"
    for phrase in _PLAINTIFF_LOSS:
        if _matches(phrase, text, words):
            return False
    for phrase in _PLAINTIFF_WIN:
        if _matches(phrase, text, words):
            return True
    return None


def _matches(phrase: str, text: str, words: set) -> bool:
    # Short single words ("won", "lost") must match a whole word
    if len(phrase) <= 4:
        return phrase in words
    return phrase in text
