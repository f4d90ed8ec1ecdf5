"""Unit tests for outcome and motion taxonomies."""

import pytest

from jba.core.taxonomy import (
    MotionCategory,
    OutcomeClass,
    classify_motion,
    classify_outcome,
    is_settlement,
    motion_granted,
    plaintiff_prevailed,
)


class TestClassifyMotion:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("Motion for Summary Judgment", MotionCategory.SUMMARY_JUDGMENT),
            ("MSJ", MotionCategory.SUMMARY_JUDGMENT),
            ("motion_to_dismiss", MotionCategory.DISMISS),
            ("Motion to Compel", MotionCategory.COMPEL_DISCOVERY),
            ("Motion for Default Judgment", MotionCategory.DEFAULT_JUDGMENT),
            ("TRO", MotionCategory.PRELIMINARY_INJUNCTION),
            ("Motion to Reconsider", MotionCategory.RECONSIDERATION),
            ("Motion for sanctions", MotionCategory.SANCTIONS),
            ("Motion in limine", MotionCategory.OTHER),
        ],
    )
    def test_known_categories(self, raw, expected) -> None:
        assert classify_motion(raw) is expected

    def test_short_keyword_needs_whole_word(self) -> None:
        # "tro" inside "control" must not read as a restraining order
        assert classify_motion("Motion regarding control of assets") is MotionCategory.OTHER

    def test_empty_motion_is_none(self) -> None:
        assert classify_motion(None) is None
        assert classify_motion("   ") is None

    def test_labels_cover_every_category(self) -> None:
        assert len(list(MotionCategory)) >= 13
        for category in MotionCategory:
            assert category.label


class TestMotionGranted:
    def test_granted_and_denied(self) -> None:
        assert motion_granted("Motion GRANTED") is True
        assert motion_granted("denied") is False

    def test_partial_grant_counts_as_granted(self) -> None:
        assert motion_granted("Granted in part, denied in part") is True

    def test_unknown_outcome(self) -> None:
        assert motion_granted("Taken under advisement") is None
        assert motion_granted(None) is None


class TestOutcomeClass:
    def test_classes(self) -> None:
        assert classify_outcome("Settled out of court") is OutcomeClass.SETTLED
        assert classify_outcome("Dismissed with prejudice") is OutcomeClass.DISMISSED
        assert classify_outcome("Judgment entered") is OutcomeClass.JUDGMENT
        assert classify_outcome("Pending") is OutcomeClass.OTHER
        assert is_settlement("stipulated dismissal")


class TestPlaintiffPrevailed:
    def test_not_liable_is_a_loss(self) -> None:
        assert plaintiff_prevailed("Defendant found not liable") is False

    def test_win_phrases(self) -> None:
        assert plaintiff_prevailed("Judgment for plaintiff") is True
        assert plaintiff_prevailed("Plaintiff won at trial") is True

    def test_short_word_needs_whole_word(self) -> None:
        # "won" inside "wonder" is not a win
        assert plaintiff_prevailed("Court wondered about venue") is None

    def test_settlement_is_undetermined(self) -> None:
        assert plaintiff_prevailed("Settled") is None
