"""
复习调度算法测试

关键测试场景：
1. 新词首次答对：level 0 -> 1，下次复习时间后移
2. 答错降级并以 0 为下限
3. 累计计数单调不减
4. 复习间隔、降级步长随等级单调
"""
import pytest

from wordrecite.core.errors import ValidationError
from wordrecite.core.record import ReviewOutcome, ReviewRecord
from wordrecite.core.scheduler import ReciteScheduler

NOW = 1_700_000_000


class TestCorrectAnswer:
    """答对"""

    def test_new_word_first_review_correct(self):
        record = ReciteScheduler.new_record(user_id=1, word_id=5)
        assert record.level == 0
        assert record.next_review_time == 0

        result = ReciteScheduler.apply_outcome(record, ReviewOutcome.CORRECT, now=NOW)

        assert result.level == 1
        assert result.total_correct == 1
        assert result.total_wrong == 0
        assert result.next_review_time > record.next_review_time
        assert result.next_review_time == NOW + ReciteScheduler.REVIEW_INTERVALS[1]
        assert result.downgrade_step >= 0

    def test_score_goes_up(self):
        record = ReviewRecord(user_id=1, word_id=1, level=3, total_correct=3, total_wrong=2, score=0)
        record = ReciteScheduler.apply_outcome(record, "wrong", now=NOW, wrong_retry_seconds=60)
        before = record.score

        result = ReciteScheduler.apply_outcome(record, "correct", now=NOW)

        assert result.score > before

    def test_early_review_still_moves_schedule_forward(self):
        """提前复习时，下次复习时间以原计划为基准后移"""
        planned = NOW + 10 * 86400
        record = ReviewRecord(user_id=1, word_id=1, level=4, downgrade_step=2, next_review_time=planned)

        result = ReciteScheduler.apply_outcome(record, ReviewOutcome.CORRECT, now=NOW)

        assert result.next_review_time == planned + ReciteScheduler.interval_for_level(5)

    def test_level_capped_at_max(self):
        record = ReviewRecord(user_id=1, word_id=1, level=ReciteScheduler.MAX_LEVEL, downgrade_step=4,
                              next_review_time=NOW)

        result = ReciteScheduler.apply_outcome(record, ReviewOutcome.CORRECT, now=NOW)

        assert result.level == ReciteScheduler.MAX_LEVEL
        assert result.next_review_time > record.next_review_time

    def test_keeps_identity_fields(self):
        record = ReviewRecord(user_id=7, word_id=9, id=42, version=3)

        result = ReciteScheduler.apply_outcome(record, ReviewOutcome.CORRECT, now=NOW)

        assert (result.id, result.user_id, result.word_id, result.version) == (42, 7, 9, 3)

    def test_input_record_not_modified(self):
        record = ReciteScheduler.new_record(1, 1)
        ReciteScheduler.apply_outcome(record, ReviewOutcome.CORRECT, now=NOW)
        assert record.level == 0
        assert record.total_correct == 0


class TestWrongAnswer:
    """答错"""

    def test_downgrade_then_floor(self):
        record = ReviewRecord(user_id=1, word_id=1, level=2, downgrade_step=3, total_wrong=4)

        result = ReciteScheduler.apply_outcome(record, ReviewOutcome.WRONG, now=NOW)

        assert result.level == 0
        assert result.total_wrong == 5

    def test_uses_stored_downgrade_step_and_recomputes(self):
        record = ReviewRecord(user_id=1, word_id=1, level=9, downgrade_step=4)

        result = ReciteScheduler.apply_outcome(record, ReviewOutcome.WRONG, now=NOW)

        assert result.level == 5
        assert result.downgrade_step == ReciteScheduler.downgrade_step_for_level(5)

    def test_completed_word_can_be_downgraded(self):
        record = ReviewRecord(user_id=1, word_id=1, level=8, downgrade_step=4, total_correct=8)

        result = ReciteScheduler.apply_outcome(record, ReviewOutcome.WRONG, now=NOW)

        assert not ReciteScheduler.is_completed(result.level)

    def test_resurfaces_soon(self):
        record = ReviewRecord(user_id=1, word_id=1, level=6, downgrade_step=3,
                              next_review_time=NOW + 30 * 86400)

        result = ReciteScheduler.apply_outcome(record, ReviewOutcome.WRONG, now=NOW, wrong_retry_seconds=300)

        assert result.next_review_time == NOW + 300
        assert result.next_review_time < record.next_review_time

    def test_wrong_retry_from_config(self, monkeypatch):
        monkeypatch.setenv("RECITE_WRONG_RETRY_SECONDS", "120")
        record = ReviewRecord(user_id=1, word_id=1, level=1)

        result = ReciteScheduler.apply_outcome(record, ReviewOutcome.WRONG, now=NOW)

        assert result.next_review_time == NOW + 120

    def test_score_goes_down_but_counters_kept(self):
        record = ReviewRecord(user_id=1, word_id=1, level=5, downgrade_step=2, total_correct=5, total_wrong=0)
        record = ReciteScheduler.apply_outcome(record, ReviewOutcome.CORRECT, now=NOW)

        result = ReciteScheduler.apply_outcome(record, ReviewOutcome.WRONG, now=NOW, wrong_retry_seconds=60)

        assert result.score < record.score
        assert result.total_correct == record.total_correct


class TestInvariants:
    """多次答题后的不变量"""

    SEQUENCE = "cccwwcccccwcwwwwcccccccccw"

    def test_counters_monotonic_and_level_floor(self):
        record = ReciteScheduler.new_record(1, 1)
        now = NOW
        for ch in self.SEQUENCE:
            outcome = ReviewOutcome.CORRECT if ch == "c" else ReviewOutcome.WRONG
            result = ReciteScheduler.apply_outcome(record, outcome, now=now, wrong_retry_seconds=300)

            assert result.total_correct >= record.total_correct
            assert result.total_wrong >= record.total_wrong
            assert result.total_correct + result.total_wrong == record.total_correct + record.total_wrong + 1
            assert 0 <= result.level <= ReciteScheduler.MAX_LEVEL
            assert result.downgrade_step >= 0
            if outcome is ReviewOutcome.CORRECT:
                assert result.level >= record.level
                assert result.next_review_time > record.next_review_time

            record = result
            now += 3600

        assert record.total_correct == self.SEQUENCE.count("c")
        assert record.total_wrong == self.SEQUENCE.count("w")

    def test_interval_non_decreasing_in_level(self):
        intervals = [ReciteScheduler.interval_for_level(level) for level in range(ReciteScheduler.MAX_LEVEL + 1)]
        assert intervals == sorted(intervals)
        assert all(i > 0 for i in intervals)

    def test_downgrade_step_non_decreasing_in_level(self):
        steps = [ReciteScheduler.downgrade_step_for_level(level) for level in range(ReciteScheduler.MAX_LEVEL + 1)]
        assert steps == sorted(steps)
        assert min(steps) >= 1


class TestValidation:
    """非法输入"""

    def test_unknown_outcome(self):
        with pytest.raises(ValidationError):
            ReciteScheduler.apply_outcome(ReciteScheduler.new_record(1, 1), "maybe", now=NOW)

    def test_negative_counter(self):
        record = ReviewRecord(user_id=1, word_id=1, total_wrong=-1)
        with pytest.raises(ValidationError):
            ReciteScheduler.apply_outcome(record, ReviewOutcome.CORRECT, now=NOW)

    def test_negative_level(self):
        record = ReviewRecord(user_id=1, word_id=1, level=-2)
        with pytest.raises(ValidationError):
            ReciteScheduler.apply_outcome(record, ReviewOutcome.WRONG, now=NOW)

    @pytest.mark.parametrize("value, expected", [
        ("correct", ReviewOutcome.CORRECT),
        (" WRONG ", ReviewOutcome.WRONG),
        (True, ReviewOutcome.CORRECT),
        (False, ReviewOutcome.WRONG),
    ])
    def test_outcome_parse(self, value, expected):
        assert ReviewOutcome.parse(value) is expected

    def test_outcome_parse_rejects_int(self):
        with pytest.raises(ValidationError):
            ReviewOutcome.parse(1)


def test_compute_score():
    assert ReciteScheduler.compute_score(0, 0, 0) == 0
    assert ReciteScheduler.compute_score(3, 3, 1) == 30 + 15
    assert ReciteScheduler.compute_score(8, 10, 0) == 100
