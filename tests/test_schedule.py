"""Tests for the reward schedule state machine."""

import pytest

from stakepool import PeriodNotFinished, PeriodState, PoolState, SolvencyError, ValidationError
from stakepool.core import schedule, stake_book
from stakepool.fixed_point import SCALE

T0 = 10_000


@pytest.fixture
def pool():
    return PoolState(owner="o", rewards_distribution="d", rewards_duration=100)


def _fund(pool, reward, duration=100, now=T0, available=None):
    if available is None:
        available = reward + schedule.leftover(pool, now)
    return schedule.notify_reward_amount(pool, reward, duration, now, available)


class TestPeriodState:
    def test_unfunded_until_first_notify(self, pool):
        assert schedule.period_state(pool, T0) is PeriodState.UNFUNDED

    def test_active_then_expired(self, pool):
        _fund(pool, 100 * SCALE)
        assert schedule.period_state(pool, T0) is PeriodState.ACTIVE
        assert schedule.period_state(pool, T0 + 99) is PeriodState.ACTIVE
        assert schedule.period_state(pool, T0 + 100) is PeriodState.EXPIRED

    def test_zero_reward_still_funds(self, pool):
        rate = _fund(pool, 0)
        assert rate == 0
        assert schedule.period_state(pool, T0) is PeriodState.ACTIVE


class TestNotifyRewardAmount:
    def test_fresh_period(self, pool):
        rate = _fund(pool, 100 * SCALE)
        assert rate == SCALE
        assert pool.last_update_time == T0
        assert pool.period_finish == T0 + 100

    def test_rate_truncates(self, pool):
        assert _fund(pool, 1000, duration=3) == 333

    def test_blends_leftover(self, pool):
        _fund(pool, 100 * SCALE)
        # 40s of the old rate remain
        rate = _fund(pool, 60 * SCALE, duration=50, now=T0 + 60)
        assert rate == (60 * SCALE + 40 * SCALE) // 50
        assert pool.period_finish == T0 + 110

    def test_blended_rate_helper_matches(self, pool):
        _fund(pool, 100 * SCALE)
        expected = schedule.blended_rate(pool, 7 * SCALE, 30, T0 + 10)
        assert _fund(pool, 7 * SCALE, duration=30, now=T0 + 10) == expected

    def test_no_blend_after_expiry(self, pool):
        _fund(pool, 100 * SCALE)
        assert schedule.leftover(pool, T0 + 100) == 0
        assert _fund(pool, 50 * SCALE, now=T0 + 500) == 50 * SCALE // 100

    def test_checkpoints_under_old_rate(self, pool):
        stake_book.credit(pool, "alice", SCALE)
        _fund(pool, 100 * SCALE)
        _fund(pool, 0, now=T0 + 30)
        # 30s at 1/s on a single token
        assert pool.reward_per_token_stored == 30 * SCALE

    def test_solvency_guard(self, pool):
        with pytest.raises(SolvencyError):
            _fund(pool, 100 * SCALE, available=99 * SCALE)
        assert schedule.period_state(pool, T0) is PeriodState.UNFUNDED
        assert pool.reward_rate == 0

    def test_solvency_counts_leftover(self, pool):
        _fund(pool, 100 * SCALE)
        with pytest.raises(SolvencyError):
            _fund(pool, 10 * SCALE, now=T0 + 50, available=10 * SCALE)

    @pytest.mark.parametrize("duration", [0, -1, None, True])
    def test_bad_duration(self, pool, duration):
        with pytest.raises(ValidationError):
            schedule.notify_reward_amount(pool, SCALE, duration, T0, SCALE)

    def test_negative_reward(self, pool):
        with pytest.raises(ValidationError):
            schedule.notify_reward_amount(pool, -1, 100, T0, SCALE)

    def test_reward_for_duration(self, pool):
        _fund(pool, 100 * SCALE)
        assert schedule.reward_for_duration(pool) == 100 * SCALE


class TestSetRewardsDuration:
    def test_allowed_when_unfunded(self, pool):
        schedule.set_rewards_duration(pool, 50, T0)
        assert pool.rewards_duration == 50

    def test_refused_until_strictly_after_finish(self, pool):
        _fund(pool, 100 * SCALE)
        with pytest.raises(PeriodNotFinished):
            schedule.set_rewards_duration(pool, 50, T0 + 100)
        schedule.set_rewards_duration(pool, 50, T0 + 101)
        assert pool.rewards_duration == 50

    def test_invalid_duration(self, pool):
        with pytest.raises(ValidationError):
            schedule.set_rewards_duration(pool, 0, T0)
