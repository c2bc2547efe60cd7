"""Tests for session stats, stake sizing and the loss ceiling."""

import math

import pytest

from core.errors import SessionLossLimitExceeded
from execution.risk import RiskGuard, SessionStats, StakePolicy


class TestSessionStats:

    def test_win_loss_push(self):
        stats = SessionStats()
        stats.record_trade(9.5)
        stats.record_trade(-10.0)
        stats.record_trade(0.0)
        assert stats.trades == 3
        assert stats.wins == 1 and stats.losses == 1
        assert stats.win_rate == 50.0
        assert stats.total_pnl == pytest.approx(-0.5)
        assert stats.consecutive_losses == 1  # push leaves the streak alone

    def test_streak_resets_on_win(self):
        stats = SessionStats()
        for pnl in (-1, -1, -1, 2, -1):
            stats.record_trade(pnl)
        assert stats.consecutive_losses == 1
        assert stats.max_consecutive_losses == 3

    def test_profit_factor(self):
        stats = SessionStats()
        assert stats.profit_factor == 0.0
        stats.record_trade(5.0)
        assert math.isinf(stats.profit_factor)
        stats.record_trade(-2.5)
        assert stats.profit_factor == 2.0


class TestStakePolicy:

    def test_fixed_stake(self):
        policy = StakePolicy(base_amount=10.0)
        assert policy.stake_for(0) == 10.0
        assert policy.stake_for(3) == 10.0

    def test_martingale_doubles(self):
        policy = StakePolicy(base_amount=1.5, martingale=True, multiplier=2.0, max_consecutive_losses=4)
        assert [policy.stake_for(n) for n in range(4)] == [1.5, 3.0, 6.0, 12.0]

    def test_ceiling_raises_instead_of_capping(self):
        policy = StakePolicy(base_amount=1.0, martingale=True, max_consecutive_losses=3)
        with pytest.raises(SessionLossLimitExceeded) as exc:
            policy.stake_for(3)
        assert exc.value.consecutive_losses == 3

    def test_rejects_bad_config(self):
        with pytest.raises(ValueError):
            StakePolicy(base_amount=0)
        with pytest.raises(ValueError):
            StakePolicy(martingale=True, multiplier=1.0)


class TestRiskGuard:

    def test_halts_after_streak(self):
        guard = RiskGuard(max_consecutive_losses=3)
        guard.record_outcome(-1)
        guard.record_outcome(-1)
        guard.ensure_active()
        guard.record_outcome(-1)

        assert guard.halted
        with pytest.raises(SessionLossLimitExceeded) as exc:
            guard.ensure_active()
        assert exc.value.consecutive_losses == 3
        assert exc.value.session_pnl == -3

    def test_win_after_halt_does_not_unhalt(self):
        guard = RiskGuard(max_consecutive_losses=1)
        guard.record_outcome(-1)
        guard.record_outcome(5)
        assert guard.halted

    def test_session_loss_limit(self):
        guard = RiskGuard(max_consecutive_losses=10, max_session_loss=25.0)
        guard.record_outcome(-20)
        guard.record_outcome(1)
        assert not guard.halted
        guard.record_outcome(-6)
        assert guard.halted
        assert "session loss" in guard.halt_reason

    def test_reset(self):
        guard = RiskGuard(max_consecutive_losses=1)
        guard.record_outcome(-1)
        guard.reset()
        assert not guard.halted
        assert guard.stats.trades == 0
        guard.ensure_active()
