"""
test_account_pair.py - Unit tests for pairledger/account_pair.py

AccountPair is exercised directly here, from a single thread, without the
coordinator's lock.
"""

import time

import pytest

from pairledger import (
    AccountPair, Balances, InvalidAccountId, InvariantViolation,
    counterpart, interruptible_sleep,
)


@pytest.fixture
def account_pair():
    return AccountPair(10000, 4000, 6000)


class TestConstruction:

    def test_holds_given_values(self, account_pair):
        assert account_pair.invariant_total == 10000
        assert account_pair.get_balance(1) == 4000
        assert account_pair.get_balance(2) == 6000

    def test_mismatched_total_is_accepted(self):
        """The mismatch only surfaces on the first transfer."""
        mismatched = AccountPair(9000, 4000, 6000)
        assert mismatched.total_balance() == 10000

    @pytest.mark.parametrize("args", [
        (10000.0, 4000, 6000),
        (10000, "4000", 6000),
        (10000, 4000, None),
        (True, 4000, 6000),
    ])
    def test_rejects_non_integer_values(self, args):
        with pytest.raises(ValueError):
            AccountPair(*args)

    def test_repr(self, account_pair):
        assert repr(account_pair) == "AccountPair(a=4000, b=6000, invariant_total=10000)"


class TestReads:

    def test_total_balance(self, account_pair):
        assert account_pair.total_balance() == 10000

    def test_balances_snapshot(self, account_pair):
        assert account_pair.balances() == Balances(4000, 6000)

    @pytest.mark.parametrize("account_id", [0, 3])
    def test_get_balance_rejects_unknown_account(self, account_pair, account_id):
        with pytest.raises(InvalidAccountId):
            account_pair.get_balance(account_id)


class TestTransfer:

    def test_from_a(self, account_pair):
        result = account_pair.transfer(1, 100, 0)
        assert result == Balances(3900, 6100)
        assert account_pair.balances() == result

    def test_from_b(self, account_pair):
        result = account_pair.transfer(2, 250, 0)
        assert result == Balances(4250, 5750)

    @pytest.mark.parametrize("source", [1, 2])
    def test_credits_the_counterpart(self, account_pair, source):
        before = account_pair.balances()
        after = account_pair.transfer(source, 100, 0)
        assert after.get(source) == before.get(source) - 100
        assert after.get(counterpart(source)) == before.get(counterpart(source)) + 100

    def test_zero_amount(self, account_pair):
        assert account_pair.transfer(1, 0, 0) == Balances(4000, 6000)

    def test_balances_may_go_negative(self, account_pair):
        """No overdraft check: only the total is conserved."""
        result = account_pair.transfer(1, 5000, 0)
        assert result == Balances(-1000, 11000)
        assert result.total == 10000

    def test_invalid_source_leaves_pair_untouched(self, account_pair):
        with pytest.raises(InvalidAccountId):
            account_pair.transfer(0, 10, 0)
        assert account_pair.balances() == Balances(4000, 6000)

    def test_mismatched_total_fails_before_mutation(self):
        mismatched = AccountPair(9000, 4000, 6000)
        with pytest.raises(InvariantViolation) as exc_info:
            mismatched.transfer(1, 100, 1000)
        assert exc_info.value.data == {'balance_a': 4000, 'balance_b': 6000, 'expected': 9000}
        assert mismatched.balances() == Balances(4000, 6000)

    def test_invariant_checked_before_account_id(self):
        """A torn pair reports the violation even for a bad account id."""
        mismatched = AccountPair(9000, 4000, 6000)
        with pytest.raises(InvariantViolation):
            mismatched.transfer(7, 100, 0)

    def test_on_debited_sees_torn_state(self, account_pair):
        seen = []

        def snapshot():
            seen.append(account_pair.balances())

        result = account_pair.transfer(1, 100, 0, on_debited=snapshot)
        assert seen == [Balances(3900, 6000)]
        assert result == Balances(3900, 6100)

    def test_delay_is_honored(self):
        account_pair = AccountPair(10000, 4000, 6000, tick=0.005)
        start = time.monotonic()
        account_pair.transfer(2, 10, 60)
        assert time.monotonic() - start >= 0.06

    def test_exception_in_delay_leaves_debit_in_place(self, account_pair):
        """Whatever interrupts the transfer after the debit, the debit stays."""
        class Stop(Exception):
            pass

        def interrupt():
            raise Stop()

        with pytest.raises(Stop):
            account_pair.transfer(1, 100, 10000, on_debited=interrupt)
        assert account_pair.balances() == Balances(3900, 6000)
        with pytest.raises(InvariantViolation) as exc_info:
            account_pair.transfer(2, 1, 0)
        assert exc_info.value.data == {'balance_a': 3900, 'balance_b': 6000, 'expected': 10000}


class TestInterruptibleSleep:

    def test_sleeps_at_least_the_requested_time(self):
        start = time.monotonic()
        interruptible_sleep(0.05, tick=0.01)
        assert time.monotonic() - start >= 0.05

    def test_non_positive_duration_returns_immediately(self):
        start = time.monotonic()
        interruptible_sleep(0)
        interruptible_sleep(-1)
        assert time.monotonic() - start < 0.5

    @pytest.mark.parametrize("tick", [0, -0.1])
    def test_rejects_non_positive_tick(self, tick):
        with pytest.raises(ValueError):
            interruptible_sleep(0.1, tick=tick)
