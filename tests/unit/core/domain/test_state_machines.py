"""
State Machine 테스트
"""

import pytest

from core.domain.state_machines import (
    TRANSACTION_TRANSITIONS,
    StateMachineError,
    TransactionStateMachine,
)
from core.ledger.types import TransactionStatus


class TestTransactionStateMachine:
    """TransactionStateMachine 테스트"""

    def test_initial_state(self) -> None:
        sm = TransactionStateMachine()

        assert sm.status == TransactionStatus.PENDING
        assert sm.status.is_terminal is False

    @pytest.mark.parametrize("target", [TransactionStatus.APPROVED, TransactionStatus.REJECTED])
    def test_pending_to_terminal(self, target: TransactionStatus) -> None:
        sm = TransactionStateMachine()

        assert sm.transition(target) == target
        assert sm.status == target
        assert sm.status.is_terminal is True

    @pytest.mark.parametrize(
        "start, target",
        [
            (TransactionStatus.APPROVED, TransactionStatus.REJECTED),
            (TransactionStatus.REJECTED, TransactionStatus.APPROVED),
            (TransactionStatus.APPROVED, TransactionStatus.PENDING),
            (TransactionStatus.APPROVED, TransactionStatus.APPROVED),
        ],
    )
    def test_terminal_states_are_final(
        self, start: TransactionStatus, target: TransactionStatus
    ) -> None:
        sm = TransactionStateMachine(start)

        assert sm.can_transition(target) is False
        with pytest.raises(StateMachineError):
            sm.transition(target)
        assert sm.status == start

    def test_pending_to_pending_not_allowed(self) -> None:
        with pytest.raises(StateMachineError):
            TransactionStateMachine().transition("pending")

    def test_string_status(self) -> None:
        sm = TransactionStateMachine("pending")

        assert sm.transition("rejected") == TransactionStatus.REJECTED

    def test_every_status_has_rule(self) -> None:
        assert set(TRANSACTION_TRANSITIONS) == set(TransactionStatus)
        assert TransactionStateMachine().allowed_targets() == {
            TransactionStatus.APPROVED,
            TransactionStatus.REJECTED,
        }
