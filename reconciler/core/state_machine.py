"""
Transaction status transitions driven by gateway payment outcomes
"""

from dataclasses import dataclass
import enum

from reconciler.models.transaction import TransactionStatus


class PaymentOutcome(str, enum.Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    # Manual-capture flows: money is held, capture or failure follows later
    AUTHORIZED = "authorized"


class TransitionKind(str, enum.Enum):
    APPLY = "apply"
    REPLAY = "replay"
    ILLEGAL = "illegal"


@dataclass(frozen=True)
class Transition:
    current: TransactionStatus
    outcome: PaymentOutcome
    new_status: TransactionStatus
    kind: TransitionKind

    @property
    def is_illegal(self) -> bool:
        return self.kind == TransitionKind.ILLEGAL

    @property
    def is_replay(self) -> bool:
        return self.kind == TransitionKind.REPLAY


_S = TransactionStatus
_O = PaymentOutcome
_K = TransitionKind

TRANSITIONS = {
    (_S.PENDING, _O.COMPLETED): (_S.COMPLETED, _K.APPLY),
    (_S.PENDING, _O.FAILED): (_S.FAILED, _K.APPLY),
    (_S.PENDING, _O.AUTHORIZED): (_S.PENDING, _K.APPLY),
    (_S.COMPLETED, _O.COMPLETED): (_S.COMPLETED, _K.REPLAY),
    (_S.FAILED, _O.FAILED): (_S.FAILED, _K.REPLAY),
}


def resolve_transition(current: TransactionStatus, outcome: PaymentOutcome) -> Transition:
    """
    Look up the transition for `outcome` arriving on a transaction in
    `current`. Pairs missing from TRANSITIONS (completing a failed
    transaction, failing a completed one, anything on a cancelled one)
    resolve to ILLEGAL and keep the current status.
    """
    current = TransactionStatus(current)
    outcome = PaymentOutcome(outcome)
    new_status, kind = TRANSITIONS.get((current, outcome), (current, TransitionKind.ILLEGAL))
    return Transition(current=current, outcome=outcome, new_status=new_status, kind=kind)
