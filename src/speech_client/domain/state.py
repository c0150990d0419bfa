from enum import Enum, auto

from speech_client.domain.errors import InvalidTransitionError


class PollState(Enum):
    SUBMITTED = auto()
    POLLING = auto()
    DONE = auto()
    CANCELLED = auto()
    EXPIRED = auto()
    FAILED = auto()


VALID_TRANSITIONS: dict[PollState, set[PollState]] = {
    PollState.SUBMITTED: {PollState.POLLING},
    PollState.POLLING: {
        PollState.POLLING,
        PollState.DONE,
        PollState.CANCELLED,
        PollState.EXPIRED,
        PollState.FAILED,
    },
    PollState.DONE: set(),
    PollState.CANCELLED: set(),
    PollState.EXPIRED: set(),
    PollState.FAILED: set(),
}


def validate_transition(current: PollState, target: PollState) -> None:
    if target not in VALID_TRANSITIONS.get(current, set()):
        raise InvalidTransitionError(f"Cannot transition from {current.name} to {target.name}")
