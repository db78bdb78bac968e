"""
Campaign lifecycle state machine.

    draft -> active <-> paused -> stopped
    active -> completed

`stopped` and `completed` are terminal.
"""
from enum import Enum
from typing import Union

from ..errors import InvalidTransitionError
from ..models.campaign import CampaignStatus


class CampaignEvent(str, Enum):
    """Events that move a campaign between statuses."""
    ACTIVATE = "activate"
    PAUSE = "pause"
    RESUME = "resume"
    STOP = "stop"
    COMPLETE = "complete"


TRANSITIONS = {
    (CampaignStatus.DRAFT, CampaignEvent.ACTIVATE): CampaignStatus.ACTIVE,
    (CampaignStatus.DRAFT, CampaignEvent.STOP): CampaignStatus.STOPPED,
    (CampaignStatus.ACTIVE, CampaignEvent.PAUSE): CampaignStatus.PAUSED,
    (CampaignStatus.ACTIVE, CampaignEvent.STOP): CampaignStatus.STOPPED,
    (CampaignStatus.ACTIVE, CampaignEvent.COMPLETE): CampaignStatus.COMPLETED,
    (CampaignStatus.PAUSED, CampaignEvent.RESUME): CampaignStatus.ACTIVE,
    (CampaignStatus.PAUSED, CampaignEvent.STOP): CampaignStatus.STOPPED,
}


def apply(event: Union[CampaignEvent, str], state: Union[CampaignStatus, str]) -> CampaignStatus:
    """
    Return the status reached by applying `event` to `state`.

    Raises:
        InvalidTransitionError: If the transition is not allowed
    """
    try:
        event = CampaignEvent(event)
        state = CampaignStatus(state)
    except ValueError:
        raise InvalidTransitionError(
            str(getattr(event, "value", event)), str(getattr(state, "value", state))
        ) from None

    next_state = TRANSITIONS.get((state, event))
    if next_state is None:
        raise InvalidTransitionError(event.value, state.value)
    return next_state


def allowed_events(state: Union[CampaignStatus, str]) -> list:
    """Events that can be applied from `state`."""
    state = CampaignStatus(state)
    return [event.value for (from_state, event) in TRANSITIONS if from_state == state]
