"""
Kanban board and calendar views derived from the live request set.

Nothing here writes to the store directly. Card moves become transitions
sent to the LifecycleEngine, and any error it raises reaches the caller
unchanged.
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Union

from .errors import InvalidRequest, NotFound
from .request import MaintenanceRequest
from .status import Priority, Stage, STAGE_TO_STATUS, Status, stage_for

logger = logging.getLogger(__name__)

DEFAULT_DURATION_MINUTES = 60

PRIORITY_COLORS: Dict[Priority, str] = {
    Priority.EMERGENCY: "red",
    Priority.CRITICAL: "red",
    Priority.HIGH: "orange",
    Priority.MEDIUM: "blue",
    Priority.LOW: "green",
}
CLOSED_COLOR = "gray"

Board = Dict[Stage, List[MaintenanceRequest]]


@dataclass(frozen=True)
class TransitionRequest:
    """A status change the board asks the lifecycle engine to make."""

    request_id: str
    target_status: Status


@dataclass
class CalendarEvent:
    """A request placed on the maintenance calendar."""

    request_id: str
    title: str
    start: datetime
    end: datetime
    color_class: str


def parse_stage(value: Union[Stage, str]) -> Stage:
    if isinstance(value, Stage):
        return value
    try:
        return Stage(value)
    except ValueError:
        raise InvalidRequest(f"Unknown board stage '{value}'") from None


def classify(
    requests: Iterable[MaintenanceRequest],
    sort_key: Optional[Callable[[MaintenanceRequest], object]] = None,
) -> Board:
    """
    Group requests into the four board stages.

    Every stage is present in the result, in board order. Within a stage
    the input order is kept unless sort_key is given (the sort is stable).
    """
    board: Board = OrderedDict((stage, []) for stage in Stage)
    for request in requests:
        board[stage_for(request.status)].append(request)
    if sort_key is not None:
        for stage in board:
            board[stage].sort(key=sort_key)
    return board


def stage_counts(board: Board) -> Dict[str, int]:
    return {stage.value: len(cards) for stage, cards in board.items()}


def plan_move(
    request_id: str,
    from_stage: Union[Stage, str],
    to_stage: Union[Stage, str],
) -> Optional[TransitionRequest]:
    """Transition for a column move, or None when the column is unchanged."""
    from_stage = parse_stage(from_stage)
    to_stage = parse_stage(to_stage)
    if from_stage == to_stage:
        return None
    return TransitionRequest(request_id, STAGE_TO_STATUS[to_stage])


def move_card(
    engine,
    request_id: str,
    from_stage: Union[Stage, str],
    to_stage: Union[Stage, str],
    actor: Optional[str] = None,
    now: Optional[datetime] = None,
    expected_version: Optional[int] = None,
) -> MaintenanceRequest:
    """
    Apply a drag-and-drop move through the lifecycle engine.

    A move within the same column never reaches the engine, so a specific
    status such as Waiting for Parts is not flattened to In Progress.
    """
    planned = plan_move(request_id, from_stage, to_stage)
    if planned is None:
        logger.debug("Move of %s within %s ignored", request_id, from_stage)
        return engine.store.get_request(request_id)
    return engine.transition(
        planned.request_id,
        planned.target_status,
        actor=actor,
        now=now,
        expected_version=expected_version,
    )


def event_color(request: MaintenanceRequest) -> str:
    if request.stage.is_terminal:
        return CLOSED_COLOR
    return PRIORITY_COLORS[request.priority]


def to_calendar_event(
    request: MaintenanceRequest,
    default_duration: int = DEFAULT_DURATION_MINUTES,
) -> CalendarEvent:
    start = request.scheduled_date
    minutes = request.duration_minutes or default_duration
    return CalendarEvent(
        request_id=request.id,
        title=request.title,
        start=start,
        end=start + timedelta(minutes=minutes),
        color_class=event_color(request),
    )


def calendar_events(
    requests: Iterable[MaintenanceRequest],
    start: datetime,
    end: datetime,
    default_duration: int = DEFAULT_DURATION_MINUTES,
) -> List[CalendarEvent]:
    """Events starting in [start, end), ordered by start time."""
    events = [
        to_calendar_event(r, default_duration)
        for r in requests
        if r.scheduled_date is not None and start <= r.scheduled_date < end
    ]
    return sorted(events, key=lambda e: e.start)


# =============================================================================
# Optimistic board session
# =============================================================================


@dataclass
class PendingMove:
    """A card moved locally and not yet confirmed by the engine."""

    request_id: str
    from_stage: Stage
    to_stage: Stage
    previous: MaintenanceRequest
    # ids of the cards that followed it in from_stage when it was moved
    followers: Tuple[str, ...] = ()


class BoardSession:
    """
    A client-side board that applies moves before the engine confirms them.

    ``apply`` moves the card immediately. ``confirm`` sends the transition;
    on success the card is replaced by the stored request, on any error the
    card goes back where it was and the error is re-raised.
    """

    def __init__(self, engine, requests: Optional[Iterable[MaintenanceRequest]] = None):
        self.engine = engine
        if requests is None:
            requests = engine.store.list_requests()
        self.board = classify(requests)

    def refresh(self) -> Board:
        self.board = classify(self.engine.store.list_requests())
        return self.board

    def _locate(self, request_id: str):
        for stage, cards in self.board.items():
            for index, card in enumerate(cards):
                if card.id == request_id:
                    return stage, index
        return None, None

    def apply(self, request_id: str, to_stage: Union[Stage, str]) -> Optional[PendingMove]:
        """Move a card locally. Returns None when it is already in to_stage."""
        to_stage = parse_stage(to_stage)
        from_stage, index = self._locate(request_id)
        if from_stage is None:
            raise NotFound(f"Request '{request_id}' is not on the board")
        if from_stage == to_stage:
            return None
        followers = tuple(c.id for c in self.board[from_stage][index + 1:])
        card = self.board[from_stage].pop(index)
        moved = card.copy()
        moved.status = STAGE_TO_STATUS[to_stage]
        self.board[to_stage].append(moved)
        return PendingMove(request_id, from_stage, to_stage, card, followers)

    def rollback(self, pending: PendingMove) -> None:
        cards = self.board[pending.to_stage]
        self.board[pending.to_stage] = [c for c in cards if c.id != pending.request_id]
        column = self.board[pending.from_stage]
        positions = {c.id: i for i, c in enumerate(column)}
        index = next(
            (positions[card_id] for card_id in pending.followers if card_id in positions),
            len(column),
        )
        column.insert(index, pending.previous)

    def confirm(
        self,
        pending: PendingMove,
        actor: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> MaintenanceRequest:
        try:
            stored = move_card(
                self.engine,
                pending.request_id,
                pending.from_stage,
                pending.to_stage,
                actor=actor,
                now=now,
                expected_version=pending.previous.version,
            )
        except Exception:
            logger.warning("Move of %s rejected, rolling back", pending.request_id)
            self.rollback(pending)
            raise
        cards = self.board[pending.to_stage]
        self.board[pending.to_stage] = [
            stored if c.id == stored.id else c for c in cards
        ]
        return stored
