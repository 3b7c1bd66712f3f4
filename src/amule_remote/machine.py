"""Row state machines that turn a flat cell sequence into records.

Every page lays its rows out as a fixed run of columns. The state of a
machine is the last column it filled; ``transitions`` says what a cell of a
given kind does in each state. Fields accumulate in a pending mapping and the
record is only built when the terminal column is read.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Tuple,
    Type,
)

from .tables import is_blank

LOGGER = logging.getLogger(__name__)


class CellKind(Enum):
    EMPTY = "empty"
    IDENTIFIER = "identifier"
    TEXT = "text"


class Action(Enum):
    ASSIGN = "assign"  # move to the next column and store the cell
    ADVANCE = "advance"  # move to the next column without a value
    RESET = "reset"  # drop the pending record
    IDENTIFY = "identify"  # store the identifier carried by the cell
    IGNORE = "ignore"


class DownloadColumn(IntEnum):
    START = 0
    NAME = 1
    SIZE = 2
    COMPLETED = 3
    SPEED = 4
    PROGRESS_BAR = 5
    SOURCES = 6
    STATUS = 7
    PRIORITY = 8


class UploadColumn(IntEnum):
    START = 0
    NAME = 1
    USER = 2
    SENT = 3
    RECEIVED = 4
    UNUSED_1 = 5
    UNUSED_2 = 6
    SPEED = 7


class ServerColumn(IntEnum):
    START = 0
    NAME = 1
    DESCRIPTION = 2
    ADDRESS = 3
    USERS = 4
    FILES = 5


class SearchColumn(IntEnum):
    START = 0
    ID_SEEN = 1
    NAME = 2
    SIZE = 3
    SOURCES = 4


Transitions = Mapping[Tuple[IntEnum, CellKind], Action]


def build_transitions(
    columns: Type[IntEnum],
    blank_advances: Iterable[IntEnum] = (),
    text_resets: Iterable[IntEnum] = (),
    text_ignored: Iterable[IntEnum] = (),
) -> Dict[Tuple[IntEnum, CellKind], Action]:
    """Transition table for a linear run of ``columns``.

    By default text fills the next column, an identifier is stored and an
    empty cell drops the row.
    """
    blank_advances = frozenset(blank_advances)
    text_resets = frozenset(text_resets)
    text_ignored = frozenset(text_ignored)
    table: Dict[Tuple[IntEnum, CellKind], Action] = {}
    for state in columns:
        table[(state, CellKind.IDENTIFIER)] = Action.IDENTIFY
        table[(state, CellKind.EMPTY)] = (
            Action.ADVANCE if state in blank_advances else Action.RESET
        )
        if state in text_resets:
            table[(state, CellKind.TEXT)] = Action.RESET
        elif state in text_ignored:
            table[(state, CellKind.TEXT)] = Action.IGNORE
        else:
            table[(state, CellKind.TEXT)] = Action.ASSIGN
    return table


@dataclass(frozen=True)
class RowLayout:
    """Column layout of one page type.

    ``fields`` maps a column to the record field it fills (``None`` for
    columns whose content is discarded). ``identify_state`` is the state a
    machine enters after an identifier cell; ``None`` keeps the current one.
    """

    name: str
    columns: Type[IntEnum]
    fields: Mapping[IntEnum, Optional[str]]
    transitions: Transitions
    record_type: Callable[..., Any]
    is_identifier: Callable[[str], bool] = lambda cell: False
    extract_identifier: Callable[[str], Dict[str, Optional[str]]] = lambda cell: {}
    identify_state: Optional[IntEnum] = None

    @property
    def start(self) -> IntEnum:
        return self.columns(0)

    @property
    def terminal(self) -> IntEnum:
        return max(self.columns)

    def classify(self, cell: str) -> CellKind:
        if is_blank(cell):
            return CellKind.EMPTY
        if self.is_identifier(cell):
            return CellKind.IDENTIFIER
        return CellKind.TEXT

    def action(self, state: IntEnum, kind: CellKind) -> Action:
        return self.transitions.get((state, kind), Action.RESET)


class RowMachine:
    """Single pass over the cells of one page."""

    def __init__(self, layout: RowLayout) -> None:
        self._layout = layout

    def run(
        self,
        cells: Iterable[str],
        build: Optional[Callable[[Dict[str, Any]], Any]] = None,
    ) -> List[Any]:
        layout = self._layout
        build = build or (lambda pending: layout.record_type(**pending))
        records: List[Any] = []
        state = layout.start
        pending: Dict[str, Any] = {}
        dropped = 0

        for cell in cells:
            kind = layout.classify(cell)
            action = layout.action(state, kind)

            if action is Action.IDENTIFY:
                if layout.identify_state is not None:
                    if state is not layout.start:
                        dropped += 1
                    pending = {}
                    state = layout.identify_state
                pending.update(layout.extract_identifier(cell))
                continue

            if action is Action.RESET:
                if state is not layout.start:
                    dropped += 1
                state = layout.start
                pending = {}
                continue

            if action is Action.IGNORE:
                continue

            state = layout.columns(state + 1)
            name = layout.fields.get(state)
            if name is not None:
                pending[name] = cell.strip() if action is Action.ASSIGN else ""

            if state is layout.terminal:
                records.append(build(pending))
                state = layout.start
                pending = {}

        if state is not layout.start:
            dropped += 1
        if dropped:
            LOGGER.debug("%s: dropped %d incomplete rows", layout.name, dropped)
        return records
