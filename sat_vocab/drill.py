"""Card drill over the marked words of a reading session.

Keyboard, button and swipe input are translated into the same four events
(flip, advance, retreat, end session) and applied by ``VocabularyDrill.dispatch``.
Definitions for the card under the cursor come from the shared session cache
when present; otherwise they are resolved, preferring a concise variant when
the full definition would overflow the card.
"""
from __future__ import annotations

import asyncio
import logging
import re
import uuid
from collections.abc import Callable, Iterable
from enum import Enum
from typing import TYPE_CHECKING

from sat_vocab.models import DisplayBudget, DrillCursor, DrillOutcome, WordDefinition
from sat_vocab.resolver import resolve_with_timeout

if TYPE_CHECKING:
    from sat_vocab.reading import DefinitionCache
    from sat_vocab.resolver import DefinitionResolver

log = logging.getLogger("sat_vocab.drill")

DEFAULT_SWIPE_THRESHOLD = 80
EMPTY_MESSAGE = "You haven't marked any words during your reading session yet."


class DrillEvent(str, Enum):
    FLIP = "flip"
    ADVANCE = "advance"
    RETREAT = "retreat"
    END_SESSION = "end_session"


class DrillState(str, Enum):
    FRONT = "front"
    BACK = "back"
    COMPLETE = "complete"
    EMPTY = "empty"


class SwipeDirection(str, Enum):
    LEFT = "left"
    RIGHT = "right"


SWIPE_OUTCOMES = {
    SwipeDirection.RIGHT: DrillOutcome.KNOWN,
    SwipeDirection.LEFT: DrillOutcome.UNKNOWN,
}

KEY_BINDINGS = {
    "ArrowLeft": DrillEvent.RETREAT,
    "ArrowRight": DrillEvent.ADVANCE,
    " ": DrillEvent.FLIP,
    "Space": DrillEvent.FLIP,
}

# Keys whose browser default (page scroll) the client must suppress.
SUPPRESS_DEFAULT_KEYS = {" ", "Space"}

BUTTON_BINDINGS = {
    "previous": DrillEvent.RETREAT,
    "next": DrillEvent.ADVANCE,
    "card": DrillEvent.FLIP,
    "end": DrillEvent.END_SESSION,
}


def event_for_key(key: str) -> tuple[DrillEvent | None, bool]:
    """Map a ``KeyboardEvent.key`` value to (event, prevent_default)."""
    return KEY_BINDINGS.get(key), key in SUPPRESS_DEFAULT_KEYS


def event_for_button(button: str) -> DrillEvent | None:
    return BUTTON_BINDINGS.get(button)


class SwipeTracker:
    """Tracks a horizontal drag; only a release past the threshold commits."""

    def __init__(self, threshold: float = DEFAULT_SWIPE_THRESHOLD):
        self.threshold = threshold
        self.offset = 0.0
        self.dragging = False

    def start(self) -> None:
        self.dragging = True
        self.offset = 0.0

    def move(self, offset: float) -> None:
        if self.dragging:
            self.offset = offset

    def release(self) -> SwipeDirection | None:
        offset = self.offset
        self.dragging = False
        self.offset = 0.0
        if offset > self.threshold:
            return SwipeDirection.RIGHT
        if offset < -self.threshold:
            return SwipeDirection.LEFT
        return None


def fits_display(text: str, budget: DisplayBudget) -> bool:
    """True when *text*, whitespace-collapsed, fits within the card's line budget."""
    cleaned = re.sub(r"\s+", " ", text).strip()
    return budget.lines_for(len(cleaned)) <= budget.max_lines


def definition_fits(definition: WordDefinition, budget: DisplayBudget) -> bool:
    return all(fits_display(m.primary, budget) for m in definition.meanings)


async def resolve_for_display(
    resolver: DefinitionResolver,
    word: str,
    budget: DisplayBudget,
    timeout: float | None = None,
) -> WordDefinition | None:
    """Full definition if it fits the card, else the concise one, else the full one anyway."""
    full = await resolve_with_timeout(resolver, word, concise=False, timeout=timeout)
    if full is None:
        return await resolve_with_timeout(resolver, word, concise=True, timeout=timeout)
    if definition_fits(full, budget):
        return full
    log.info("Definition of %r overflows the card, requesting concise variant", word)
    concise = await resolve_with_timeout(resolver, word, concise=True, timeout=timeout)
    return concise if concise is not None else full


class VocabularyDrill:
    def __init__(
        self,
        words: Iterable[str],
        cache: DefinitionCache,
        resolver: DefinitionResolver,
        budget: DisplayBudget | None = None,
        swipe_threshold: float = DEFAULT_SWIPE_THRESHOLD,
        exit_animation_seconds: float = 0.3,
        lookup_timeout_seconds: float | None = 10.0,
        on_complete: Callable[[VocabularyDrill], None] | None = None,
        reading_session_id: str | None = None,
    ):
        self.id = uuid.uuid4().hex
        self.reading_session_id = reading_session_id
        self.words: tuple[str, ...] = tuple(words)
        self.cache = cache
        self.resolver = resolver
        self.budget = budget or DisplayBudget()
        self.exit_animation_seconds = exit_animation_seconds
        self.lookup_timeout_seconds = lookup_timeout_seconds
        self.on_complete = on_complete
        self.swipe = SwipeTracker(swipe_threshold)
        self._reset()

    def _reset(self) -> None:
        self.cursor = DrillCursor()
        self.complete = False
        self.outcomes: dict[str, DrillOutcome] = {}
        self.exiting: SwipeDirection | None = None
        self.current_definition: WordDefinition | None = None
        self.loading = False
        self._inflight: dict[str, asyncio.Task] = {}
        if self.words:
            self._enter_index()

    def rebind(self, words: Iterable[str]) -> bool:
        """Point the drill at *words*; the cursor resets only if the sequence changed."""
        words = tuple(words)
        if words == self.words:
            return False
        self.words = words
        self._reset()
        return True

    # ── State ─────────────────────────────────────────────────────────────

    @property
    def state(self) -> DrillState:
        if not self.words:
            return DrillState.EMPTY
        if self.complete:
            return DrillState.COMPLETE
        return DrillState.BACK if self.cursor.revealed else DrillState.FRONT

    @property
    def active(self) -> bool:
        return self.state in (DrillState.FRONT, DrillState.BACK)

    @property
    def current_word(self) -> str | None:
        return self.words[self.cursor.index] if self.active else None

    def dispatch(self, event: DrillEvent) -> DrillState:
        if not self.active:
            return self.state
        # Navigation waits for the exiting card to finish its swipe.
        if self.exiting is not None and event in (DrillEvent.ADVANCE, DrillEvent.RETREAT):
            return self.state

        if event is DrillEvent.FLIP:
            self.cursor.revealed = not self.cursor.revealed
        elif event is DrillEvent.ADVANCE:
            if self.cursor.index >= len(self.words) - 1:
                self._finish()
            else:
                self.cursor = DrillCursor(self.cursor.index + 1)
                self._enter_index()
        elif event is DrillEvent.RETREAT:
            if self.cursor.index > 0:
                self.cursor = DrillCursor(self.cursor.index - 1)
                self._enter_index()
        elif event is DrillEvent.END_SESSION:
            self._finish()

        log.debug("Drill %s: %s -> %s @ %d", self.id, event.value, self.state.value, self.cursor.index)
        return self.state

    def _finish(self) -> None:
        self.complete = True
        self.exiting = None
        self.loading = False
        if self.on_complete is not None:
            self.on_complete(self)

    def _enter_index(self) -> None:
        word = self.words[self.cursor.index]
        if word in self.cache:
            self.current_definition = self.cache.get(word)
            self.loading = False
        else:
            self.current_definition = None
            self.loading = True

    # ── Definitions ───────────────────────────────────────────────────────

    async def load_current(self) -> WordDefinition | None:
        """Resolve the definition for the card under the cursor if it is not cached.

        A result that arrives after the cursor moved is still cached but not shown.
        """
        if not self.active:
            return None
        index, word = self.cursor.index, self.words[self.cursor.index]
        if word in self.cache:
            self._enter_index()
            return self.current_definition

        task = self._inflight.get(word)
        if task is None:
            task = asyncio.create_task(self._fetch_into_cache(word))
            self._inflight[word] = task
        result = await task

        if self.active and self.cursor.index == index and self.current_word == word:
            self.current_definition = result
            self.loading = False
        return result

    async def _fetch_into_cache(self, word: str) -> WordDefinition | None:
        try:
            result = await resolve_for_display(
                self.resolver, word, self.budget, timeout=self.lookup_timeout_seconds
            )
            self.cache.put(word, result)
            return result
        finally:
            self._inflight.pop(word, None)

    async def handle(self, event: DrillEvent) -> DrillState:
        state = self.dispatch(event)
        await self.load_current()
        return state

    # ── Input adapters ────────────────────────────────────────────────────

    async def press_key(self, key: str) -> tuple[DrillState, bool]:
        event, prevent_default = event_for_key(key)
        if event is None:
            return self.state, prevent_default
        return await self.handle(event), prevent_default

    async def press_button(self, button: str) -> DrillState:
        event = event_for_button(button)
        if event is None:
            raise ValueError(f"Unknown drill button: {button}")
        if event is DrillEvent.FLIP:
            return self.tap()
        return await self.handle(event)

    def tap(self) -> DrillState:
        """Card tap flips, except at the end of a drag."""
        if self.swipe.dragging:
            return self.state
        return self.dispatch(DrillEvent.FLIP)

    async def release_drag(self) -> DrillState:
        direction = self.swipe.release()
        if direction is None:
            return self.state
        return await self.commit_swipe(direction)

    async def commit_swipe(self, direction: SwipeDirection) -> DrillState:
        """Record the swipe outcome, play the exit animation, then advance.

        A swipe arriving while another card is still exiting is ignored, and
        the advance is dropped if the drill moved on during the animation.
        """
        if not self.active or self.exiting is not None:
            return self.state
        index = self.cursor.index
        self.outcomes[self.words[index]] = SWIPE_OUTCOMES[direction]
        self.exiting = direction
        if self.exit_animation_seconds > 0:
            await asyncio.sleep(self.exit_animation_seconds)
        if self.exiting is None or not self.active or self.cursor.index != index:
            return self.state
        self.exiting = None
        return await self.handle(DrillEvent.ADVANCE)

    # ── View ──────────────────────────────────────────────────────────────

    def view(self) -> dict:
        state = self.state
        base = {"drill_id": self.id, "state": state.value}
        if state is DrillState.EMPTY:
            return {**base, "message": EMPTY_MESSAGE, "actions": ["back_to_reading"]}
        if state is DrillState.COMPLETE:
            return {
                **base,
                "total": len(self.words),
                "outcomes": {w: o.value for w, o in self.outcomes.items()},
            }
        index = self.cursor.index
        return {
            **base,
            "word": self.words[index],
            "index": index,
            "total": len(self.words),
            "revealed": self.cursor.revealed,
            "loading": self.loading,
            "definition": self.current_definition.to_dict() if self.current_definition else None,
            "exiting": self.exiting.value if self.exiting else None,
            "progress": (index + 1) / len(self.words),
            "is_last": index == len(self.words) - 1,
            "can_retreat": index > 0,
        }
