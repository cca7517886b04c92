"""
Per-question navigation state machine for a test attempt.

The session is an indexed arena of SessionSlot records plus a current-slot
pointer. Every student action is a transition over that arena; nothing here
knows about rendering, timers or storage, so it can be driven directly from
tests.

Status matrix (has_answer, marked_for_review):

    (no,  no)  -> not_answered
    (no,  yes) -> marked_for_review
    (yes, no)  -> answered
    (yes, yes) -> answered_and_marked

``not_visited`` is only ever left, never re-entered.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from app.core.session.errors import InvalidSlotIndexError, UnknownSectionError
from app.models.models import CapturedAnswer, TestQuestionBinding
from libs.domain_types import SlotStatus

logger = logging.getLogger(__name__)


def resolve_status(has_answer: bool, marked_for_review: bool) -> SlotStatus:
    """Status of a visited slot from its answer and review flag."""
    if has_answer:
        return (
            SlotStatus.ANSWERED_AND_MARKED if marked_for_review else SlotStatus.ANSWERED
        )
    return (
        SlotStatus.MARKED_FOR_REVIEW if marked_for_review else SlotStatus.NOT_ANSWERED
    )


def _freeze_answer(value: CapturedAnswer) -> CapturedAnswer:
    # Multi-choice selections arrive as lists from the API; keep them immutable
    if isinstance(value, (list, tuple, set)):
        return frozenset(value)
    return value


@dataclass
class SessionSlot:
    """Live navigation/answer state of one question in an attempt."""

    index: int
    question_id: str
    status: SlotStatus = SlotStatus.NOT_VISITED
    answer: Optional[CapturedAnswer] = None
    marked_for_review: bool = False
    section_id: str = ""
    subsection_id: str = ""

    @property
    def has_answer(self) -> bool:
        return self.answer is not None


@dataclass
class SessionState:
    """Slot arena plus current-slot pointer for one attempt."""

    slots: List[SessionSlot]
    current_index: int = 0
    _counts: Dict[SlotStatus, int] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if not self.slots:
            raise ValueError("A session needs at least one slot")
        self._counts = {status: 0 for status in SlotStatus}
        for slot in self.slots:
            self._counts[slot.status] += 1

    @classmethod
    def from_bindings(cls, bindings: Sequence[TestQuestionBinding]) -> "SessionState":
        """
        Create the initial state for an ordered list of bindings.

        All slots start ``not_visited`` except the first, which is shown
        immediately and therefore starts ``not_answered``.
        """
        slots = [
            SessionSlot(
                index=i,
                question_id=binding.question_id,
                status=SlotStatus.NOT_ANSWERED if i == 0 else SlotStatus.NOT_VISITED,
                section_id=binding.section_id,
                subsection_id=binding.subsection_id,
            )
            for i, binding in enumerate(bindings)
        ]
        return cls(slots=slots)

    @property
    def slot_count(self) -> int:
        return len(self.slots)

    @property
    def current_slot(self) -> SessionSlot:
        return self.slots[self.current_index]

    def slot(self, index: int) -> SessionSlot:
        """Return the slot at ``index``, bounds-checked."""
        if not 0 <= index < len(self.slots):
            raise InvalidSlotIndexError(index, len(self.slots))
        return self.slots[index]

    def _set_status(self, slot: SessionSlot, status: SlotStatus) -> None:
        self._counts[slot.status] -= 1
        self._counts[status] += 1
        slot.status = status

    # Transitions

    def visit(self, index: int) -> None:
        """Mark a slot as seen: not_visited becomes not_answered."""
        slot = self.slot(index)
        if slot.status == SlotStatus.NOT_VISITED:
            self._set_status(slot, SlotStatus.NOT_ANSWERED)

    def capture_answer(self, index: int, value: CapturedAnswer) -> None:
        """Store an answer; status follows the review flag."""
        if value is None:
            self.clear_answer(index)
            return
        slot = self.slot(index)
        slot.answer = _freeze_answer(value)
        self._set_status(slot, resolve_status(True, slot.marked_for_review))

    def clear_answer(self, index: int) -> None:
        """Remove the stored answer; status follows the review flag."""
        slot = self.slot(index)
        slot.answer = None
        self._set_status(slot, resolve_status(False, slot.marked_for_review))

    def toggle_review(self, index: int) -> None:
        """Flip the review flag and recompute status from the matrix."""
        slot = self.slot(index)
        slot.marked_for_review = not slot.marked_for_review
        self._set_status(slot, resolve_status(slot.has_answer, slot.marked_for_review))

    def navigate(self, index: int) -> None:
        """Move the pointer to ``index`` and visit it."""
        self.slot(index)
        self.current_index = index
        self.visit(index)

    # Palette conveniences

    def next(self) -> None:
        """Move to the next slot; no-op on the last one."""
        if self.current_index < len(self.slots) - 1:
            self.navigate(self.current_index + 1)

    def previous(self) -> None:
        """Move to the previous slot; no-op on the first one."""
        if self.current_index > 0:
            self.navigate(self.current_index - 1)

    def save_and_next(self) -> None:
        """Keep the current slot's answer and move on."""
        self.visit(self.current_index)
        self.next()

    def mark_for_review_and_next(self) -> None:
        """Toggle review on the current slot, then move on."""
        self.toggle_review(self.current_index)
        self.next()

    def go_to_section(self, section_id: str) -> None:
        """
        Navigate to the first slot of a section.

        An unknown section is an error rather than a no-op, so a client
        holding a stale section id finds out instead of staying put.

        Raises:
            UnknownSectionError: No slot belongs to ``section_id``
        """
        for slot in self.slots:
            if slot.section_id == section_id:
                self.navigate(slot.index)
                return
        raise UnknownSectionError(section_id)

    def go_to_subsection(self, section_id: str, subsection_id: str) -> None:
        """
        Navigate to the first slot of a subsection.

        Raises:
            UnknownSectionError: No slot belongs to the subsection
        """
        for slot in self.slots:
            if slot.section_id == section_id and slot.subsection_id == subsection_id:
                self.navigate(slot.index)
                return
        raise UnknownSectionError(section_id, subsection_id)

    # Read side

    def status_counts(self) -> Dict[SlotStatus, int]:
        """Number of slots in each status; always sums to ``slot_count``."""
        return dict(self._counts)

    def answers(self) -> Dict[int, CapturedAnswer]:
        """Captured answers keyed by slot index (unanswered slots omitted)."""
        return {
            slot.index: slot.answer for slot in self.slots if slot.answer is not None
        }
