"""Resolution suggestions for whole-schedule conflicts."""

import logging
from dataclasses import replace
from typing import Iterable

from .config.settings import EngineSettings
from .conflicts import (
    ConflictType,
    EnhancedConflict,
    ResolutionAction,
    ResolutionActionType,
    ResolutionSuggestion,
)
from .constants import ROOM_CAPACITY_BONUS, ROOM_TYPE_MATCH_BONUS, SUGGESTION_WEIGHTS
from .constraints.soft import is_lab_session
from .models import Course, Room, RoomType, TimeSlot
from .utils import (
    add_minutes,
    are_exempt,
    duration_minutes,
    get_day_name,
    index_by_id,
    parse_time,
    same_term,
    slots_overlap,
)

logger = logging.getLogger(__name__)

# Conflict types fixed by moving or swapping one of the slots
MOVE_CONFLICT_TYPES = {
    ConflictType.ROOM,
    ConflictType.FACULTY,
    ConflictType.COURSE,
    ConflictType.STUDENT,
}

# Conflict types fixed by changing the room
ROOM_CONFLICT_TYPES = {ConflictType.ROOM_TYPE, ConflictType.CAPACITY}

RESOURCE_CATEGORIES = (ConflictType.ROOM, ConflictType.FACULTY)
MOVE_CATEGORIES = (ConflictType.ROOM, ConflictType.FACULTY, ConflictType.COURSE)

_SHARED_FIELD = {
    ConflictType.ROOM: "room_id",
    ConflictType.FACULTY: "faculty_id",
    ConflictType.COURSE: "course_id",
}


def find_clashes(
    slot: TimeSlot,
    roster: Iterable[TimeSlot],
    categories: Iterable[ConflictType] = RESOURCE_CATEGORIES,
) -> list[TimeSlot]:
    """
    Find roster slots that clash with ``slot``.

    A clash is an active slot of the same term that overlaps ``slot`` and
    shares its room, faculty or course (per ``categories``), unless the pair
    is exempt for that category.

    Args:
        slot: Slot to check
        roster: Slots to check against; ``slot`` itself is ignored
        categories: Which shared resources count

    Returns:
        Clashing slots in roster order
    """
    categories = tuple(categories)
    clashes = []
    for other in roster:
        if other.id == slot.id or not other.is_active:
            continue
        if not same_term(slot, other) or not slots_overlap(slot, other):
            continue
        for category in categories:
            attr = _SHARED_FIELD[category]
            if getattr(slot, attr) == getattr(other, attr) and not are_exempt(
                slot, other, category
            ):
                clashes.append(other)
                break
    return clashes


class SuggestionGenerator:
    """
    Generate ranked resolution suggestions for a conflict.

    Suggestion kinds by conflict type:
    - room/faculty/course/student: move in time, move to another day, swap
    - room_type/capacity: change room
    - schedule: relax the conflict's constraints
    """

    def __init__(self, settings: EngineSettings | None = None):
        self.settings = settings or EngineSettings()

    def generate(
        self,
        conflict: EnhancedConflict,
        all_slots: list[TimeSlot],
        rooms: list[Room],
        courses: list[Course] | None = None,
    ) -> list[ResolutionSuggestion]:
        """
        Suggestions for one conflict, best first.

        Args:
            conflict: Conflict to resolve
            all_slots: Active roster the conflict was found in
            rooms: Room reference table
            courses: Course reference table, used to recognise lab courses

        Returns:
            At most ``settings.max_suggestions`` suggestions ranked by
            success probability over impact
        """
        slots_by_id = index_by_id(all_slots)
        courses_by_id = index_by_id(courses or [])
        suggestions: list[ResolutionSuggestion] = []

        for slot_id in conflict.affected_slots:
            slot = slots_by_id.get(slot_id)
            if slot is None:
                continue

            if conflict.type in MOVE_CONFLICT_TYPES:
                suggestions.extend(self.time_moves(slot, all_slots))
                suggestions.extend(self.swaps(slot, all_slots, conflict))
            elif conflict.type in ROOM_CONFLICT_TYPES:
                course = courses_by_id.get(slot.course_id)
                suggestions.extend(self.room_changes(slot, rooms, all_slots, course))
            elif conflict.type == ConflictType.SCHEDULE:
                suggestions.extend(self.relaxations(conflict))

        seen: set[str] = set()
        unique = []
        for suggestion in suggestions:
            if suggestion.id not in seen:
                seen.add(suggestion.id)
                unique.append(suggestion)

        ranked = sorted(unique, key=lambda s: s.rank_score, reverse=True)
        logger.debug(
            f"{conflict.id}: {len(ranked)} candidate suggestions, "
            f"keeping {min(len(ranked), self.settings.max_suggestions)}"
        )
        return ranked[: self.settings.max_suggestions]

    def time_moves(
        self, slot: TimeSlot, all_slots: list[TimeSlot]
    ) -> list[ResolutionSuggestion]:
        """Moves to other canonical start times, then to other teaching days."""
        suggestions: list[ResolutionSuggestion] = []
        length = duration_minutes(slot.start_time, slot.end_time)
        day_name = get_day_name(slot.day_of_week)
        day_end = parse_time(self.settings.day_end)

        time_weights = SUGGESTION_WEIGHTS["move_time"]
        for new_start in self.settings.canonical_start_times:
            if parse_time(new_start) == parse_time(slot.start_time):
                continue
            if parse_time(new_start) + length > day_end:
                continue
            moved = replace(slot, start_time=new_start, end_time=add_minutes(new_start, length))
            if find_clashes(moved, all_slots, MOVE_CATEGORIES):
                continue
            hours = abs(parse_time(new_start) - parse_time(slot.start_time)) / 60
            suggestions.append(
                ResolutionSuggestion(
                    id=f"move-{slot.id}-time-{new_start}",
                    description=f"Move to {new_start} on {day_name}",
                    actions=[
                        ResolutionAction(
                            ResolutionActionType.MOVE,
                            target_slot_id=slot.id,
                            new_start_time=moved.start_time,
                            new_end_time=moved.end_time,
                        )
                    ],
                    impact_score=hours * time_weights["impact_per_hour"],
                    success_probability=time_weights["probability"],
                )
            )

        day_weights = SUGGESTION_WEIGHTS["move_day"]
        for day in self.settings.teaching_days:
            if day == slot.day_of_week:
                continue
            moved = replace(slot, day_of_week=day)
            if find_clashes(moved, all_slots, MOVE_CATEGORIES):
                continue
            suggestions.append(
                ResolutionSuggestion(
                    id=f"move-{slot.id}-day-{day}",
                    description=f"Move to {get_day_name(day)} at {slot.start_time}",
                    actions=[
                        ResolutionAction(
                            ResolutionActionType.MOVE,
                            target_slot_id=slot.id,
                            new_day=day,
                            new_start_time=slot.start_time,
                            new_end_time=slot.end_time,
                        )
                    ],
                    impact_score=day_weights["impact"],
                    success_probability=day_weights["probability"],
                )
            )

        return suggestions

    def swaps(
        self, slot: TimeSlot, all_slots: list[TimeSlot], conflict: EnhancedConflict
    ) -> list[ResolutionSuggestion]:
        """Swap times with an unrelated slot when the swap creates no clash."""
        weights = SUGGESTION_WEIGHTS["swap"]
        suggestions: list[ResolutionSuggestion] = []

        for other in all_slots:
            if len(suggestions) >= self.settings.max_swap_suggestions:
                break
            if (
                other.id == slot.id
                or not other.is_active
                or not same_term(slot, other)
                or other.faculty_id == slot.faculty_id
                or other.room_id == slot.room_id
                or other.id in conflict.affected_slots
            ):
                continue
            if not self._swap_is_clean(slot, other, all_slots):
                continue
            suggestions.append(
                ResolutionSuggestion(
                    id=f"swap-{slot.id}-with-{other.id}",
                    description=f"Swap time slots with {other.label}",
                    actions=[
                        ResolutionAction(
                            ResolutionActionType.SWAP,
                            target_slot_id=slot.id,
                            swap_with_slot_id=other.id,
                        )
                    ],
                    impact_score=weights["impact"],
                    success_probability=weights["probability"],
                )
            )

        return suggestions

    @staticmethod
    def _swap_is_clean(first: TimeSlot, second: TimeSlot, all_slots: list[TimeSlot]) -> bool:
        """Simulate the swap on a copy of the roster and look for new clashes."""
        first_after = replace(
            first,
            day_of_week=second.day_of_week,
            start_time=second.start_time,
            end_time=second.end_time,
        )
        second_after = replace(
            second,
            day_of_week=first.day_of_week,
            start_time=first.start_time,
            end_time=first.end_time,
        )
        simulated = [
            first_after if s.id == first.id else second_after if s.id == second.id else s
            for s in all_slots
        ]
        return not (find_clashes(first_after, simulated) or find_clashes(second_after, simulated))

    def room_changes(
        self,
        slot: TimeSlot,
        rooms: list[Room],
        all_slots: list[TimeSlot],
        course: Course | None = None,
    ) -> list[ResolutionSuggestion]:
        """Free rooms at the slot's time, best type and capacity match first."""
        weights = SUGGESTION_WEIGHTS["change_room"]
        occupied = {
            other.room_id
            for other in all_slots
            if other.id != slot.id
            and other.is_active
            and same_term(slot, other)
            and slots_overlap(slot, other)
        }
        candidates = [
            room
            for room in rooms
            if room.available and room.id != slot.room_id and room.id not in occupied
        ]

        wanted = RoomType.LAB if is_lab_session(slot, course) else RoomType.LECTURE

        def score(room: Room) -> int:
            value = ROOM_TYPE_MATCH_BONUS if room.type == wanted else 0
            if room.capacity >= self.settings.min_lecture_capacity:
                value += ROOM_CAPACITY_BONUS
            return value

        ranked = sorted(candidates, key=score, reverse=True)
        return [
            ResolutionSuggestion(
                id=f"change-room-{slot.id}-to-{room.id}",
                description=f"Move to {room.name} ({room.type.value}, capacity: {room.capacity})",
                actions=[
                    ResolutionAction(
                        ResolutionActionType.MOVE,
                        target_slot_id=slot.id,
                        new_room=room.id,
                    )
                ],
                impact_score=weights["impact"],
                success_probability=weights["probability"],
            )
            for room in ranked[: self.settings.max_room_suggestions]
        ]

    @staticmethod
    def relaxations(conflict: EnhancedConflict) -> list[ResolutionSuggestion]:
        """Accept the conflict by relaxing its constraints."""
        if not conflict.constraints:
            return []
        weights = SUGGESTION_WEIGHTS["relax"]
        return [
            ResolutionSuggestion(
                id=f"relax-constraint-{conflict.id}",
                description="Accept back-to-back classes in different buildings",
                actions=[
                    ResolutionAction(
                        ResolutionActionType.RELAX,
                        relax_constraints=[c.id for c in conflict.constraints],
                    )
                ],
                impact_score=weights["impact"],
                success_probability=weights["probability"],
            )
        ]
