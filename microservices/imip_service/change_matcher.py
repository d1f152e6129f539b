"""
Change Set Matcher

对比新旧日历快照，剔除未修改的事件实例
"""

from typing import Iterable, List, Optional, Sequence, Tuple

from .models import CalendarComponent, Occurrence


def _match_key(occurrence: Occurrence) -> Tuple:
    # textual comparison on purpose: equivalent but differently written rules do not match
    return (
        occurrence.last_modified,
        occurrence.sequence,
        occurrence.recurrence_rule,
        occurrence.recurrence_id,
    )


class ChangeSetMatcher:
    """Partitions two occurrence collections into unchanged pairs and the rest"""

    @staticmethod
    def strip_non_events(components: Iterable[CalendarComponent]) -> List[Occurrence]:
        """Drop VTIMEZONE and other non-event components"""
        return [c for c in components if isinstance(c, Occurrence)]

    def partition(
        self,
        old_occurrences: Iterable[CalendarComponent],
        new_occurrences: Iterable[CalendarComponent],
    ) -> Tuple[List[Occurrence], List[Occurrence]]:
        """
        Remove every (old, new) pair that is structurally identical.

        Returns:
            Tuple[remaining_old, remaining_new]
        """
        remaining_old = self.strip_non_events(old_occurrences)
        new_events = self.strip_non_events(new_occurrences)

        changed_new = []
        for new in new_events:
            key = _match_key(new)
            for index, old in enumerate(remaining_old):
                if _match_key(old) == key:
                    del remaining_old[index]
                    break
            else:
                changed_new.append(new)

        return remaining_old, changed_new

    def pick_changed_pair(
        self,
        old_occurrences: Sequence[CalendarComponent],
        new_occurrences: Sequence[CalendarComponent],
    ) -> Optional[Tuple[Occurrence, Optional[Occurrence]]]:
        """
        The changed occurrence and its previous version.

        Returns:
            (new, old or None), or None when nothing changed
        """
        remaining_old, remaining_new = self.partition(old_occurrences, new_occurrences)
        if not remaining_new:
            return None
        return remaining_new[-1], (remaining_old[-1] if remaining_old else None)


__all__ = ["ChangeSetMatcher"]
