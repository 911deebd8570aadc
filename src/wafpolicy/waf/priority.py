"""Rule priority allocation.

The counter is an immutable value threaded through rule synthesis: every
allocation returns the priority together with the next counter state.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

from wafpolicy.errors import PriorityCollisionError


@dataclass(frozen=True)
class PriorityCounter:
    """Watermark of the next free priority plus the priorities already taken.

    Attributes:
        next: Priority handed to the next rule without an explicit one.
        used: Priorities assigned so far, mapped to the owning rule name.
    """

    next: int = 0
    used: Mapping[int, str] = field(default_factory=lambda: MappingProxyType({}))

    def allocate(
        self,
        explicit: Optional[int] = None,
        rule_name: str = "",
    ) -> tuple[int, "PriorityCounter"]:
        """Assign a priority to one rule.

        An explicit priority is returned as-is and moves the watermark to at
        least ``explicit + 1``. Otherwise the watermark itself is consumed.

        Args:
            explicit: Priority requested by the declaration, if any.
            rule_name: Name of the rule receiving the priority.

        Returns:
            Tuple of (assigned priority, updated counter).

        Raises:
            PriorityCollisionError: The explicit priority is already assigned.
        """
        if explicit is None:
            return self.next, self._take(self.next, self.next + 1, rule_name)

        if explicit < 0:
            raise ValueError(f"priority must be non-negative, got {explicit}")
        if explicit in self.used:
            raise PriorityCollisionError(explicit, rule_name, self.used[explicit])

        return explicit, self._take(explicit, max(self.next, explicit + 1), rule_name)

    def claim_range(self, names: list[str]) -> tuple[int, "PriorityCounter"]:
        """Reserve consecutive priorities starting at the watermark.

        Args:
            names: Rule names, one per priority to reserve.

        Returns:
            Tuple of (first reserved priority, updated counter).
        """
        start = self.next
        counter = self
        for offset, name in enumerate(names):
            counter = counter._take(start + offset, start + offset + 1, name)
        return start, counter

    def _take(self, priority: int, next_priority: int, rule_name: str) -> "PriorityCounter":
        used = dict(self.used)
        used[priority] = rule_name
        return PriorityCounter(next=next_priority, used=MappingProxyType(used))
