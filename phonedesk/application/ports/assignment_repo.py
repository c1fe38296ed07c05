"""Port interface for assignment persistence."""

from abc import ABC, abstractmethod

from phonedesk.domain.entities.assignment import Assignment, AssignmentState
from phonedesk.domain.value_objects.enums import AssignmentStatus


class AssignmentRepository(ABC):
    @abstractmethod
    async def save(self, assignment: Assignment) -> Assignment:
        """Insert a new assignment.

        Must raise InvalidStateError if the device already has an active one.
        """
        ...

    @abstractmethod
    async def get_by_id(self, assignment_id: str) -> Assignment | None:
        ...

    @abstractmethod
    async def get_active_for_device(self, device_id: str) -> Assignment | None:
        ...

    @abstractmethod
    async def get_all(
        self,
        device_id: str | None = None,
        status: AssignmentStatus | None = None,
    ) -> list[Assignment]:
        ...

    @abstractmethod
    async def update(self, assignment: Assignment, expected: AssignmentState) -> bool:
        """Compare-and-swap write of the whole record.

        Only applies when the stored status, shipping status and return status
        still equal *expected*. Returns False when another writer changed any
        of them first.
        """
        ...
