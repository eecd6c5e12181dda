"""Business logic services."""

# Import services directly from their modules:
#   from netpool.services.ippool_service import IPPoolService
#   from netpool.services.assignment_service import AssignmentService

__all__ = [
    "IPPoolService",
    "AssignmentService",
]
