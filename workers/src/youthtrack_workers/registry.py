"""Component registry: maps component names to their workflows and activities.

The runner looks the CLI argument up here to decide what to register on the
worker. Each entry specifies:

- task_queue: Which Temporal task queue this worker polls
- workflows: Workflow classes to register
- activities: Activity functions to register
"""

from dataclasses import dataclass, field
from typing import Any

from youthtrack_provisioning.activities import enroll_member, reissue_access_code
from youthtrack_shared.task_queues import PROVISIONING_QUEUE


@dataclass
class ComponentConfig:
    """Configuration for a single component's worker."""

    task_queue: str
    workflows: list[Any] = field(default_factory=list)
    activities: list[Any] = field(default_factory=list)


COMPONENTS: dict[str, ComponentConfig] = {
    "provisioning": ComponentConfig(
        task_queue=PROVISIONING_QUEUE,
        activities=[enroll_member, reissue_access_code],
    ),
}
