"""
Semantic Classifier

Maps the exited/online instance sets of one application to a single
application-level outcome.
"""

from typing import AbstractSet, List, Literal, Optional

from pydantic import BaseModel, Field

LifecycleKind = Literal["restarted", "started", "stopped"]

# Reported immediately, bypassing the instance tracker
SENTINEL_EVENTS = ("stopped", "errored", "disconnected")


class LifecycleClassification(BaseModel):
    """Outcome of classifying one debounce window"""
    kind: LifecycleKind
    instance_ids: List[int] = Field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.instance_ids)


def classify(
    exited: AbstractSet[int],
    online: AbstractSet[int],
) -> Optional[LifecycleClassification]:
    """
    Classify accumulated instance sets.

    - equal non-empty sizes -> restarted (affected = online)
    - only exits -> stopped (affected = exited)
    - only onlines -> started (affected = online)
    - anything else -> None

    Unequal non-zero sizes (e.g. 2 exited, 1 online) are a partial
    restart and intentionally produce no outcome.
    """
    if exited and online and len(exited) == len(online):
        return LifecycleClassification(kind="restarted", instance_ids=sorted(online))
    if exited and not online:
        return LifecycleClassification(kind="stopped", instance_ids=sorted(exited))
    if online and not exited:
        return LifecycleClassification(kind="started", instance_ids=sorted(online))
    return None


def pluralize_instances(count: int) -> str:
    return "instance" if count == 1 else "instances"


def lifecycle_message(app_name: str, classification: LifecycleClassification) -> str:
    """e.g. 'api has been restarted (2 instances)'"""
    count = classification.count
    return f"{app_name} has been {classification.kind} ({count} {pluralize_instances(count)})"


def sentinel_message(app_name: str, event_type: str) -> str:
    return f"{app_name} is now {event_type}"


def noisy_message(app_name: str, event_type: str) -> str:
    return f"{app_name} triggered {event_type}"
