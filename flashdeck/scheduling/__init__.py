"""
Scheduling: memory model, interval scheduling and queue building.
"""

from flashdeck.scheduling.memory_model import (
    MemoryEstimate,
    MemoryModel,
    MemoryModelConfig,
    retrievability,
)
from flashdeck.scheduling.queue_builder import QueueBuilder, QueueConfig, StudyQueue
from flashdeck.scheduling.scheduler import ReviewScheduler, ScheduledReview, SchedulerConfig

__all__ = [
    # Memory model
    "MemoryModel",
    "MemoryModelConfig",
    "MemoryEstimate",
    "retrievability",
    # Scheduler
    "ReviewScheduler",
    "SchedulerConfig",
    "ScheduledReview",
    # Queue
    "QueueBuilder",
    "QueueConfig",
    "StudyQueue",
]
