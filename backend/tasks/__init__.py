"""
Tasks package for the gallery API backend

Contains background tasks that run continuously during application lifetime.
"""
from .background import (
    init_tasks,
    stop_tasks,
    reconcile_orphaned_objects,
    orphan_sweep_task,
)

__all__ = [
    'init_tasks',
    'stop_tasks',
    'reconcile_orphaned_objects',
    'orphan_sweep_task',
]
