"""Background task control.

This module provides:
- Task status, cancellation token and the AbstractTask base class
- A thread-pool executor returning handles with cancel/wait/result
"""

from .task import (
    TaskStatus,
    CancellationToken,
    AbstractTask,
)

from .executor import (
    TaskResult,
    TaskHandle,
    TaskExecutor,
)

__all__ = [
    # Tasks
    'TaskStatus',
    'CancellationToken',
    'AbstractTask',

    # Execution
    'TaskResult',
    'TaskHandle',
    'TaskExecutor',
]
