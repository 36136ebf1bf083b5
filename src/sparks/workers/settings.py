"""arq worker settings module.

Import path for arq CLI: arq sparks.workers.settings.WorkerSettings
"""

from __future__ import annotations

from sparks.workers.maintenance import WorkerSettings

__all__ = ["WorkerSettings"]
