"""THE SYSTEM: gamified habit and quest tracking core.

Pure reducers transform a JSON state document (quests, habits, rewards,
player progression); SystemCoordinator persists the results and dispatches
the events they produce.
"""

from .coordinator import SystemCoordinator
from .reducers import ReducerResult, Rejection
from .store import SystemStore

__version__ = "1.0.0"

__all__ = ["ReducerResult", "Rejection", "SystemCoordinator", "SystemStore", "__version__"]
