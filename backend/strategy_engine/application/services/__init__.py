from .conversion_workflow import ConversionResult, ConversionWorkflow
from .hydration_service import HydrationService
from .mutation_dispatcher import MutationDispatcher, PreparedUpdate
from .remote_sync import RemoteSyncRunner
from .strategy_views import StrategyViews
from .sync_engine import StrategyEngine
from .sync_events import SyncEventBroker

__all__ = [
    "ConversionResult",
    "ConversionWorkflow",
    "HydrationService",
    "MutationDispatcher",
    "PreparedUpdate",
    "RemoteSyncRunner",
    "StrategyViews",
    "StrategyEngine",
    "SyncEventBroker",
]
