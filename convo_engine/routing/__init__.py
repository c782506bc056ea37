from convo_engine.routing.origin_router import OriginRouter, RouteOutcome, RouteResult
from convo_engine.routing.publisher import EventBridgePublisher, RecordingPublisher

__all__ = [
    "OriginRouter", "RouteOutcome", "RouteResult",
    "EventBridgePublisher", "RecordingPublisher",
]
