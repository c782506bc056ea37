from convo_engine.delivery.chunker import ResponseChunker
from convo_engine.delivery.pipeline import DeliveryPipeline
from convo_engine.delivery.timing import DeliveryTimingModel

__all__ = ["ResponseChunker", "DeliveryPipeline", "DeliveryTimingModel"]
