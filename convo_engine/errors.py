"""Exceptions raised across the routing and delivery layers."""


class ConvoEngineError(Exception):
    """Base class for engine errors."""


class RouterError(ConvoEngineError):
    """An inbound event could not be routed."""


class UnresolvableIdentityError(RouterError):
    """No tenant id or contact key could be derived for an inbound event."""

    def __init__(self, reason: str, message_id: str = "") -> None:
        self.reason = reason
        self.message_id = message_id
        super().__init__(f"Cannot resolve identity for message '{message_id}': {reason}")


class PublishError(ConvoEngineError):
    """An event could not be put on the bus."""

    def __init__(self, detail_type: str, reason: str) -> None:
        self.detail_type = detail_type
        self.reason = reason
        super().__init__(f"Failed to publish '{detail_type}': {reason}")
