from .broadcaster import WebSocketBroadcaster, broadcaster

__all__ = ["WebSocketBroadcaster", "broadcaster"]
