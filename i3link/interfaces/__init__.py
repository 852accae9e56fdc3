# i3link/interfaces/__init__.py
from .request_sink import RequestEvent, RequestSink
from .event_handler import EventHandler

__all__ = ["RequestEvent", "RequestSink", "EventHandler"]
