# i3link/interfaces/event_handler.py
from typing import Any, Callable

# handler(event_name, event) where event is the decoded model object
EventHandler = Callable[[str, Any], None]
