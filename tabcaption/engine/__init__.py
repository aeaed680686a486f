"""TabCaption Engine — options, events, dispatcher, logging and the synchronizer."""

__all__ = ["config", "dispatcher", "errors", "events", "logging", "synchronizer"]
