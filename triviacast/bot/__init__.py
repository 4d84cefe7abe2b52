"""Bot module for TriviaCast - handlers, middleware, messages."""
