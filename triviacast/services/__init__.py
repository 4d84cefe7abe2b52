"""Services module for TriviaCast - question queue, refill, and round scheduling."""
