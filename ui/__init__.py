"""User-facing surfaces of the chat assistant."""
