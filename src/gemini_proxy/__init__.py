"""Serverless proxy that relays prompts to the Gemini API with a server-held key."""

__version__ = "0.1.0"
