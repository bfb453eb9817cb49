"""Core application building blocks: settings, exceptions and schemas."""
