"""Core configuration, enums and logging setup."""
