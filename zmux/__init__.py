"""Channel management for remux media relays: URL checks, Redis storage, systemd control and Flask handlers."""

__version__ = "0.1.0"