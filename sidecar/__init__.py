"""sidecar - supervisor for the RSS reader backend worker process."""

__version__ = "0.3.0"
__logo__ = "🛰"
