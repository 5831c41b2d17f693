"""roombot - create, discover and join shared chat rooms."""

__version__ = "0.3.0"
__logo__ = "🚪"
