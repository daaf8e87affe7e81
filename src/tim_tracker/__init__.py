"""tim: a personal task tracker with background deadline/event reminders."""

__version__ = "0.1.0"
