from .toasts import LoggingNotifier, Notifier, Toast, error_message

__all__ = ["LoggingNotifier", "Notifier", "Toast", "error_message"]
