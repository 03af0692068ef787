"""Run context for cluster exports: cancellation, logging and progress."""

import threading
from typing import Any, Callable, Optional

import structlog

ProgressCallback = Callable[[int, int], None]
StatusCallback = Callable[[str], None]


def _ignore_progress(current: int, total: int) -> None:
    pass


def _ignore_status(message: str) -> None:
    pass


class ExportContext:
    """
    Per-run state handed to the export engine.

    Carries a cooperative cancellation flag, the logger events are written
    to, and progress callbacks for whatever surface displays the run.
    Main progress counts clusters, sub progress counts items in a cluster.

    Example:
        context = ExportContext(on_status=print)
        signal.signal(signal.SIGINT, lambda *_: context.request_cancel())
    """

    def __init__(
        self,
        logger: Optional[Any] = None,
        on_main_progress: Optional[ProgressCallback] = None,
        on_sub_progress: Optional[ProgressCallback] = None,
        on_status: Optional[StatusCallback] = None,
    ) -> None:
        self.logger = logger if logger is not None else structlog.get_logger()
        self.on_main_progress = on_main_progress or _ignore_progress
        self.on_sub_progress = on_sub_progress or _ignore_progress
        self.on_status = on_status or _ignore_status
        self._cancel = threading.Event()

    def request_cancel(self) -> None:
        """Ask the running export to stop at the next item or cluster boundary."""
        self._cancel.set()

    @property
    def cancel_requested(self) -> bool:
        return self._cancel.is_set()

    def bind(self, **values: Any) -> None:
        """Bind context values to all subsequent log events."""
        self.logger = self.logger.bind(**values)

    def status(self, message: str, **values: Any) -> None:
        """Report a status line and log it."""
        self.on_status(message)
        self.logger.info("status", message=message, **values)
