"""Background walk that streams discoveries through a bounded queue."""

from __future__ import annotations

import logging
import queue
import threading
from pathlib import Path

from devsweep.core.cancel import CancelToken, ScanCancelled
from devsweep.core.walker import WalkCounters
from devsweep.models.item import Item
from devsweep.models.messages import ItemFound, ScanComplete
from devsweep.models.scanner import Scanner

log = logging.getLogger(__name__)

DEFAULT_CAPACITY = 10
_POLL_INTERVAL = 0.05


class ScanStream:
    """Runs one scanner walk in a producer thread.

    Discoveries go through a bounded queue, so a slow consumer holds the
    producer back.  The terminal ``ScanComplete`` goes through its own
    one-slot queue.  Consumers call ``pull()`` once per message they want;
    nothing is pushed to them.
    """

    def __init__(
        self,
        scanner: Scanner,
        root: Path | str,
        cancel: CancelToken | None = None,
        *,
        session: int = 0,
        capacity: int = DEFAULT_CAPACITY,
    ) -> None:
        self.scanner = scanner
        self.root = Path(root)
        self.cancel = cancel or CancelToken()
        self.session = session
        self.counters = WalkCounters()
        self._items: queue.Queue[Item] = queue.Queue(maxsize=max(1, capacity))
        self._done: queue.Queue[ScanComplete] = queue.Queue(maxsize=1)
        self._completion: ScanComplete | None = None
        self._thread: threading.Thread | None = None

    def start(self) -> ScanStream:
        """Start the producer thread; calling it twice is a no-op."""
        if self._thread is None:
            self._thread = threading.Thread(
                target=self._produce,
                name=f"devsweep-scan-{self.scanner.id}",
                daemon=True,
            )
            self._thread.start()
            log.debug("Started %s scan of %s (session %d)", self.scanner.id, self.root, self.session)
        return self

    def pull(self) -> ItemFound | ScanComplete:
        """Block until one discovery or the completion signal is available.

        Queued discoveries are always handed out before the completion.
        """
        while True:
            try:
                return ItemFound(self.session, self._items.get(timeout=_POLL_INTERVAL))
            except queue.Empty:
                pass
            if self._completion is None:
                try:
                    self._completion = self._done.get_nowait()
                except queue.Empty:
                    continue
            if self._items.empty():
                return self._completion

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def _produce(self) -> None:
        emitted: list[Item] = []
        error: Exception | None = None
        try:
            for item in self.scanner.scan(self.cancel, self.root, self.counters):
                self._offer(item)
                emitted.append(item)
        except ScanCancelled as exc:
            log.info("Scan %s cancelled after %d items", self.scanner.id, len(emitted))
            error = exc
        except Exception as exc:
            log.exception("Scanner '%s' failed during walk", self.scanner.id)
            error = exc

        self._done.put(
            ScanComplete(
                scanner_id=self.scanner.id,
                items=emitted,
                total_size=sum(i.size for i in emitted),
                error=error,
                session=self.session,
            )
        )

    def _offer(self, item: Item) -> None:
        """Put *item* on the queue, giving up if the scan is cancelled meanwhile."""
        while True:
            try:
                self._items.put(item, timeout=_POLL_INTERVAL)
                return
            except queue.Full:
                self.cancel.raise_if_cancelled()
