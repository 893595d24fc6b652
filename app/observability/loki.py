from __future__ import annotations

import logging
import queue
import threading
from collections import deque
from typing import Any, NamedTuple

import httpx


class LokiEntry(NamedTuple):
    timestamp_ns: int
    level: str
    line: str


class LokiShipper:
    """Batches log lines and pushes them to Loki from a background thread.

    Delivery is best-effort: `submit` never blocks or raises, a full queue
    drops the record, and a failed push keeps the batch for the next cycle.
    """

    def __init__(
        self,
        url: str,
        labels: dict[str, str],
        interval: float = 5.0,
        max_queue: int = 10_000,
        batch_size: int = 1000,
        timeout: float = 5.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.url = url
        self.labels = dict(labels)
        self.interval = interval
        self.max_queue = max_queue
        self.batch_size = batch_size

        self._queue: queue.Queue[LokiEntry] = queue.Queue(maxsize=max_queue)
        self._pending: deque[LokiEntry] = deque()
        self._client = client or httpx.Client(timeout=timeout)
        self._flush_lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._closed = False

        self._stats_lock = threading.Lock()
        self.sent = 0
        self.dropped = 0
        self.failed = 0

    def start(self) -> None:
        if self._thread is not None or self._closed:
            return
        self._thread = threading.Thread(target=self._run, name="loki-shipper", daemon=True)
        self._thread.start()

    def submit(self, entry: LokiEntry) -> None:
        if self._closed:
            self._count("dropped")
            return
        try:
            self._queue.put_nowait(entry)
        except queue.Full:
            self._count("dropped")

    def _count(self, name: str, n: int = 1) -> None:
        with self._stats_lock:
            setattr(self, name, getattr(self, name) + n)

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            self.flush()

    def _drain_queue(self) -> None:
        while True:
            try:
                self._pending.append(self._queue.get_nowait())
            except queue.Empty:
                break
        overflow = max(len(self._pending) - self.max_queue, 0)
        for _ in range(overflow):
            self._pending.popleft()
        if overflow:
            self._count("dropped", overflow)

    def _payload(self, batch: list[LokiEntry]) -> dict[str, Any]:
        streams: dict[str, list[list[str]]] = {}
        for entry in batch:
            streams.setdefault(entry.level, []).append([str(entry.timestamp_ns), entry.line])
        return {
            "streams": [
                {"stream": {**self.labels, "level": level}, "values": values}
                for level, values in streams.items()
            ]
        }

    def flush(self) -> int:
        """Push everything queued so far. Returns the number of lines delivered."""

        delivered = 0
        if self._client.is_closed:
            return delivered
        with self._flush_lock:
            self._drain_queue()
            while self._pending:
                batch = [self._pending[i] for i in range(min(self.batch_size, len(self._pending)))]
                try:
                    resp = self._client.post(self.url, json=self._payload(batch))
                    resp.raise_for_status()
                except httpx.HTTPError:
                    # Keep the batch; the next cycle retries it.
                    self._count("failed")
                    break
                for _ in batch:
                    self._pending.popleft()
                delivered += len(batch)
            self._count("sent", delivered)
        return delivered

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=self.interval + 1.0)
            self._thread = None
        self.flush()
        self._client.close()


class LokiHandler(logging.Handler):
    """stdlib logging handler that forwards formatted records to a LokiShipper."""

    def __init__(self, shipper: LokiShipper, level: int = logging.NOTSET) -> None:
        super().__init__(level=level)
        self.shipper = shipper

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = self.format(record)
        except Exception:
            self.handleError(record)
            return
        self.shipper.submit(
            LokiEntry(
                timestamp_ns=int(record.created * 1_000_000_000),
                level=record.levelname.lower(),
                line=line,
            )
        )

    def close(self) -> None:
        self.shipper.close()
        super().close()
