"""Instrumentation client that buffers origin records and ships them in batches.

Example::

    from cor_matrix.client import CorMatrix

    cor = CorMatrix(
        app_name="my-assistant",
        base_url="https://cor.example.com",
        token="cor_...",
        workspace_id="ws_...",
    )
    cor.install_exit_hooks()
    cor.add_code_origin_record(code=generated, path="src/app.py")

Records are buffered in memory, sent when ``batch_size`` records are pending
or every ``flush_interval`` seconds, and flushed one last time by ``close``.
Delivery is best effort: batches that still fail after ``max_retries``
attempts are dropped and logged.
"""

from __future__ import annotations

import atexit
import logging
import signal
import subprocess
import threading
from pathlib import PurePath
from typing import Any, Callable, Protocol, Sequence

from cor_matrix.client.api import ApiError, CorApiClient
from cor_matrix.client.buffer import RingBuffer
from cor_matrix.client.config import ClientSettings
from cor_matrix.ingest.types import CorPair, OriginEntry
from cor_matrix.utils.hashing import code_signature
from cor_matrix.utils.text import split_lines
from cor_matrix.utils.time import now_ms

logger = logging.getLogger("cor_matrix.client")

UNKNOWN_USER = "Unknown"
EXIT_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class RecordSender(Protocol):
    def record_cors(self, workspace_id: str, entries: Sequence[OriginEntry]) -> Any: ...


def git_user_name() -> str:
    """Return ``git config user.name`` or ``"Unknown"``."""
    try:
        result = subprocess.run(
            ["git", "config", "user.name"],
            capture_output=True,
            text=True,
            timeout=5,
            check=True,
        )
    except (OSError, subprocess.SubprocessError):
        return UNKNOWN_USER
    return result.stdout.strip() or UNKNOWN_USER


def extract_language(path: str) -> str:
    suffix = PurePath(path).suffix
    return suffix[1:] if suffix else "unknown"


def build_entry(
    code: str,
    path: str,
    language: str | None,
    timestamp: int | None,
    generated_by: str,
) -> OriginEntry:
    """Sign every line of ``code``; ``order`` is the zero-based line index."""
    return OriginEntry(
        path=path,
        language=language or extract_language(path),
        timestamp=timestamp if timestamp is not None else now_ms(),
        generated_by=generated_by,
        cors=[CorPair(signature=code_signature(line), order=index) for index, line in enumerate(split_lines(code))],
    )


class CorMatrix:
    """Collect code origin records and deliver them to the recording endpoint.

    Public methods never raise: failures are logged on the
    ``cor_matrix.client`` logger so instrumentation cannot crash the host.
    ``log_level`` only applies while the host leaves that logger unset.
    """

    def __init__(
        self,
        settings: ClientSettings | None = None,
        client: RecordSender | None = None,
        git_user: str | None = None,
        **options: Any,
    ) -> None:
        if settings is None:
            settings = ClientSettings.from_env(**options)
        elif options:
            settings = settings.model_copy(update=options)
        self.settings = settings
        self.logger = logger
        if self.logger.level == logging.NOTSET:
            self.logger.setLevel(settings.log_level)

        self._buffer: RingBuffer[OriginEntry] = RingBuffer(settings.max_queue_size)
        # Reentrant: exit signal handlers may close() while this thread holds it.
        self._lock = threading.RLock()
        self._flush_lock = threading.Lock()
        self._wake = threading.Event()
        self._stopped = threading.Event()
        self._worker: threading.Thread | None = None
        self._retry_timer: threading.Timer | None = None
        self._retries = 0
        self._client = client
        self._git_user = git_user
        self._enabled = False
        self._closed = False
        self._atexit_registered = False
        self._previous_handlers: dict[int, Any] = {}

        self._init()

    def _init(self) -> None:
        try:
            if not self.settings.enabled:
                self.logger.info("CorMatrix disabled by configuration")
                return
            if not self.settings.is_complete:
                self.logger.error("Missing required configuration: base_url, token and workspace_id are needed")
                return
            if self._client is None:
                self._client = CorApiClient(
                    self.settings.base_url,
                    credential=self.settings.token,
                    timeout=self.settings.request_timeout,
                    headers={
                        "app-name": self.settings.app_name,
                        "app-version": self.settings.app_version or "None",
                    },
                )
            if self._git_user is None:
                self._git_user = git_user_name()
            if self.settings.auto_flush:
                self._start_auto_flush()
            self._enabled = True
            self.logger.info("CorMatrix initialized")
        except Exception:
            self._enabled = False
            self.logger.exception("Failed to initialize CorMatrix")

    # Public API -------------------------------------------------------

    def is_enabled(self) -> bool:
        return self._enabled

    def size(self) -> int:
        with self._lock:
            return self._buffer.size()

    def add_code_origin_record(
        self,
        code: str,
        path: str,
        language: str | None = None,
        timestamp: int | None = None,
        generated_by: str | None = None,
    ) -> bool:
        """Sign ``code`` line by line and buffer it. Returns whether it was queued."""
        try:
            if not self._enabled:
                return False
            if not _is_valid(code, path):
                self.logger.warning("Invalid code origin record, ignoring (path=%r)", path)
                return False
            entry = build_entry(code, path, language, timestamp, generated_by or self._git_user or UNKNOWN_USER)
            with self._lock:
                accepted = self._buffer.enqueue(entry)
                pending = self._buffer.size()
            if not accepted:
                self.logger.error("Code origin record queue is full, dropping record for %s", path)
                return False
            if pending >= self.settings.batch_size:
                if self._worker is not None:
                    self._wake.set()
                else:
                    self.flush()
            return True
        except Exception:
            self.logger.exception("Failed to add code origin record")
            return False

    def flush(self) -> bool:
        """Send up to ``batch_size`` buffered records.

        Returns ``True`` when a batch was delivered. A call made while another
        flush is running returns ``False`` immediately.
        """
        if not self._flush_lock.acquire(blocking=False):
            return False
        try:
            return self._send_batch()
        except Exception:
            self.logger.exception("Unexpected error while flushing code origin records")
            return False
        finally:
            self._flush_lock.release()

    def close(self, timeout: float = 5.0) -> None:
        """Stop timers, send what is still buffered and disable the client."""
        if self._closed:
            return
        self._closed = True
        try:
            self._stopped.set()
            self._wake.set()
            self._cancel_retry()
            worker = self._worker
            if worker is not None and worker is not threading.current_thread():
                worker.join(timeout)
            self._worker = None
            self.remove_exit_hooks()
            if self._enabled:
                self._drain(timeout)
        except Exception:
            self.logger.exception("Failed to shut down CorMatrix cleanly")
        finally:
            self._enabled = False

    def install_exit_hooks(self, register: Callable[[Callable[[], None]], Any] | None = None) -> None:
        """Arrange for :meth:`close` to run when the host shuts down.

        With ``register`` the host's own shutdown mechanism receives
        ``close``. Otherwise ``atexit`` is used, plus SIGINT/SIGTERM handlers
        when called from the main thread.
        """
        try:
            if register is not None:
                register(self.close)
                return
            if not self._atexit_registered:
                atexit.register(self.close)
                self._atexit_registered = True
            if threading.current_thread() is threading.main_thread():
                for signum in EXIT_SIGNALS:
                    if signum not in self._previous_handlers:
                        self._previous_handlers[signum] = signal.getsignal(signum)
                        signal.signal(signum, self._handle_signal)
        except Exception:
            self.logger.exception("Failed to install exit hooks")

    def remove_exit_hooks(self) -> None:
        try:
            if self._atexit_registered:
                atexit.unregister(self.close)
                self._atexit_registered = False
            if self._previous_handlers and threading.current_thread() is threading.main_thread():
                for signum, previous in self._previous_handlers.items():
                    signal.signal(signum, previous)
            self._previous_handlers.clear()
        except Exception:
            self.logger.exception("Failed to remove exit hooks")

    def __enter__(self) -> "CorMatrix":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # Internal helpers -------------------------------------------------

    def _send_batch(self) -> bool:
        with self._lock:
            batch = self._buffer.dequeue(self.settings.batch_size)
        if not batch:
            return False
        try:
            self._client.record_cors(self.settings.workspace_id, batch)
        except ApiError as exc:
            if not exc.retryable:
                # Auth and validation failures will not succeed on retry.
                self.logger.error("Dropping %s code origin records: %s", len(batch), exc.message)
                self._retries = 0
                return False
            self._retry_later(batch, exc)
            return False
        except Exception as exc:
            self._retry_later(batch, exc)
            return False
        self._retries = 0
        self.logger.info("Flushed %s code origin records", len(batch))
        return True

    def _retry_later(self, batch: list[OriginEntry], exc: BaseException) -> None:
        self.logger.error("Failed to send code origin records: %s", exc)
        if self._retries >= self.settings.max_retries or self._stopped.is_set():
            self.logger.error("Max retries reached, dropping %s code origin records", len(batch))
            self._retries = 0
            return
        with self._lock:
            requeued = sum(1 for entry in batch if self._buffer.enqueue(entry))
        if requeued < len(batch):
            self.logger.error("Queue full while re-enqueuing, dropped %s records", len(batch) - requeued)
        self._retries += 1
        self._schedule_retry(self.settings.retry_base_delay * self._retries)

    def _schedule_retry(self, delay: float) -> None:
        self._cancel_retry()
        timer = threading.Timer(delay, self.flush)
        timer.daemon = True
        self._retry_timer = timer
        timer.start()

    def _cancel_retry(self) -> None:
        if self._retry_timer is not None:
            self._retry_timer.cancel()
            self._retry_timer = None

    def _start_auto_flush(self) -> None:
        self._worker = threading.Thread(target=self._run, name="cor-matrix-flush", daemon=True)
        self._worker.start()

    def _run(self) -> None:
        while not self._stopped.is_set():
            self._wake.wait(self.settings.flush_interval)
            self._wake.clear()
            if self._stopped.is_set():
                break
            if self.size() > 0 and self.flush() and self.size() >= self.settings.batch_size:
                self._wake.set()

    def _drain(self, timeout: float) -> None:
        """Final best-effort delivery; no retries."""
        if not self._flush_lock.acquire(timeout=timeout):
            self.logger.error("Flush still running at shutdown, %s records not sent", self.size())
            return
        try:
            while True:
                with self._lock:
                    batch = self._buffer.dequeue(self.settings.batch_size)
                if not batch:
                    break
                try:
                    self._client.record_cors(self.settings.workspace_id, batch)
                except Exception as exc:
                    with self._lock:
                        dropped = len(batch) + self._buffer.size()
                        self._buffer.dequeue(self._buffer.size())
                    self.logger.error("Final flush failed, dropping %s code origin records: %s", dropped, exc)
                    break
        finally:
            self._flush_lock.release()

    def _handle_signal(self, signum: int, frame: Any) -> None:
        previous = self._previous_handlers.get(signum)
        self.close()
        if previous is signal.SIG_IGN:
            return
        if callable(previous):
            previous(signum, frame)
        elif signum == signal.SIGINT:
            raise KeyboardInterrupt
        else:
            raise SystemExit(0)


def _is_valid(code: Any, path: Any) -> bool:
    return isinstance(code, str) and bool(code) and isinstance(path, str) and bool(path.strip())


__all__ = ["CorMatrix", "RecordSender", "build_entry", "extract_language", "git_user_name"]
