"""
Scoring Worker

Message-passing host around a FramePipeline, so per-frame scoring runs off
the capture/render thread. Frames go into a bounded inbox and are processed
one at a time, in submission order, by a single background thread. Results
are delivered to an on_result callback, or queued on `results`.

When the inbox is full the BackpressurePolicy decides what happens. Live
video defaults to DROP_OLDEST, so the newest frame always gets scored. Only
frames are ever dropped. Control messages (reset, snooze, mode change) go
through the same inbox so they stay ordered with frames; when the inbox is
full they evict a pending frame instead. A reset also flushes every pending
frame of the old session.
"""

import logging
import queue
import threading
from enum import Enum
from typing import Any, Callable, Optional

from ..core.exceptions import InvalidMessageError, WorkerNotRunningError
from .messages import (
    FrameResult, ResetMessage, ScoreMessage, ScoringMode, SetModeMessage, SnoozeMessage, parse_message,
)
from .pipeline import FramePipeline

logger = logging.getLogger(__name__)

_STOP = object()


class BackpressurePolicy(Enum):
    DROP_OLDEST = "drop_oldest"
    DROP_NEWEST = "drop_newest"
    BLOCK = "block"


class ScoringWorker:
    """Background frame scorer with an explicit back-pressure policy."""
    DEFAULT_QUEUE_SIZE = 2
    POLL_INTERVAL_S = 0.1

    def __init__(
        self,
        pipeline: Optional[FramePipeline] = None,
        on_result: Optional[Callable[[FrameResult], None]] = None,
        max_queue: int = DEFAULT_QUEUE_SIZE,
        backpressure: BackpressurePolicy = BackpressurePolicy.DROP_OLDEST,
        **pipeline_kwargs: Any,
    ):
        """
        Args:
            pipeline: Session pipeline to drive (built from pipeline_kwargs if omitted)
            on_result: Callback for each emitted FrameResult; runs on the worker thread
            max_queue: Inbox capacity in frames
            backpressure: What to do when the inbox is full
        """
        self.pipeline = pipeline or FramePipeline(**pipeline_kwargs)
        self.on_result = on_result
        self.backpressure = backpressure
        self.results: "queue.Queue[FrameResult]" = queue.Queue()

        self._inbox: "queue.Queue[Any]" = queue.Queue(maxsize=max(1, max_queue))
        self._pipeline_lock = threading.Lock()
        self._submit_lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._running = False
        self.dropped_frames = 0

    # -------------------------------------------------------------------------
    # Synchronous boundary
    # -------------------------------------------------------------------------

    def handle(self, message: Any) -> Optional[FrameResult]:
        """Process one message on the calling thread and emit its result."""
        with self._pipeline_lock:
            result = self.pipeline.process(message)
        if result is not None:
            self._emit(result)
        return result

    def _emit(self, result: FrameResult):
        if self.on_result is not None:
            self.on_result(result)
        else:
            self.results.put(result)

    # -------------------------------------------------------------------------
    # Threaded mode
    # -------------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> "ScoringWorker":
        if self._running:
            return self
        self._running = True
        self._thread = threading.Thread(target=self._run, name="scoring-worker", daemon=True)
        self._thread.start()
        logger.info("Scoring worker started (%s, queue=%d)", self.backpressure.value, self._inbox.maxsize)
        return self

    def submit(self, message: Any) -> bool:
        """
        Queue a message for the worker thread.

        Returns False when the message itself was dropped by DROP_NEWEST.
        Raises InvalidMessageError for malformed payloads and
        WorkerNotRunningError if start() has not been called.
        """
        if not self._running:
            raise WorkerNotRunningError("submit() called before start()", self.pipeline.session_id)
        message = parse_message(message)

        with self._submit_lock:
            if not isinstance(message, ScoreMessage):
                if isinstance(message, ResetMessage):
                    self._drain_inbox()
                self._put_control(message)
                return True

            if self.backpressure is BackpressurePolicy.BLOCK:
                self._inbox.put(message)
                return True

            while True:
                try:
                    self._inbox.put_nowait(message)
                    return True
                except queue.Full:
                    if self.backpressure is BackpressurePolicy.DROP_NEWEST:
                        self.dropped_frames += 1
                        return False
                    try:
                        stale = self._inbox.get_nowait()
                    except queue.Empty:
                        continue
                    if not isinstance(stale, ScoreMessage):
                        # keep the control message; drop the incoming frame instead
                        self._requeue_front(stale)
                        self.dropped_frames += 1
                        return False
                    self.dropped_frames += 1

    # -------------------------------------------------------------------------
    # Session control
    # -------------------------------------------------------------------------

    def reset(self):
        """Reset session state; in threaded mode pending frames are discarded."""
        self._control(ResetMessage())

    def snooze_breaks(self, now: Optional[float] = None):
        """Snooze break reminders, applied after anything already queued (including resets)."""
        self._control(SnoozeMessage(now=now))

    def set_mode(self, mode: ScoringMode):
        """Switch scoring mode for frames submitted after this call."""
        self._control(SetModeMessage(mode=ScoringMode(mode)))

    def _control(self, message: Any):
        if self._running:
            self.submit(message)
        else:
            self.handle(message)

    def _put_control(self, message: Any):
        with self._inbox.mutex:
            pending = self._inbox.queue
            if len(pending) >= self._inbox.maxsize:
                frame = next((item for item in pending if isinstance(item, ScoreMessage)), None)
                if frame is not None:
                    pending.remove(frame)
                    self.dropped_frames += 1
            if len(pending) < self._inbox.maxsize:
                pending.append(message)
                self._inbox.unfinished_tasks += 1
                self._inbox.not_empty.notify()
                return
        # inbox holds only control messages; wait for the worker
        self._inbox.put(message)

    def _drain_inbox(self):
        """Discard pending frames; control messages keep their place."""
        with self._inbox.mutex:
            pending = self._inbox.queue
            kept = [item for item in pending if not isinstance(item, ScoreMessage)]
            self.dropped_frames += len(pending) - len(kept)
            pending.clear()
            pending.extend(kept)
            self._inbox.not_full.notify_all()

    def _requeue_front(self, item: Any):
        with self._inbox.mutex:
            self._inbox.queue.appendleft(item)
            self._inbox.not_empty.notify()

    def _run(self):
        while True:
            try:
                message = self._inbox.get(timeout=self.POLL_INTERVAL_S)
            except queue.Empty:
                if not self._running:
                    break
                continue
            if message is _STOP:
                break
            try:
                self.handle(message)
            except InvalidMessageError as e:
                logger.warning("Ignoring invalid worker message: %s", e)
            except Exception:
                logger.exception("Frame processing failed")

    def stop(self, timeout: Optional[float] = 1.0):
        """Finish queued messages and stop the worker thread."""
        if not self._running:
            return
        self._running = False
        self._inbox.put(_STOP)
        if self._thread is not None:
            self._thread.join(timeout)
        self._thread = None
        logger.info("Scoring worker stopped (dropped %d frames)", self.dropped_frames)

    def __enter__(self):
        return self.start()

    def __exit__(self, *args):
        self.stop()
