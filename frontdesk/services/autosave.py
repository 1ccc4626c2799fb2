"""
Debounced auto-save for agreement forms.

Each PATCH merges its fields into the pending patch for that form and
restarts the form's timer; the merged patch is written once the form has
been quiet for AUTOSAVE_DELAY_SECONDS. An explicit save, sign or delete
cancels the pending write, and waits for one already being written so
the explicit change always lands last.
"""
import logging
import threading

logger = logging.getLogger(__name__)


class AutoSaveDebouncer:

    def __init__(self, delay=2.0, timer_factory=threading.Timer, flush_wait=10.0):
        self.delay = delay
        self.timer_factory = timer_factory
        self.flush_wait = flush_wait
        self.app = None
        self._flush = None
        self._pending = {}
        # key -> (done event, writing thread id)
        self._in_flight = {}
        self._lock = threading.Lock()

    def init_app(self, app, flush):
        """``flush(key, patch)`` is called inside an app context when a timer fires."""
        self.app = app
        self.delay = app.config.get('AUTOSAVE_DELAY_SECONDS', self.delay)
        self._flush = flush
        app.extensions['autosave'] = self

    def schedule(self, key, patch):
        """Merge ``patch`` into the pending write for ``key`` and restart its timer."""
        with self._lock:
            timer, pending = self._pending.pop(key, (None, {}))
            if timer is not None:
                timer.cancel()
            merged = {**pending, **(patch or {})}
            timer = self.timer_factory(self.delay, self._fire, args=(key,))
            timer.daemon = True
            self._pending[key] = (timer, merged)
        timer.start()
        return merged

    def cancel(self, key):
        """
        Drop the pending write for ``key`` and block until any write for it
        that has already started is finished. Returns True if one was pending.
        """
        with self._lock:
            timer, _ = self._pending.pop(key, (None, None))
            in_flight = self._in_flight.get(key)
        if timer is not None:
            timer.cancel()
            logger.debug("Cancelled pending autosave for %s", key)
        if in_flight is not None:
            done, writer = in_flight
            if writer != threading.get_ident() and not done.wait(self.flush_wait):
                logger.warning("Autosave for %s still running after %.1fs", key, self.flush_wait)
        return timer is not None

    def pending(self, key):
        with self._lock:
            entry = self._pending.get(key)
        return dict(entry[1]) if entry else None

    def flush_all(self):
        """Write every pending patch now (shutdown / tests)."""
        with self._lock:
            keys = list(self._pending)
        for key in keys:
            self._fire(key)

    def _fire(self, key):
        done = threading.Event()
        with self._lock:
            timer, patch = self._pending.pop(key, (None, None))
            if timer is None:
                return
            self._in_flight[key] = (done, threading.get_ident())
        timer.cancel()
        try:
            if self._flush is None or self.app is None:
                logger.error("Autosave fired for %s before init_app()", key)
                return
            with self.app.app_context():
                try:
                    self._flush(key, patch)
                except Exception:
                    # timer thread
                    logger.exception("Autosave for %s failed", key)
        finally:
            with self._lock:
                if self._in_flight.get(key, (None,))[0] is done:
                    del self._in_flight[key]
            done.set()
