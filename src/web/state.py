import threading
from concurrent.futures import TimeoutError as FutureTimeoutError


class SharedState:
    """
    Singleton class to share state between the detection loop
    and the FastAPI web server.
    """
    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(SharedState, cls).__new__(cls)
                    cls._instance.loop = None
                    cls._instance.command_timeout = 5.0
        return cls._instance

    def set_loop(self, loop):
        self.loop = loop

    def run_on_loop(self, fn):
        """
        Run fn on the detection loop's timeline and wait for its result.

        Exceptions raised by fn propagate to the caller. A command still
        queued when command_timeout expires is cancelled and never runs.

        Raises:
            concurrent.futures.TimeoutError: The loop did not pick the command up in time.
        """
        if self.loop is None:
            raise RuntimeError("Detection loop not attached")
        future = self.loop.submit(fn)
        try:
            return future.result(timeout=self.command_timeout)
        except FutureTimeoutError:
            if future.cancel():
                raise
            # Already executing on the loop thread; its outcome is the answer
            return future.result()

    def reset(self):
        """Detach everything (used between tests)."""
        self.loop = None
        self.command_timeout = 5.0


# Global instance
state = SharedState()
