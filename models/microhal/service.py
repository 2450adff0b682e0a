"""
Threaded processing service for a Microhal instance.

One thread answers inputs taken from an inbound queue and puts the responses
on an outbound queue, one response per input and in the same order. A second
thread saves the whole instance on a fixed interval. Both hold the same lock
while they touch the instance, so processing and saving never overlap.
"""

import queue
import threading

from models.microhal.errors import ConfigurationError, PersistenceError
from utils.system_monitoring import ResourceMonitor

# Put on the inbound queue by stop() to release the processing thread
_STOP = object()


class MicrohalService:
    """
    Runs a Microhal instance behind a pair of queues.
    """

    def __init__(self, microhal, store, logger=None, max_length=100, save_interval=60.0,
                 outbound_queue_size=1, resource_monitor=None):
        """
        Initializes the service. Nothing runs until start() is called.

        Args:
            microhal (Microhal): Instance to serve
            store (MicrohalJsonStore): Where snapshots are written
            logger (Logger, required): Logger instance for service activities
            max_length (int): Per-direction cap on generated characters
            save_interval (float): Seconds between snapshots
            outbound_queue_size (int): Responses buffered before the
                                       processing thread blocks (0 = unbounded)
            resource_monitor (ResourceMonitor, optional): Source of the
                                                          metrics logged with
                                                          each snapshot
        """
        if logger is None:
            raise ValueError("Logger instance must be provided")
        self.logger = logger

        self.microhal = microhal
        self.store = store
        self.max_length = max_length
        self.save_interval = save_interval
        self.outbound_queue_size = outbound_queue_size
        self.resource_monitor = resource_monitor or ResourceMonitor(logger=logger)

        self.inbound = None
        self.outbound = None
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._processing_thread = None
        self._snapshot_thread = None

    @property
    def running(self):
        return self._processing_thread is not None and self._processing_thread.is_alive()

    def start(self):
        """
        Start the processing and snapshot threads.

        Returns:
            tuple: (inbound, outbound) queues; put input strings on the first,
                   read responses from the second

        Raises:
            ConfigurationError: If max_length is smaller than the model order
            RuntimeError: If the service is already running
        """
        if self.max_length < self.microhal.order:
            raise ConfigurationError(
                f"max_length must be at least the order (got {self.max_length}, "
                f"expected at least {self.microhal.order})")
        if self.running:
            raise RuntimeError("Service is already running")

        self._stop_event.clear()
        self.inbound = queue.Queue()
        self.outbound = queue.Queue(maxsize=self.outbound_queue_size)

        self._processing_thread = threading.Thread(
            target=self._processing_loop, name=f"{self.microhal.name}-processing", daemon=True)
        self._snapshot_thread = threading.Thread(
            target=self._snapshot_loop, name=f"{self.microhal.name}-snapshot", daemon=True)
        self._processing_thread.start()
        self._snapshot_thread.start()

        self.logger.info("Microhal service started", extra={
            "metrics": {
                "name": self.microhal.name,
                "order": self.microhal.order,
                "max_length": self.max_length,
                "save_interval": self.save_interval,
            }
        })
        return self.inbound, self.outbound

    def stop(self, timeout=5.0, save=True):
        """
        Stop both threads and, by default, take a final snapshot.

        Inputs queued before the call are still processed, unless the
        outbound queue is full and nobody drains it.
        """
        if self._processing_thread is None:
            return

        self._stop_event.set()
        self.inbound.put(_STOP)
        for thread in (self._processing_thread, self._snapshot_thread):
            thread.join(timeout=timeout)
            if thread.is_alive():
                self.logger.warning(f"Thread {thread.name} did not stop within {timeout}s")

        self._processing_thread = None
        self._snapshot_thread = None

        if save:
            self.save_snapshot()
        self.logger.info("Microhal service stopped", extra={
            "metrics": {"name": self.microhal.name}
        })

    def save_snapshot(self):
        """
        Save the instance while holding the processing lock.

        Returns:
            bool: True if the snapshot was written; failures are logged and
                  the next cycle tries again
        """
        with self._lock:
            try:
                path = self.store.save(self.microhal.to_dict())
            except PersistenceError as e:
                self.logger.error(f"Snapshot failed: {e}", exc_info=True, extra={
                    "metrics": {"name": self.microhal.name}
                })
                return False

            try:
                self.resource_monitor.log_usage("Snapshot saved", extra_metrics={
                    "name": self.microhal.name,
                    "path": path,
                    "left_prefixes": len(self.microhal.markov.left_chain),
                    "right_prefixes": len(self.microhal.markov.right_chain),
                    "keywords": len(self.microhal.keywords),
                })
            except Exception as e:
                self.logger.error(f"Error logging snapshot usage: {e}", exc_info=True, extra={
                    "metrics": {"name": self.microhal.name, "path": path}
                })
        return True

    def respond(self, text):
        """
        Answer one input while holding the processing lock.

        Any error from the model is logged and answered with an empty string,
        so the processing thread keeps serving one response per input.
        """
        with self._lock:
            try:
                return self.microhal.process_input(text, self.max_length)
            except Exception as e:
                self.logger.error(f"Failed to process input: {e}", exc_info=True, extra={
                    "metrics": {"input": text}
                })
                return ""

    def _processing_loop(self):
        while True:
            text = self.inbound.get()
            if text is _STOP:
                break

            self.logger.info("Received input", extra={"metrics": {"input": text}})
            response = self.respond(text)
            self.logger.info("Responded", extra={"metrics": {"response": response}})

            if not self._put_response(response):
                break

    def _put_response(self, response):
        # Blocks while the consumer is behind, but still notices stop()
        while True:
            try:
                self.outbound.put(response, timeout=0.5)
                return True
            except queue.Full:
                if self._stop_event.is_set():
                    return False

    def _snapshot_loop(self):
        while not self._stop_event.wait(self.save_interval):
            try:
                self.save_snapshot()
            except Exception as e:
                self.logger.error(f"Error in snapshot loop: {e}", exc_info=True)
