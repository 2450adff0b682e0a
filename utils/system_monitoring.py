#!/usr/bin/env python3
"""
System Monitoring Module

Collects process resource figures (memory, CPU, threads) with psutil so they
can be attached to log records, e.g. every time a Microhal snapshot is saved.
"""

import os
import threading
import psutil
from datetime import datetime


class ResourceMonitor:
    """
    Reports resource usage of the current process and logs it on request.
    """

    def __init__(self, logger, memory_warning_mb=None):
        """
        Initialize the resource monitor.

        Args:
            logger: Logger instance for recording resource metrics
            memory_warning_mb (float, optional): Resident memory above which
                                                 log_usage() logs a warning
        """
        self.logger = logger
        self.memory_warning_mb = memory_warning_mb
        self.process = psutil.Process(os.getpid())

    def get_memory_usage(self):
        """
        Get current process memory usage.

        Returns:
            dict: Resident memory in MB and share of system memory
        """
        memory_info = self.process.memory_info()
        current_memory_mb = memory_info.rss / (1024 * 1024)
        system_memory = psutil.virtual_memory()

        return {
            "current_mb": current_memory_mb,
            "percent_used": self.process.memory_percent(),
            "system_percent_used": system_memory.percent,
        }

    def get_resource_usage(self):
        """
        Get resource usage statistics for this process.

        Returns:
            dict: Memory, CPU and thread figures with a timestamp
        """
        return {
            "timestamp": datetime.now().isoformat(),
            "memory": self.get_memory_usage(),
            "cpu": {
                # Non-blocking: percentage since the previous call
                "process_percent": self.process.cpu_percent(interval=None),
                "cores": psutil.cpu_count(),
            },
            "threads": threading.active_count(),
            "process_id": os.getpid(),
        }

    def log_usage(self, message, extra_metrics=None):
        """
        Log a message together with current resource usage.

        Args:
            message (str): Message to log
            extra_metrics (dict, optional): Additional metrics to include

        Returns:
            dict: The metrics that were logged
        """
        resources = self.get_resource_usage()
        metrics = {"system_resources": resources}
        if extra_metrics:
            metrics.update(extra_metrics)

        current_mb = resources["memory"]["current_mb"]
        if self.memory_warning_mb and current_mb > self.memory_warning_mb:
            self.logger.warning(
                f"{message} - memory usage at {current_mb:.2f} MB exceeds "
                f"{self.memory_warning_mb:.2f} MB",
                extra={"metrics": metrics})
        else:
            self.logger.info(message, extra={"metrics": metrics})
        return metrics
