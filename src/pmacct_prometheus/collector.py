from __future__ import annotations

import logging
import signal
import subprocess
from typing import Any, Iterator, List, Optional, Sequence

logger = logging.getLogger(__name__)

DEFAULT_COMMAND = [
    "pmacctd",
    "-r", "1",
    "-c", "src_host,dst_host",
    "-P", "print",
    "-O", "json",
]


class PmacctCollector:
    """
    Supervises the pmacctd child process.

    pmacctd prints one JSON object per aggregate every refresh interval, plus
    plain status lines. Both arrive through lines() unchanged.

    stop() forwards SIGINT so pmacctd flushes and exits, which closes its
    stdout and ends any loop reading lines().
    """

    def __init__(self, command: Optional[Sequence[str]] = None):
        self.command: List[str] = list(command or DEFAULT_COMMAND)
        self._proc: Optional[subprocess.Popen] = None

    @property
    def running(self) -> bool:
        return self._proc is not None and self._proc.poll() is None

    @property
    def pid(self) -> Optional[int]:
        return self._proc.pid if self._proc is not None else None

    def start(self) -> None:
        if self._proc is not None:
            raise RuntimeError("collector already started")

        logger.info("starting collector: %s", " ".join(self.command))
        self._proc = subprocess.Popen(
            self.command,
            stdout=subprocess.PIPE,
            text=True,
            errors="replace",
            bufsize=1,
        )

    def lines(self) -> Iterator[str]:
        if self._proc is None or self._proc.stdout is None:
            raise RuntimeError("collector not started")
        yield from self._proc.stdout

    def wait(self, timeout: Optional[float] = None) -> Optional[int]:
        """
        Block until the collector exits on its own. Returns the exit code.
        """
        if self._proc is None:
            return None
        return self._proc.wait(timeout=timeout)

    def stop(self, timeout: float = 10.0) -> Optional[int]:
        """
        Send SIGINT and wait. Kill if it does not exit within timeout.
        Returns the exit code, or None when the process was never started.
        """
        proc = self._proc
        if proc is None:
            return None

        if proc.poll() is None:
            logger.info("sending SIGINT to collector pid %d", proc.pid)
            proc.send_signal(signal.SIGINT)
            try:
                proc.wait(timeout=timeout)
            except subprocess.TimeoutExpired:
                logger.warning("collector did not exit after %.1fs, killing", timeout)
                proc.kill()
                proc.wait()

        if proc.returncode:
            logger.warning("collector exited with code %d", proc.returncode)
        else:
            logger.info("collector exited")
        return proc.returncode

    def __enter__(self) -> "PmacctCollector":
        self.start()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.stop()
