"""
Resident set size of a process, read from the operating system.

This module provides:
- ProcessRssReader: runs `cat /proc/<pid>/status` and extracts the VmRSS line.
- PsutilRssReader: the psutil equivalent for platforms without procfs.
- create_rss_reader: picks a reader by method name.
- Process identity helpers used to resolve the monitored PID once.
"""

import logging
import os
import socket
import subprocess
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Union

import psutil

from ..validation import ErrorSeverity, ValidationError, handle_subprocess_error

logger = logging.getLogger(__name__)

RSS_LINE_PREFIX = "VmRSS:"
RSS_METHODS: List[str] = ["auto", "procfs", "psutil"]


def parse_rss(line: str) -> int:
    """
    Parse a `VmRSS:` status line into bytes.

    The label, the `kB` unit and all spaces and tabs are stripped; the
    remaining kibibyte count is multiplied by 1024.

    Examples:
        >>> parse_rss("VmRSS:    248484 kB")
        254447616
        >>> parse_rss("VmRSS:\\t 2117224 kB")
        2168037376

    Raises:
        ValueError: If the remaining text is not an integer.
    """
    digits = (
        line.replace(RSS_LINE_PREFIX, "")
        .replace("kB", "")
        .replace(" ", "")
        .replace("\t", "")
        .strip()
    )
    return 1024 * int(digits)


def find_rss(lines: Iterable[str]) -> Optional[int]:
    """
    Scan status lines and parse the first `VmRSS:` line.

    Returns:
        RSS in bytes, or None if no line matches.

    Raises:
        ValueError: If the matching line cannot be parsed.
    """
    for line in lines:
        if line.startswith(RSS_LINE_PREFIX):
            return parse_rss(line)
    return None


class RssReader(ABC):
    """Reads the resident set size of a process."""

    @abstractmethod
    def read_rss(self, pid: int) -> Optional[int]:
        """
        Returns:
            RSS in bytes, or None when it could not be read. Never raises
            for an unavailable process or a failed query.
        """
        pass


class ProcessRssReader(RssReader):
    """
    Reads RSS by querying `/proc/<pid>/status` through `cat`.

    The query runs in a child process bounded by `timeout`; subprocess.run
    kills and reaps the child when the timeout expires.
    """

    def __init__(self, timeout: float = 2.0):
        self.timeout = timeout

    def build_command(self, pid: int) -> List[str]:
        return ["cat", f"/proc/{pid}/status"]

    def read_rss(self, pid: int) -> Optional[int]:
        command = self.build_command(pid)
        command_str = " ".join(command)

        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
                check=False,
            )
        except (OSError, subprocess.SubprocessError) as e:
            # Launch failure, missing binary or timeout.
            handle_subprocess_error(
                e, command_str, severity=ErrorSeverity.WARNING, reraise=False, logger=logger
            )
            return None

        if result.returncode != 0:
            logger.warning(
                f"'{command_str}' exited with code {result.returncode}: {result.stderr.strip()}"
            )
            return None

        try:
            rss = find_rss(result.stdout.splitlines())
        except ValueError as e:
            handle_subprocess_error(
                e, command_str, severity=ErrorSeverity.WARNING, reraise=False, logger=logger
            )
            return None

        if rss is None:
            logger.warning(f"No {RSS_LINE_PREFIX} line in output of '{command_str}'")
        return rss


class PsutilRssReader(RssReader):
    """Reads RSS through psutil; works wherever psutil supports memory_info."""

    def read_rss(self, pid: int) -> Optional[int]:
        try:
            return psutil.Process(pid).memory_info().rss
        except (psutil.NoSuchProcess, psutil.AccessDenied) as e:
            logger.warning(f"Cannot read RSS of PID {pid}: {e}")
            return None


def procfs_available() -> bool:
    return os.path.exists("/proc/self/status")


def create_rss_reader(method: str = "auto", timeout: float = 2.0) -> RssReader:
    """
    Create an RSS reader for the given method.

    Args:
        method: "procfs", "psutil" or "auto" (procfs when /proc is present).
        timeout: Bound in seconds on the procfs status query.

    Raises:
        ValueError: If the method is unknown.
    """
    if method == "auto":
        method = "procfs" if procfs_available() else "psutil"
        logger.debug(f"Auto-selected RSS method: {method}")

    if method == "procfs":
        return ProcessRssReader(timeout=timeout)
    elif method == "psutil":
        return PsutilRssReader()
    else:
        raise ValueError(f"Unknown RSS method: {method}")


def current_process_identity() -> str:
    """Identity string of this process, in the form "<pid>@<hostname>"."""
    return f"{os.getpid()}@{socket.gethostname()}"


def parse_process_identity(identity: Union[str, int]) -> int:
    """
    Resolve a process identity to a PID.

    Accepts "<pid>@<host>", a bare "<pid>" string, or an int.

    Raises:
        ValidationError: If no positive PID can be extracted.
    """
    if isinstance(identity, bool):
        raise ValidationError(
            f"Malformed process identity: {identity!r}",
            field_name="process",
            value=identity,
            severity=ErrorSeverity.CRITICAL,
        )
    if isinstance(identity, int):
        pid_str = str(identity)
    elif isinstance(identity, str):
        pid_str = identity.split("@", 1)[0].strip()
    else:
        pid_str = ""

    if not pid_str.isdigit() or int(pid_str) <= 0:
        raise ValidationError(
            f"Malformed process identity: {identity!r}",
            field_name="process",
            value=identity,
            severity=ErrorSeverity.CRITICAL,
        )
    return int(pid_str)
