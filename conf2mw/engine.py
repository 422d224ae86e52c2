"""
Convert Confluence storage format pages to MediaWiki markup.

Copyright 2026, conf2mw contributors

:see: README.md
"""

import logging
import shutil
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Sequence

from .extra import override

LOGGER = logging.getLogger(__name__)


def execute_subprocess(command: Sequence[str], *, application: str) -> bytes:
    """
    Executes a subprocess, capturing output from stdout.

    :param command: Full command with arguments to execute.
    :param application: Human-readable application name for error messages (e.g. "Pandoc").
    :returns: Application output as `bytes`.
    :raises RuntimeError: If the subprocess fails with non-zero exit code.
    """

    LOGGER.debug("Executing: %s", " ".join(command))

    proc = subprocess.Popen(command, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
    stdout, stderr = proc.communicate()

    if proc.returncode:
        messages = [f"failed to execute {application}; exit code: {proc.returncode}"]
        LOGGER.error("Failed to execute %s; exit code: %d", application, proc.returncode)
        if stderr:
            try:
                console_error = stderr.decode("utf-8")
                LOGGER.error(console_error)
                messages.append(f"error:\n{console_error.rstrip()}")
            except UnicodeDecodeError:
                LOGGER.error("%s returned binary data on stderr", application)
        raise RuntimeError("\n".join(messages))

    return stdout


class ConversionEngine(ABC):
    "Converts an HTML file into wiki markup."

    @abstractmethod
    def convert(self, html_path: Path) -> str: ...


class PandocEngine(ConversionEngine):
    "Converts HTML into MediaWiki markup with Pandoc."

    executable: str

    def __init__(self, executable: str = "pandoc") -> None:
        self.executable = executable

    def is_available(self) -> bool:
        return shutil.which(self.executable) is not None

    @override
    def convert(self, html_path: Path) -> str:
        cmd = [
            self.executable,
            "--from",
            "html",
            "--to",
            "mediawiki",
            str(html_path),
        ]
        return execute_subprocess(cmd, application="Pandoc").decode("utf-8")


def has_pandoc(executable: str = "pandoc") -> bool:
    "True if Pandoc is available on the OS."

    return PandocEngine(executable).is_available()
