"""Readable, optionally coloured rendering of the stack of a failure."""

from __future__ import annotations

import io
import os
import sys
import traceback
from dataclasses import dataclass
from traceback import FrameSummary
from typing import Any, Iterable

from chikit.middleware.terminal import Color, color_write


@dataclass
class PrettyStack:
    """Formats stack frames with the failing call first."""

    use_color: bool = True

    def parse(self, stack: Iterable[FrameSummary], rvr: Any) -> str:
        """Render ``stack`` (outermost frame first) for the failure ``rvr``."""
        frames = list(stack)
        buf = io.StringIO()
        color_write(buf, False, Color.B_RED, "\n")
        color_write(buf, self.use_color, Color.B_CYAN, " panic: ")
        color_write(buf, self.use_color, Color.B_BLUE, f"{rvr}")
        color_write(buf, False, Color.B_WHITE, "\n \n")
        for index, frame in enumerate(reversed(frames)):
            first = index == 0
            self._decorate_call(buf, frame, first)
            self._decorate_source(buf, frame, first)
        return buf.getvalue()

    def _decorate_call(self, buf: io.StringIO, frame: FrameSummary, first: bool) -> None:
        module = os.path.splitext(os.path.basename(frame.filename))[0]
        method = f".{frame.name}"
        if first:
            color_write(buf, self.use_color, Color.B_RED, " -> ")
            module_color, method_color = Color.B_MAGENTA, Color.B_RED
        else:
            color_write(buf, self.use_color, Color.B_WHITE, "    ")
            module_color, method_color = Color.N_YELLOW, Color.B_GREEN
        color_write(buf, self.use_color, module_color, module)
        color_write(buf, self.use_color, method_color, method + "\n")

    def _decorate_source(self, buf: io.StringIO, frame: FrameSummary, first: bool) -> None:
        directory, filename = os.path.split(frame.filename)
        if directory:
            directory += os.sep
        lineno = f":{frame.lineno}"
        if first:
            color_write(buf, self.use_color, Color.B_RED, " ->   ")
            file_color, line_color = Color.B_RED, Color.B_MAGENTA
        else:
            color_write(buf, False, Color.B_WHITE, "      ")
            file_color, line_color = Color.B_CYAN, Color.B_GREEN
        color_write(buf, self.use_color, Color.B_WHITE, directory)
        color_write(buf, self.use_color, file_color, filename)
        color_write(buf, self.use_color, line_color, lineno)
        if first:
            color_write(buf, False, Color.B_WHITE, "\n")
        color_write(buf, False, Color.B_WHITE, "\n")


def print_pretty_stack(rvr: Any) -> None:
    """Write a readable stack for ``rvr`` to standard error.

    For an exception its own traceback is used; otherwise the caller's stack.
    """
    if isinstance(rvr, BaseException) and rvr.__traceback__ is not None:
        frames = traceback.extract_tb(rvr.__traceback__)
    else:
        frames = traceback.extract_stack()[:-1]
    try:
        out = PrettyStack().parse(frames, rvr)
    except (AttributeError, TypeError):
        out = "".join(traceback.format_list(frames))
    sys.stderr.write(out)