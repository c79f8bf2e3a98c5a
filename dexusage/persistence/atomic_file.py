# ==============================================
# AtomicFile
# ==============================================
#
# PURPOSE:
#   Crash-safe replacement of a whole file. Writers get a temp file in
#   the same directory; finish_write() fsyncs it and renames it over the
#   target, fail_write() throws it away. A crash at any point leaves
#   either the old or the new file, never a partial one.
#
# USAGE:
# ------
#   f = atomic.start_write()
#   try:
#       f.write(text)
#       atomic.finish_write(f)
#   except OSError:
#       atomic.fail_write(f)
#       raise
#
# ==============================================

import os
import tempfile
from pathlib import Path
from typing import TextIO, Union


class AtomicFile:
    """Whole-file atomic writes via temp file + rename."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    # ======================================
    # Reading
    # ======================================
    def open_read(self) -> TextIO:
        """
        Open the current file for reading.

        Raises:
            FileNotFoundError: nothing has been written yet
        """
        return open(self.path, "r", encoding="utf-8")

    # ======================================
    # Writing
    # ======================================
    def start_write(self) -> TextIO:
        """Open a temp file next to the target for writing."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_path = tempfile.mkstemp(
            dir=self.path.parent,
            prefix=f".{self.path.name}.",
            suffix=".tmp",
        )
        os.close(fd)
        # Reopened by name so f.name is the temp path.
        return open(temp_path, "w", encoding="utf-8")

    def finish_write(self, f: TextIO) -> None:
        """Flush the temp file to disk and publish it over the target."""
        temp_path = f.name
        f.flush()
        os.fsync(f.fileno())
        f.close()
        os.replace(temp_path, self.path)

    def fail_write(self, f: TextIO) -> None:
        """Discard a temp file; the target is left untouched."""
        temp_path = f.name
        f.close()
        try:
            os.unlink(temp_path)
        except FileNotFoundError:
            pass
