# ==============================================
# UsageStore
# ==============================================
#
# PURPOSE:
#   Keep the usage table on disk so compilation decisions survive a
#   restart. Reads happen once at startup; writes are requested after
#   every change and collapse into one pending background write.
#
# WHAT IS PERSISTED:
#   The whole UsageTable, encoded by UsageCodec, in a single file
#   (default: data/system/package-dex-usage.list).
#
# ==============================================

import logging
import threading
import time
from pathlib import Path
from typing import Optional, Union

from dexusage.errors import UsageFormatError
from dexusage.persistence.atomic_file import AtomicFile
from dexusage.persistence.codec import UsageCodec
from dexusage.usage.usage_table import UsageTable

logger = logging.getLogger(__name__)

WRITER_THREAD_NAME = "DexUsage_DiskWriter"


class UsageStore:
    """Atomic read at startup, debounced atomic writes afterwards."""

    def __init__(
        self,
        table: UsageTable,
        codec: UsageCodec,
        path: Union[str, Path],
        write_delay_seconds: float = 10.0,
    ):
        self._table = table
        self._codec = codec
        self._file = AtomicFile(path)
        self._write_delay = max(0.0, write_delay_seconds)

        # Guards _timer/_dirty only; never held while writing.
        self._state_lock = threading.Lock()
        # Serializes writers (timer thread vs. explicit write_now/flush).
        self._write_lock = threading.Lock()

        self._timer: Optional[threading.Timer] = None
        self._last_timer: Optional[threading.Timer] = None
        self._dirty = False
        self.last_write_time: Optional[float] = None

    @property
    def path(self) -> Path:
        return self._file.path

    @property
    def has_pending_write(self) -> bool:
        with self._state_lock:
            return self._timer is not None

    @property
    def is_dirty(self) -> bool:
        with self._state_lock:
            return self._dirty

    # ======================================
    # Loading
    # ======================================
    def load(self) -> bool:
        """
        Load the usage file into the table.

        Returns:
            True if the table was replaced with the file contents,
            False if there was no usable file.
        """
        try:
            with self._file.open_read() as f:
                data = self._codec.read(f)
        except FileNotFoundError:
            # First boot, or the file was wiped.
            logger.debug("No usage file found at %s", self.path)
            return False
        except (OSError, ValueError) as e:
            # UsageFormatError is a ValueError, as is a UnicodeDecodeError
            # from a garbled file.
            kind = "parse" if isinstance(e, UsageFormatError) else "read"
            logger.warning("Failed to %s package dex usage at %s: %s", kind, self.path, e)
            return False

        self._table.replace_all(data)
        logger.info("Loaded dex usage for %d packages from %s", len(data), self.path)
        return True

    # ======================================
    # Saving
    # ======================================
    def request_async_persist(self) -> bool:
        """
        Ask for the current table to be written in the background.

        Returns:
            True if a write was scheduled, False if one was already
            pending (the pending write will pick up the latest state).
        """
        with self._state_lock:
            self._dirty = True
            if self._timer is not None:
                return False

            timer = threading.Timer(self._write_delay, self._run_scheduled_write)
            timer.name = WRITER_THREAD_NAME
            timer.daemon = True
            self._timer = timer
            self._last_timer = timer
            timer.start()

        logger.debug("Scheduled dex usage write in %.2fs", self._write_delay)
        return True

    def _run_scheduled_write(self) -> None:
        with self._state_lock:
            self._timer = None
        self.write_now()

    def write_now(self) -> bool:
        """
        Write the current table to disk synchronously.

        The table lock is only held while the snapshot is copied; encoding
        and file I/O happen without it.

        Returns:
            True on success, False if the write failed (the previous file
            is left intact).
        """
        with self._write_lock:
            with self._state_lock:
                self._dirty = False

            snapshot = self._table.snapshot()

            f = None
            try:
                f = self._file.start_write()
                self._codec.write(snapshot, f)
                self._file.finish_write(f)
            except (OSError, ValueError) as e:
                # UnicodeEncodeError for dex paths that are not valid UTF-8.
                if f is not None:
                    self._file.fail_write(f)
                with self._state_lock:
                    self._dirty = True
                logger.warning("Failed to write usage for dex files to %s: %s", self.path, e)
                return False

            self.last_write_time = time.time()

        logger.info("Wrote dex usage for %d packages to %s", len(snapshot), self.path)
        return True

    def flush(self) -> bool:
        """
        Cancel any pending background write and write now if needed.

        Returns:
            False if a needed write failed, True otherwise.
        """
        with self._state_lock:
            timer = self._timer
            self._timer = None
            dirty = self._dirty

        if timer is not None:
            timer.cancel()

        if not dirty:
            return True
        return self.write_now()

    def wait(self, timeout: Optional[float] = None) -> None:
        """Block until the most recently scheduled write has finished."""
        with self._state_lock:
            timer = self._last_timer
        if timer is not None:
            timer.join(timeout)

    # ======================================
    # Diagnostics
    # ======================================
    def dump(self) -> str:
        """Encoded form of the current table, as it would be written."""
        return self._codec.encode(self._table.snapshot())
