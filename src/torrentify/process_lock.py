"""Single-run locking on the state directory."""

import fcntl
import os
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from torrentify.config import TorrentifyConfig


class ProcessLock:
    """Prevents two runs from working on the same output tree at once."""

    def __init__(self, config: "TorrentifyConfig") -> None:
        self.lock_file = config.lock_file
        self.lock_fd: int | None = None

    def acquire(self) -> bool:
        """Try to acquire exclusive lock. Returns True if successful."""
        try:
            self.lock_file.parent.mkdir(parents=True, exist_ok=True)
            self.lock_fd = os.open(str(self.lock_file), os.O_CREAT | os.O_WRONLY)
            fcntl.flock(self.lock_fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
            # Write our PID to the lock file for informational purposes
            os.ftruncate(self.lock_fd, 0)
            os.write(self.lock_fd, str(os.getpid()).encode())
            os.fsync(self.lock_fd)
            return True
        except OSError:
            if self.lock_fd is not None:
                os.close(self.lock_fd)
                self.lock_fd = None
            return False

    def release(self) -> None:
        """Release the lock."""
        if self.lock_fd is not None:
            try:
                fcntl.flock(self.lock_fd, fcntl.LOCK_UN)
                os.close(self.lock_fd)
            except OSError:
                pass
            finally:
                self.lock_fd = None

    def holder_pid(self) -> int | None:
        """PID recorded by the current holder, if readable."""
        try:
            return int(self.lock_file.read_text().strip())
        except (OSError, ValueError):
            return None
