"""
File writers for normalized users.

JSON output is a pretty-printed array of objects. CSV output is a header
row followed by one row per user, quoted per standard CSV rules. Both
are UTF-8 and independent of the process locale.
"""

import csv
import json
from collections.abc import Sequence
from pathlib import Path

import structlog

from user_aggregator.ingestion.schemas import USER_FIELDS, OutputFormat, User

logger = structlog.get_logger(__name__)

OUTPUT_BASENAME = "users"


class OutputWriteError(Exception):
    """Raised when the output file cannot be written."""

    def __init__(self, message: str, path: Path):
        super().__init__(message)
        self.path = path


def output_path(directory: str | Path, fmt: OutputFormat) -> Path:
    """Return <directory>/users.<format>."""
    return Path(directory) / f"{OUTPUT_BASENAME}.{fmt.extension}"


def _write_json(users: Sequence[User], path: Path) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump([user.to_row() for user in users], f, indent=2, ensure_ascii=False)
        f.write("\n")


def _write_csv(users: Sequence[User], path: Path) -> None:
    with open(path, "w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=list(USER_FIELDS), lineterminator="\n")
        writer.writeheader()
        for user in users:
            writer.writerow(user.to_row())


def _remove_partial(path: Path) -> None:
    """Delete a half-written output file, if one was created."""
    if path.is_file():
        try:
            path.unlink()
        except OSError as e:
            logger.warning(
                "Could not remove partial output",
                output_path=str(path),
                reason=str(e),
            )


def write_users(
    users: Sequence[User],
    directory: str | Path,
    fmt: OutputFormat,
) -> Path:
    """
    Serialize users to <directory>/users.<format>.

    Args:
        users: Users to write, in output order
        directory: Existing directory to write into
        fmt: Output format

    Returns:
        Path of the written file

    Raises:
        OutputWriteError: If the directory is missing or the write fails
    """
    path = output_path(directory, fmt)

    if not path.parent.is_dir():
        raise OutputWriteError(f"Output directory does not exist: {path.parent}", path)

    try:
        if fmt is OutputFormat.JSON:
            _write_json(users, path)
        else:
            _write_csv(users, path)
    except UnicodeError as e:
        _remove_partial(path)
        raise OutputWriteError(f"Cannot encode users for {path}: {e}", path) from e
    except OSError as e:
        raise OutputWriteError(f"Cannot write {path}: {e.strerror or e}", path) from e

    logger.info("Wrote users", users=len(users), output_path=str(path))
    return path
