import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple, Union

from line_counter import count_words

logger = logging.getLogger(__name__)

SEPARATOR = "-" * 44


@dataclass(frozen=True)
class Success:
    file_name: str
    report: str
    line_counts: Tuple[int, ...] = ()

    @property
    def text(self) -> str:
        return self.report


@dataclass(frozen=True)
class Failure:
    file_name: str
    reason: str

    @property
    def text(self) -> str:
        return f"File: {self.file_name} - Error reading file.\n"


JobResult = Union[Success, Failure]


@dataclass(frozen=True)
class FileJob:
    """One input file. run() never raises: read errors come back as a Failure."""
    path: Path

    @property
    def name(self) -> str:
        return Path(self.path).name

    def run(self) -> JobResult:
        name = self.name
        lines = [f"\nFile: {name}\n", f"{SEPARATOR}\n"]
        counts = []

        try:
            with Path(self.path).open("r", encoding="utf-8", errors="replace") as f:
                for line_no, raw in enumerate(f, 1):
                    words = count_words(raw)
                    counts.append(words)
                    lines.append(f"Line {line_no}: {words} words\n")
                    logger.debug("Processed %s: Line %d -> %d words", name, line_no, words)
        except (OSError, ValueError) as e:
            # Discard lines already counted; only the error line is reported
            logger.warning("Error reading file %s: %s", name, e)
            return Failure(name, f"{type(e).__name__}: {e}")

        logger.info("Successfully processed file: %s", name)
        return Success(name, "".join(lines), tuple(counts))
