#!/usr/bin/env python3
import argparse
import logging
import sys
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import List, Optional

from tqdm import tqdm
from tqdm.contrib.logging import logging_redirect_tqdm

from file_job import FileJob, Success
from result_sink import ResultSink
from worker_pool import CompletionCollector, DrainCancelled, WorkerPool, default_workers

# ====== CONFIGURATION ====== #
OUTPUT_FILE = "word_count_output.txt"  # appended to, never truncated
LOG_FILE = "application.log"           # appended to, "" disables
MAX_WORKERS = default_workers()        # one per CPU
ALLOWED_EXTS = (".txt",)               # case-sensitive suffix match
# =========================== #

logger = logging.getLogger(__name__)

STATUS_DONE = "done"
STATUS_INVALID_DIRECTORY = "invalid_directory"
STATUS_NO_FILES = "no_files"
STATUS_OUTPUT_ERROR = "output_error"


@dataclass
class BatchSummary:
    directory: str
    output_file: str
    max_workers: int = 0
    status: str = STATUS_DONE
    files_found: int = 0
    files_success: int = 0
    files_error: int = 0
    results_lost: int = 0
    total_lines: int = 0
    errors: List[str] = field(default_factory=list)
    start_ts: float = field(default_factory=time.time)
    end_ts: Optional[float] = None

    @property
    def elapsed(self) -> float:
        return (self.end_ts or time.time()) - self.start_ts


def find_text_files(folder: Path) -> List[Path]:
    """Immediate regular files whose name ends with one of ALLOWED_EXTS."""
    return sorted(p for p in folder.iterdir()
                  if p.is_file() and p.name.endswith(ALLOWED_EXTS))


def _eta(start_ts: float, done: int, total: int) -> str:
    elapsed = time.time() - start_ts
    remaining = max(0, (total - done) * elapsed / done)
    return str(timedelta(seconds=int(remaining)))


def process_files(directory, output_file=OUTPUT_FILE, *, max_workers: Optional[int] = None,
                  pool: Optional[WorkerPool] = None, cancel: Optional[threading.Event] = None,
                  progress: bool = True) -> BatchSummary:
    """
    Count words per line of every .txt file in `directory` and append one block per
    file to `output_file`, in the order the files finish.

    The pool (built here unless one is passed in) is always shut down before returning.
    Per-file read errors end up in the output as error lines; only a bad directory or
    an output file that cannot be opened/written ends the batch early.
    """
    folder = Path(directory)
    summary = BatchSummary(directory=str(folder), output_file=str(output_file))

    def end_early(status: str) -> BatchSummary:
        summary.status = status
        summary.end_ts = time.time()
        if pool is not None:
            pool.shutdown()
        return summary

    if not folder.is_dir():
        logger.error("Invalid directory: %s", folder)
        return end_early(STATUS_INVALID_DIRECTORY)

    try:
        files = find_text_files(folder)
    except OSError as e:
        logger.error("Cannot list directory %s: %s", folder, e)
        return end_early(STATUS_INVALID_DIRECTORY)

    summary.files_found = len(files)
    if not files:
        logger.warning("No text files found in directory: %s", folder)
        return end_early(STATUS_NO_FILES)

    if pool is None:
        pool = WorkerPool(max_workers or MAX_WORKERS)
    summary.max_workers = pool.max_workers
    logger.info("Current thread count: %d", pool.max_workers)

    try:
        with ResultSink(output_file) as sink:
            logger.info("Starting file processing...")
            collector = CompletionCollector(pool)

            # ---- Submit ----
            for path in files:
                logger.info("Submitting file: %s", path.name)
                collector.submit(FileJob(path))

            # ---- Drain (completion order) ----
            total = len(files)
            bar = tqdm(total=total, desc="Counting", unit="file", disable=not progress)
            try:
                with logging_redirect_tqdm():
                    for i in range(1, total + 1):
                        try:
                            result = collector.take(cancel)
                        except DrainCancelled as e:
                            logger.error("Error processing file: %s", e)
                            summary.results_lost += 1
                            summary.errors.append(f"result lost: {e}")
                        except Exception as e:
                            logger.error("Error processing file: %s", e)
                            summary.results_lost += 1
                            summary.errors.append(f"worker exception: {type(e).__name__}: {e}")
                        else:
                            sink.write(result)
                            if isinstance(result, Success):
                                summary.files_success += 1
                                summary.total_lines += len(result.line_counts)
                            else:
                                summary.files_error += 1
                                summary.errors.append(f"{result.file_name}: {result.reason}")

                        bar.update(1)
                        bar.set_postfix_str(f"ETA: {_eta(summary.start_ts, i, total)}")
            finally:
                bar.close()
    except OSError as e:
        logger.error("Error writing to output file: %s", e)
        summary.status = STATUS_OUTPUT_ERROR
        summary.errors.append(f"{output_file}: {type(e).__name__}: {e}")
    finally:
        pool.shutdown()

    summary.end_ts = time.time()
    if summary.status == STATUS_OUTPUT_ERROR:
        logger.error("Processing aborted. Output file %s is incomplete", output_file)
    else:
        logger.info("Processing completed. Output written to %s", output_file)
    return summary


def write_summary(summary: BatchSummary, path):
    """Writes the summary report to a file."""
    with open(path, "w", encoding="utf-8") as f:
        f.write(f"Word Count Summary - {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n")
        f.write("==================\n")
        f.write(f"Input folder   : {summary.directory}\n")
        f.write(f"Output file    : {summary.output_file}\n")
        f.write(f"Max workers    : {summary.max_workers}\n")
        f.write(f"Status         : {summary.status}\n\n")

        f.write("=== Files ===\n")
        f.write(f"Found:   {summary.files_found}\n")
        f.write(f"Success: {summary.files_success}\n")
        f.write(f"Errors:  {summary.files_error}\n")
        f.write(f"Lost:    {summary.results_lost}\n\n")

        f.write(f"Total lines    : {summary.total_lines}\n")
        f.write(f"Elapsed (sec)  : {summary.elapsed:.2f}\n")

        if summary.errors:
            f.write("\n=== Errors ===\n")
            for err in summary.errors:
                f.write(f"- {err}\n")


def setup_logging(level: str = "INFO", log_file: Optional[str] = LOG_FILE):
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode="a", encoding="utf-8"))
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=handlers,
        force=True,
    )


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Count words per line in all .txt files within a folder (in parallel)."
    )
    parser.add_argument("folder", type=Path, help="Folder containing .txt files (non-recursive)")
    parser.add_argument("--out", type=Path, default=Path(OUTPUT_FILE),
                        help=f"Output file, appended to (default: {OUTPUT_FILE})")
    parser.add_argument("--workers", type=int, default=MAX_WORKERS,
                        help=f"Worker threads (default: {MAX_WORKERS})")
    parser.add_argument("--log-file", default=LOG_FILE,
                        help=f"Log file, appended to; empty to disable (default: {LOG_FILE})")
    parser.add_argument("--log-level", default="INFO",
                        help="Logging level (default: INFO)")
    parser.add_argument("--summary", type=Path, default=None,
                        help="Optional summary report path")
    parser.add_argument("--no-progress", action="store_true",
                        help="Disable the progress bar")
    args = parser.parse_args(argv)

    setup_logging(args.log_level, args.log_file)

    summary = process_files(args.folder, args.out, max_workers=args.workers,
                            progress=not args.no_progress)

    if args.summary:
        write_summary(summary, args.summary)

    if summary.status == STATUS_INVALID_DIRECTORY:
        return 1
    if summary.status == STATUS_OUTPUT_ERROR:
        return 2
    if summary.status == STATUS_DONE:
        print(f"[DONE] Files: {summary.files_found} | OK: {summary.files_success} | "
              f"Errors: {summary.files_error} | Lost: {summary.results_lost} | "
              f"Lines: {summary.total_lines:,}")
        print(f"[DONE] Output appended to {summary.output_file}")
        print(f"[DONE] Elapsed: {summary.elapsed:.1f}s")
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\n[WARN] Interrupted by user. Re-run to continue.")
        sys.exit(130)
