# gridwc/master/app/main.py

import sys
import queue
import logging
import argparse
import threading
from time import time as now
from typing import BinaryIO, List, Optional, Sequence, Tuple

from gridwc.common.channel import CancelSignal, PartialQueue
from gridwc.common.job_api import (
    DeadlineExceeded, RunState, RunTimeline, TaskState, UsageError, WordCount,
)
from gridwc.worker.app.tokenizer import count_words

from .aggregator import aggregate_counts
from .settings import Settings, settings

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(threadName)s] %(message)s"
)
log = logging.getLogger("gridwc-master")

# ---------------------------------------------------------------------------
# Supervisor
# ---------------------------------------------------------------------------
def run_pipeline_with_timeline(file_paths: Sequence[str],
                               cfg: Optional[Settings] = None) -> Tuple[WordCount, RunTimeline]:
    """Count every file in parallel and merge the results under the global deadline.

    Raises UsageError when no paths are given and DeadlineExceeded when the
    deadline fires first. On timeout, tasks get SHUTDOWN_GRACE_S to unwind; any
    still blocked in I/O are left behind as daemon threads.
    """
    cfg = cfg or settings
    if not file_paths:
        raise UsageError("please provide the file paths as command-line arguments")
    paths: List[str] = list(file_paths)

    tl = RunTimeline(t_start=now())
    for p in paths:
        tl.files[p] = TaskState.RUNNING

    cancel = CancelSignal()
    cancel.arm(cfg.DEADLINE_S)
    partials = PartialQueue(len(paths))
    final_counts: "queue.Queue" = queue.Queue(maxsize=1)
    done = threading.Event()

    max_workers = min(cfg.MAX_TOKENIZERS or len(paths), len(paths))
    slots = threading.BoundedSemaphore(max_workers)
    log.info("run start files=%d tokenizers=%d deadline=%ss", len(paths), max_workers, cfg.DEADLINE_S)

    def _tokenize(p: str):
        with slots:
            try:
                tl.files[p] = count_words(p, cancel, partials)
            except Exception as e:
                log.error("tokenizer crashed file=%s err=%s", p, e)

    tokenizers = [
        threading.Thread(target=_tokenize, args=(p,), name=f"tokenizer_{i}", daemon=True)
        for i, p in enumerate(paths)
    ]

    def _close_when_done():
        try:
            for t in tokenizers:
                t.join()
            tl.t_tokenize_end = now()
        finally:
            partials.close()

    closer = threading.Thread(target=_close_when_done, name="closer", daemon=True)
    aggregator = threading.Thread(
        target=aggregate_counts,
        args=(cancel, partials, final_counts, done, cfg.POLL_INTERVAL_S),
        name="aggregator", daemon=True,
    )
    for t in tokenizers:
        t.start()
    closer.start()
    aggregator.start()

    completed = False
    try:
        while True:
            if done.wait(cfg.POLL_INTERVAL_S):
                completed = True
                break
            if cancel.is_set():
                break
    finally:
        cancel.disarm()
        if not completed:
            # releases tokenizers still scanning
            cancel.cancel("teardown")

    if not completed:
        tl.status = RunState.TIMED_OUT
        log.warning("operation timed out or was canceled (reason=%s)", cancel.reason)
        grace_end = now() + cfg.SHUTDOWN_GRACE_S
        for t in [aggregator, closer]:
            t.join(max(grace_end - now(), 0))
        if closer.is_alive():
            stuck = [p for p, s in tl.files.items() if s == TaskState.RUNNING]
            log.warning("abandoning %d tokenizer(s) blocked in I/O: %s", len(stuck), stuck)
        tl.t_finish = now()
        _log_timeline(tl)
        raise DeadlineExceeded(f"no result within {cfg.DEADLINE_S}s")

    closer.join()
    aggregator.join()
    tl.t_finish = now()
    combined = final_counts.get_nowait()
    tl.status = RunState.SUCCEEDED
    tl.delivered = tl.count(TaskState.COMPLETED)
    _log_timeline(tl)
    return combined, tl


def run_pipeline(file_paths: Sequence[str], cfg: Optional[Settings] = None) -> WordCount:
    combined, _ = run_pipeline_with_timeline(file_paths, cfg)
    return combined


def _log_timeline(tl: RunTimeline):
    log.info(
        "run end status=%s files=%d completed=%d failed_open=%d canceled=%d delivered=%d t_total_s=%.3f",
        tl.status.value, len(tl.files),
        tl.count(TaskState.COMPLETED), tl.count(TaskState.FAILED_OPEN),
        tl.count(TaskState.CANCELLED), tl.delivered, tl.total_s or 0.0,
    )

# ---------------------------------------------------------------------------
# Output / CLI
# ---------------------------------------------------------------------------
def print_counts(counts: WordCount, out: BinaryIO):
    for word, count in counts.items():
        out.write(b"%s: %d\n" % (word, count))


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="gridwc", description="Count word occurrences across files.")
    parser.add_argument("files", nargs="*", metavar="FILE")
    parser.add_argument("--deadline", type=float, default=None,
                        help=f"seconds before the run is canceled (default {settings.DEADLINE_S})")
    args = parser.parse_args(argv)

    cfg = settings
    if args.deadline is not None:
        cfg = settings.model_copy(update={"DEADLINE_S": args.deadline})

    try:
        counts = run_pipeline(args.files, cfg)
    except UsageError as e:
        log.error("%s", e)
        return 2
    except DeadlineExceeded:
        return 1

    out = sys.stdout.buffer
    print_counts(counts, out)
    out.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main())
