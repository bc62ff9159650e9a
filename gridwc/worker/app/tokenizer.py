# gridwc/worker/app/tokenizer.py

import logging
from typing import Iterable

from gridwc.common.channel import CancelSignal, PartialQueue
from gridwc.common.job_api import TaskState, WordCount

log = logging.getLogger("gridwc-worker")

CHUNK_SIZE = 64 * 1024


def count_tokens(chunks: Iterable[bytes], cancel: CancelSignal, counts: WordCount) -> bool:
    """Accumulate lowercased whitespace-delimited tokens from raw byte chunks.

    A token cut by a chunk boundary is carried into the next chunk. Returns False
    as soon as cancellation is observed, True at end of input.
    """
    tail = b""
    for chunk in chunks:
        if cancel.is_set():
            return False
        data = tail + chunk
        # bytes.split() splits on ASCII whitespace; lower() folds ASCII only
        words = data.split()
        tail = b""
        if words and not data[-1:].isspace():
            tail = words.pop()
        for word in words:
            if cancel.is_set():
                return False
            word = word.lower()
            counts[word] = counts.get(word, 0) + 1

    if tail:
        if cancel.is_set():
            return False
        tail = tail.lower()
        counts[tail] = counts.get(tail, 0) + 1
    return True


def count_words(file_path: str, cancel: CancelSignal, sink: PartialQueue) -> TaskState:
    """Count one file and put at most one partial map on the sink.

    Open failures emit nothing. A read error mid-scan is logged and whatever was
    already counted is still emitted.
    """
    if cancel.is_set():
        log.warning("processing canceled for file %s", file_path)
        return TaskState.CANCELLED

    try:
        f = open(file_path, "rb")
    except OSError as e:
        log.error("failed to open file %s: %s", file_path, e)
        return TaskState.FAILED_OPEN

    counts: WordCount = {}
    with f:
        log.debug("scan start file=%s", file_path)
        try:
            finished = count_tokens(iter(lambda: f.read(CHUNK_SIZE), b""), cancel, counts)
        except OSError as e:
            log.warning("error reading file %s: %s", file_path, e)
            finished = True
        # the open itself may have outlived the deadline
        if not finished or cancel.is_set():
            log.warning("processing canceled for file %s", file_path)
            return TaskState.CANCELLED

    sink.put(counts)
    log.debug("scan end file=%s distinct=%d", file_path, len(counts))
    return TaskState.COMPLETED
