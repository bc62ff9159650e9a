# gridwc/master/app/aggregator.py

import logging
import queue
import threading

from gridwc.common.channel import CancelSignal, PartialQueue
from gridwc.common.job_api import WordCount

log = logging.getLogger("gridwc-master")


def aggregate_counts(cancel: CancelSignal, partials: PartialQueue,
                     final_counts: "queue.Queue", done: threading.Event,
                     poll_interval: float = 0.05) -> bool:
    """Fold partial maps into one combined map until the queue is drained.

    On end-of-stream the combined map is put on `final_counts` and `done` is set.
    On cancellation the partial aggregate is dropped and nothing is published.
    """
    combined: WordCount = {}
    merged = 0

    while True:
        if cancel.is_set():
            log.warning("aggregate canceled after %d partials", merged)
            return False
        try:
            word_count = partials.get(timeout=poll_interval)
        except queue.Empty:
            continue
        if word_count is None:
            break
        for word, count in word_count.items():
            combined[word] = combined.get(word, 0) + count
        merged += 1
        log.debug("merged partial #%d distinct=%d", merged, len(combined))

    final_counts.put(combined)
    done.set()
    log.info("aggregate done partials=%d distinct=%d", merged, len(combined))
    return True
