#!filepath: jobmatch/observability/instrumentation.py
from __future__ import annotations

from collections import OrderedDict
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict

from jobmatch import logs
from jobmatch.observability.timer import Timer


@dataclass
class Instrumentation:
    """
    Per-run phase timing.

    - timeline only records leaf timers (record=True)
    - record=False timers only bound wall time, no side effects
    - nothing is logged on the hot path; call report() once at the end
    """

    enabled: bool = True

    def __post_init__(self):
        self._timer = Timer(enabled=self.enabled)
        # timeline: OrderedDict[leaf_name, elapsed_seconds]
        self.timeline: Dict[str, float] = OrderedDict()

    def timer(self, name: str, *, record: bool = True):
        inst = self

        @contextmanager
        def _ctx():
            if not inst.enabled:
                yield
                return

            inst._timer.start(name)
            try:
                yield
            finally:
                elapsed = inst._timer.end(name)
                if record:
                    inst.timeline[name] = elapsed

        return _ctx()

    def total(self) -> float:
        return sum(self.timeline.values())

    def report(self, title: str) -> str:
        """Log the timeline as one block and return it."""
        if not self.timeline:
            return ""
        total = self.total() or 1.0
        lines = [f"[Timeline] {title}"]
        for name, sec in self.timeline.items():
            lines.append(f"  {name:<12} {sec:8.3f}s  {sec / total * 100:5.1f}%")
        text = "\n".join(lines)
        logs.info(text)
        return text
