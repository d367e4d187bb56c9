"""Metrics sink.

Services receive a sink instead of touching module-level counters, so tests
can hand in their own instance and assert on what was emitted.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

Tags = tuple[tuple[str, str], ...]


def _tags(tags: dict[str, Any]) -> Tags:
    return tuple(sorted((k, str(v)) for k, v in tags.items()))


class MetricsSink(ABC):
    @abstractmethod
    def increment(self, name: str, value: int = 1, **tags: Any) -> None:
        ...

    @abstractmethod
    def observe(self, name: str, value: float, **tags: Any) -> None:
        ...

    def snapshot(self) -> dict[str, Any]:
        return {}

    def reset(self) -> None:
        pass


@dataclass
class Histogram:
    count: int = 0
    total: float = 0.0
    min: float | None = None
    max: float | None = None

    def add(self, value: float) -> None:
        self.count += 1
        self.total += value
        self.min = value if self.min is None else min(self.min, value)
        self.max = value if self.max is None else max(self.max, value)

    @property
    def avg(self) -> float:
        return self.total / self.count if self.count else 0.0


@dataclass
class InMemoryMetrics(MetricsSink):
    counters: dict[tuple[str, Tags], int] = field(default_factory=dict)
    histograms: dict[tuple[str, Tags], Histogram] = field(default_factory=dict)

    def increment(self, name: str, value: int = 1, **tags: Any) -> None:
        key = (name, _tags(tags))
        self.counters[key] = self.counters.get(key, 0) + value

    def observe(self, name: str, value: float, **tags: Any) -> None:
        key = (name, _tags(tags))
        self.histograms.setdefault(key, Histogram()).add(value)

    def count(self, name: str, **tags: Any) -> int:
        """Sum of a counter across every tag set that includes ``tags``."""
        wanted = set(_tags(tags))
        return sum(
            value
            for (counter, counter_tags), value in self.counters.items()
            if counter == name and wanted <= set(counter_tags)
        )

    def snapshot(self) -> dict[str, Any]:
        def label(name: str, tags: Tags) -> str:
            if not tags:
                return name
            return name + "{" + ",".join(f"{k}={v}" for k, v in tags) + "}"

        return {
            "counters": {label(n, t): v for (n, t), v in sorted(self.counters.items())},
            "histograms": {
                label(n, t): {
                    "count": h.count,
                    "avg": round(h.avg, 3),
                    "min": h.min,
                    "max": h.max,
                }
                for (n, t), h in sorted(self.histograms.items(), key=lambda item: item[0])
            },
        }

    def reset(self) -> None:
        self.counters.clear()
        self.histograms.clear()
