"""
Таймеры для замеров фаз кластеризации.

Timer: контекстный менеджер поверх time.perf_counter(): монотонные часы
с наибольшим доступным разрешением, не зависящие от системного времени.
"""
from __future__ import annotations
import time
from typing import Any


class Timer:
    """
    Контекстный менеджер для замера времени блока кода.

    После выхода из блока elapsed хранит длительность последнего замера,
    а total хранит суммарное время всех замеров этим экземпляром.

    Пример использования:
        with Timer() as t:
            model.fit(X, centroids)
        print(t.elapsed)
    """

    def __init__(self) -> None:
        self.start: float = 0.0
        self.end: float = 0.0
        self.elapsed: float = 0.0
        self.total: float = 0.0
        self.count: int = 0

    def __enter__(self) -> Timer:
        self.start = time.perf_counter()
        return self

    def __exit__(self, *args: Any) -> None:
        self.end = time.perf_counter()
        self.elapsed = self.end - self.start
        self.total += self.elapsed
        self.count += 1

    def __repr__(self) -> str:
        return f"Timer(elapsed={self.elapsed:.6f}s, total={self.total:.6f}s, count={self.count})"
