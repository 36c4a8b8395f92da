"""
Метрики производительности для сравнения стратегий накопления.

Ускорение и эффективность считаются относительно запуска той же стратегии
на одном воркере; пропускная способность измеряется в операциях «точка × центроид ×
измерение» в секунду.
"""

from __future__ import annotations


def speedup(t_serial: float, t_parallel: float) -> float:
    """
    Ускорение параллельного запуска относительно одного воркера.

    Args:
        t_serial: Время запуска на одном воркере
        t_parallel: Время запуска на p воркерах

    Returns:
        t_serial / t_parallel

    Raises:
        ZeroDivisionError: Если t_parallel равно нулю
    """
    if t_parallel == 0:
        raise ZeroDivisionError("Parallel time cannot be zero")
    return t_serial / t_parallel


def efficiency(speedup: float, p: int) -> float:
    """
    Параллельная эффективность: speedup / p.

    1.0 соответствует линейному ускорению.

    Raises:
        ZeroDivisionError: Если p равно нулю
    """
    if p == 0:
        raise ZeroDivisionError("Number of workers cannot be zero")
    return speedup / p


def throughput(
    N: int, K: int, D: int, n_iters: int, total_time: float
) -> float:
    """
    Пропускная способность: (N × K × D × n_iters) / total_time.

    Raises:
        ZeroDivisionError: Если total_time равно нулю
    """
    if total_time == 0:
        raise ZeroDivisionError("Total time cannot be zero")
    return (N * K * D * n_iters) / total_time


def overhead_ratio(t_part: float, t_total: float) -> float:
    """
    Доля времени фазы (например, последовательной редукции) в процентах.

    Возвращает 0.0, если общее время нулевое.
    """
    if t_total == 0:
        return 0.0
    return t_part / t_total * 100.0
