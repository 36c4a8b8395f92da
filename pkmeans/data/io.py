"""
Чтение входных точек и запись результатов кластеризации.

Форматы:
- текстовый: одна точка на строку, первый токен является идентификатором точки
  (игнорируется), далее D координат; пустые строки и строки с # пропускаются;
- бинарный: int32 N, int32 D, затем N×D значений float32 (point-major,
  нативный порядок байт);
- результат: <input>.cluster_centres (K строк «k c1 … cD») и
  <input>.membership (N строк «i label»).
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np

logger = logging.getLogger(__name__)

CENTRES_SUFFIX = ".cluster_centres"
MEMBERSHIP_SUFFIX = ".membership"


def read_text_points(path: str | Path) -> np.ndarray:
    """
    Загружает точки из текстового файла.

    Returns:
        Массив (N, D) float64

    Raises:
        ValueError: Если файл пуст или строки имеют разное число координат
    """
    path = Path(path)
    rows: list[np.ndarray] = []

    with open(path, "r", encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            line = line.strip()
            # Пропускаем комментарии и пустые строки
            if not line or line.startswith("#"):
                continue

            parts = line.split()
            if len(parts) < 2:
                raise ValueError(f"{path}:{lineno}: expected id and coordinates")
            try:
                values = np.array(parts[1:], dtype=np.float64)
            except ValueError as exc:
                raise ValueError(f"{path}:{lineno}: {exc}") from exc

            if rows and values.shape[0] != rows[0].shape[0]:
                raise ValueError(
                    f"{path}:{lineno}: expected {rows[0].shape[0]} coordinates, "
                    f"got {values.shape[0]}"
                )
            rows.append(values)

    if not rows:
        raise ValueError(f"{path}: no points found")

    X = np.vstack(rows)
    logger.info(f"Loaded {X.shape[0]} points (D={X.shape[1]}) from {path}")
    return X


def read_binary_points(path: str | Path) -> np.ndarray:
    """
    Загружает точки из бинарного файла (заголовок int32 N, int32 D).

    Returns:
        Массив (N, D) float64

    Raises:
        ValueError: Если заголовок некорректен или данных меньше, чем N×D
    """
    path = Path(path)
    raw = path.read_bytes()

    if len(raw) < 8:
        raise ValueError(f"{path}: file is too short for a header")
    N, D = (int(v) for v in np.frombuffer(raw, dtype=np.int32, count=2))
    if N <= 0 or D <= 0:
        raise ValueError(f"{path}: invalid header N={N}, D={D}")

    expected = 8 + N * D * 4
    if len(raw) < expected:
        raise ValueError(f"{path}: expected {expected} bytes, got {len(raw)}")

    values = np.frombuffer(raw, dtype=np.float32, count=N * D, offset=8)
    X = values.reshape(N, D).astype(np.float64)
    logger.info(f"Loaded {N} points (D={D}) from {path}")
    return X


def write_binary_points(path: str | Path, X: np.ndarray) -> None:
    """Записывает точки в бинарном формате (float32)."""
    X = np.asarray(X)
    with open(path, "wb") as f:
        np.array(X.shape, dtype=np.int32).tofile(f)
        np.ascontiguousarray(X, dtype=np.float32).tofile(f)


def write_text_points(path: str | Path, X: np.ndarray) -> None:
    """Записывает точки в текстовом формате (идентификатор = номер строки)."""
    with open(path, "w", encoding="utf-8") as f:
        for i, row in enumerate(np.asarray(X)):
            coords = " ".join(f"{v:.6f}" for v in row)
            f.write(f"{i} {coords}\n")


def write_results(
    input_path: str | Path, centroids: np.ndarray, labels: np.ndarray
) -> tuple[Path, Path]:
    """
    Сохраняет центроиды и принадлежность точек рядом с входным файлом.

    Returns:
        Пути (cluster_centres, membership)
    """
    input_path = Path(input_path)
    centres_path = input_path.with_name(input_path.name + CENTRES_SUFFIX)
    membership_path = input_path.with_name(input_path.name + MEMBERSHIP_SUFFIX)

    with open(centres_path, "w", encoding="utf-8") as f:
        for k, row in enumerate(centroids):
            coords = " ".join(f"{v:f}" for v in row)
            f.write(f"{k} {coords}\n")

    with open(membership_path, "w", encoding="utf-8") as f:
        for i, label in enumerate(labels):
            f.write(f"{i} {int(label)}\n")

    logger.info(f"Results written to {centres_path} and {membership_path}")
    return centres_path, membership_path
