# main.py
from __future__ import annotations

import argparse
import json
import logging
import sys
from multiprocessing import cpu_count
from pathlib import Path
from typing import List, Optional

from pkmeans.core.base import DEFAULT_MAX_ITERS, DEFAULT_THRESHOLD
from pkmeans.core.clustering import kmeans_clustering
from pkmeans.core.cpu_multiprocessing import BACKENDS, AccumulationStrategy
from pkmeans.data.dataset import INIT_METHODS, Dataset
from pkmeans.data.io import write_results
from pkmeans.data.validation import validate_dataset
from pkmeans.metrics.timers import Timer
from pkmeans.utils.logging import format_run_prefix, setup_logger


def _add_input_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-i", "--input", type=Path, required=True, help="Файл с точками.")
    parser.add_argument(
        "-b",
        "--binary",
        action="store_true",
        help="Входной файл в бинарном формате (int32 N, int32 D, float32 данные).",
    )
    parser.add_argument("-n", "--clusters", type=int, required=True, help="Число кластеров K.")
    parser.add_argument(
        "-t",
        "--threshold",
        type=float,
        default=DEFAULT_THRESHOLD,
        help="Порог доли точек, сменивших кластер (по умолчанию %(default)s).",
    )
    parser.add_argument(
        "--max-iters",
        type=int,
        default=DEFAULT_MAX_ITERS,
        help="Лимит итераций (по умолчанию %(default)s).",
    )
    parser.add_argument(
        "--backend",
        choices=BACKENDS,
        default="process",
        help="Воркеры: процессы (multiprocessing.Pool) или потоки (ThreadPool).",
    )
    parser.add_argument(
        "--init",
        choices=INIT_METHODS,
        default="first",
        help="Выбор начальных центроидов: первые K точек или случайные K точек.",
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed для --init random.")
    parser.add_argument("-q", "--quiet", action="store_true", help="Только предупреждения и ошибки.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pkmeans",
        description="Параллельный k-means (алгоритм Ллойда) на общей памяти.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Кластеризовать один файл.")
    _add_input_args(run)
    run.add_argument(
        "-a",
        "--atomic",
        action="store_true",
        help="Накопление сумм через общий аккумулятор с блокировками "
        "(по умолчанию: приватные аккумуляторы + редукция).",
    )
    run.add_argument(
        "-p",
        "--workers",
        type=int,
        default=cpu_count(),
        help="Число воркеров (по умолчанию %(default)s).",
    )
    run.add_argument(
        "-o",
        "--output",
        action="store_true",
        help="Записать <input>.cluster_centres и <input>.membership.",
    )

    bench = sub.add_parser("bench", help="Сравнить стратегии накопления по числу воркеров.")
    _add_input_args(bench)
    bench.add_argument(
        "--workers",
        type=int,
        nargs="+",
        default=[1, 2, 4],
        help="Список чисел воркеров (по умолчанию %(default)s).",
    )
    bench.add_argument(
        "--strategies",
        nargs="+",
        choices=[s.value for s in AccumulationStrategy],
        default=[s.value for s in AccumulationStrategy],
    )
    bench.add_argument("--repeats", type=int, default=3)
    bench.add_argument("--warmup", type=int, default=1)
    bench.add_argument(
        "--max-seconds",
        type=float,
        default=None,
        help="Лимит времени на серию прогонов одной конфигурации.",
    )
    bench.add_argument(
        "--results",
        type=Path,
        default=Path("pkmeans_bench_results.ndjson"),
        help="Файл NDJSON с результатами (по умолчанию %(default)s).",
    )

    gen = sub.add_parser("generate", help="Сгенерировать синтетический набор точек.")
    gen.add_argument("-o", "--output", type=Path, required=True)
    gen.add_argument("-N", type=int, required=True, help="Число точек.")
    gen.add_argument("-D", type=int, required=True, help="Размерность.")
    gen.add_argument("-K", type=int, required=True, help="Число центров.")
    gen.add_argument("--std", type=float, default=1.0, help="Разброс вокруг центров.")
    gen.add_argument("--seed", type=int, default=42)
    gen.add_argument("-b", "--binary", action="store_true")
    gen.add_argument("-q", "--quiet", action="store_true")

    return parser


def _load(args: argparse.Namespace, logger: logging.Logger) -> Dataset:
    with Timer() as t_io:
        dataset = Dataset.load(args.input, binary=args.binary)
        dataset.select_centroids(args.clusters, method=args.init, seed=args.seed)
        validate_dataset(dataset)
    logger.info(f"I/O time: {t_io.elapsed:.4f} sec")
    return dataset


def cmd_run(args: argparse.Namespace, logger: logging.Logger) -> int:
    dataset = _load(args, logger)
    strategy = AccumulationStrategy.ATOMIC if args.atomic else AccumulationStrategy.THREAD_LOCAL
    meta = {**dataset.meta(), "strategy": strategy.value, "workers": args.workers}
    prefix = format_run_prefix(meta)

    with Timer() as t_comp:
        result = kmeans_clustering(
            dataset.X,
            dataset.initial_centroids,
            threshold=args.threshold,
            strategy=strategy,
            n_workers=args.workers,
            max_iters=args.max_iters,
            backend=args.backend,
            logger=logger,
        )

    logger.info(
        f"{prefix} Computation time: {t_comp.elapsed:.4f} sec, "
        f"iterations={result.n_iters}, status={result.status.value}, "
        f"changed={result.fraction_changed:.4f}"
    )

    if args.output:
        with Timer() as t_out:
            write_results(args.input, result.centroids, result.labels)
        logger.info(f"Output time: {t_out.elapsed:.4f} sec")

    return 0


def cmd_bench(args: argparse.Namespace, logger: logging.Logger) -> int:
    from pkmeans.experiments.sweep import run_strategy_sweep

    dataset = _load(args, logger)

    # Потоковая запись результатов в NDJSON, чтобы не ждать окончания всех запусков.
    args.results.write_text("", encoding="utf-8")

    def sink_writer(rec: dict) -> None:
        with open(args.results, "a", encoding="utf-8") as f:
            f.write(json.dumps(rec, ensure_ascii=False))
            f.write("\n")

    results = run_strategy_sweep(
        dataset.X,
        dataset.initial_centroids,
        workers=args.workers,
        strategies=args.strategies,
        threshold=args.threshold,
        max_iters=args.max_iters,
        backend=args.backend,
        repeats=args.repeats,
        warmup=args.warmup,
        max_seconds=args.max_seconds,
        logger=logger,
        result_sink=sink_writer,
    )

    logger.info(f"Finished {len(results)} configurations")
    logger.info(f"Results saved to {args.results}")
    return 0


def cmd_generate(args: argparse.Namespace, logger: logging.Logger) -> int:
    from pkmeans.data.generate import BlobsConfig, generate_to_file

    config = BlobsConfig(N=args.N, D=args.D, K=args.K, cluster_std=args.std, seed=args.seed)
    path = generate_to_file(args.output, config, binary=args.binary)
    logger.info(f"Generated N={args.N} D={args.D} K={args.K} points into {path}")
    return 0


COMMANDS = {
    "run": cmd_run,
    "bench": cmd_bench,
    "generate": cmd_generate,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logger = setup_logger(logging.WARNING if args.quiet else logging.INFO)

    try:
        return COMMANDS[args.command](args, logger)
    except (OSError, ValueError) as e:
        logger.error(f"{args.command} failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
