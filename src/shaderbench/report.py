"""
Tabular benchmark report.
"""

import csv
import logging
from pathlib import Path
from typing import Iterable, List, Sequence, Union

logger = logging.getLogger(__name__)

REPORT_FIELDS = (
    'mode',
    'filter',
    'transform',
    'resolution',
    'build',
    'avg_fps',
    'min_fps',
    'max_fps',
    'std_fps',
    'samples',
)


def write_summary_csv(results: Sequence['BenchmarkResult'], path: Union[str, Path]) -> Path:
    """
    Write one CSV row per result, in run order.

    Returns:
        The path written
    """
    path = Path(path)
    if path.parent and not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)

    with path.open('w', newline='', encoding='utf-8') as handle:
        writer = csv.DictWriter(handle, fieldnames=REPORT_FIELDS)
        writer.writeheader()
        for result in results:
            writer.writerow(result.as_row())

    logger.info("Wrote %d result rows to %s", len(results), path)
    return path


def format_summary(results: Iterable['BenchmarkResult']) -> List[str]:
    """Console summary, one line per result."""
    lines = []
    for result in results:
        row = result.as_row()
        lines.append(
            f"{row['mode']} | {row['filter']} | {row['transform']} | "
            f"{row['resolution']} | {row['build']} => "
            f"{result.avg_fps:.1f} FPS (n={result.samples})"
        )
    return lines
