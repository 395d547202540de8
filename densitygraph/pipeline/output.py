"""JSON output formatter for engine results.

Serializes a run into a summary block, the failed and empty index logs,
and every cumulative histogram as a list of point counts.
"""

import json
from pathlib import Path
from typing import Any, Dict, List

from densitygraph.models.data_models import Histogram, RunResult


class JSONOutputFormatter:
    """
    Formats run results as JSON.

    Example output structure:
    {
        "grid": {"columns": 3, "rows": 3, "batch_count": 3},
        "summary": {
            "progress": 100,
            "completed": true,
            "histogram_count": 3,
            "failed_count": 0,
            "empty_count": 0,
            "largest_multiple": 3,
            "elapsed_seconds": 0.01,
            "fetch_attempts": 3,
            "retries": 0
        },
        "failed_indices": [],
        "empty_indices": [],
        "histograms": [[{"x": 0, "y": 0, "count": 1}, ...], ...]
    }
    """

    def format(self, result: RunResult) -> Dict[str, Any]:
        """
        Format run result as JSON-serializable dictionary.

        Args:
            result: Complete engine run result

        Returns:
            Dictionary with grid, summary, index logs and histograms
        """
        return {
            "grid": {
                "columns": result.grid.columns,
                "rows": result.grid.rows,
                "batch_count": result.grid.batch_count,
            },
            "summary": self._format_summary(result),
            "failed_indices": list(result.failed_indices),
            "empty_indices": list(result.empty_indices),
            "histograms": [self.format_histogram(h) for h in result.histograms],
        }

    def _format_summary(self, result: RunResult) -> Dict[str, Any]:
        latest = result.latest
        stats = result.stats
        return {
            "progress": result.progress,
            "completed": result.completed,
            "histogram_count": len(result.histograms),
            "failed_count": len(result.failed_indices),
            "empty_count": len(result.empty_indices),
            "largest_multiple": latest.largest_multiple if latest is not None else 0,
            "elapsed_seconds": round(result.elapsed_seconds, 2),
            "fetch_attempts": stats.fetch_attempts if stats else None,
            "retries": stats.retries if stats else None,
        }

    @staticmethod
    def format_histogram(histogram: Histogram) -> List[Dict[str, int]]:
        """Point counts ordered by row, then column."""
        return [
            {"x": point.x, "y": point.y, "count": count}
            for point, count in sorted(histogram.items(), key=lambda item: (item[0].y, item[0].x))
        ]

    def save(self, result: RunResult, path: str = "out/histograms.json") -> None:
        """
        Save formatted result to JSON file.

        Creates parent directories if they don't exist.

        Args:
            result: Run result to save
            path: Output file path
        """
        output_path = Path(path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        formatted_data = self.format(result)

        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(formatted_data, f, indent=2, ensure_ascii=False)
