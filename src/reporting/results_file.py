"""
Results file persistence.

The run result is always written, whatever happens to the notifications, as
``apportionment-results-<timestamp>.json`` (indent 2). The timestamp has millisecond resolution.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from src.core.reconciliation.models import RunResult


logger = logging.getLogger(__name__)


RESULTS_PREFIX = 'apportionment-results'


def results_filename(moment: Optional[datetime] = None) -> str:
    """File name for a run finished at ``moment`` (default: now)."""
    moment = moment or datetime.now()
    stamp = f"{moment.strftime('%Y-%m-%dT%H-%M-%S')}-{moment.microsecond // 1000:03d}"
    return f"{RESULTS_PREFIX}-{stamp}.json"


def write_results_file(result: RunResult, output_dir: Union[str, Path] = '.',
                       moment: Optional[datetime] = None) -> Path:
    """
    Write the run result as JSON.

    Args:
        result: Finished run
        output_dir: Target directory (created if missing)
        moment: Timestamp used in the file name

    Returns:
        Path of the written file
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    output_file = output_dir / results_filename(moment)

    with open(output_file, 'w', encoding='utf-8') as f:
        json.dump(result.to_dict(), f, indent=2, ensure_ascii=False)

    logger.info(f"Results saved to: {output_file}")
    return output_file
