#!/usr/bin/env python3
"""
Export utilities for curation data
Writes cluster details as JSON and tabular results as CSV.
"""
import json
import logging
import os
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Union

import numpy as np
import pandas as pd

from ecod_curation.exceptions import ExportError
from ecod_curation.models.cluster import ClusterDetail

logger = logging.getLogger("ecod_curation.utils.export")


def json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, np.generic):
        return value.item()
    if hasattr(value, 'to_dict'):
        return value.to_dict()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def cluster_export_filename(cluster_number: int) -> str:
    return f"cluster-{cluster_number}-export.json"


def export_cluster_json(detail: ClusterDetail, output_dir: str) -> str:
    """Write a cluster detail to ``cluster-<number>-export.json``

    Args:
        detail: Cluster detail
        output_dir: Directory to write to (created if missing)

    Returns:
        Path of the written file

    Raises:
        ExportError: If the file cannot be written
    """
    path = os.path.join(output_dir, cluster_export_filename(detail.cluster.cluster_number))
    try:
        payload = json.dumps(detail.to_dict(), indent=2, default=json_default)
        os.makedirs(output_dir, exist_ok=True)
        with open(path, 'w') as f:
            f.write(payload)
    except (OSError, TypeError, ValueError) as e:
        raise ExportError(f"Error exporting cluster {detail.cluster.id}: {str(e)}",
                          {"path": path}) from e

    logger.info(f"Exported cluster {detail.cluster.cluster_number} to {path}")
    return path


def records_to_frame(records: Union[pd.DataFrame, Iterable[Any]],
                     columns: Optional[List[str]] = None) -> pd.DataFrame:
    """Build a DataFrame from models (via to_flat_dict/to_dict) or plain rows"""
    if isinstance(records, pd.DataFrame):
        frame = records
    else:
        rows: List[Dict[str, Any]] = []
        for record in records:
            if hasattr(record, 'to_flat_dict'):
                rows.append(record.to_flat_dict())
            elif hasattr(record, 'to_dict'):
                rows.append(record.to_dict())
            else:
                rows.append(dict(record))
        frame = pd.DataFrame(rows)

    if columns:
        frame = frame.reindex(columns=columns)
    return frame


def export_csv(records: Union[pd.DataFrame, Iterable[Any]], path: str,
               columns: Optional[List[str]] = None) -> str:
    """Write records to a CSV file

    Args:
        records: DataFrame, models or dict rows
        path: Output path (parent directory created if missing)
        columns: Column order (missing columns are written empty)

    Returns:
        Path of the written file

    Raises:
        ExportError: If the file cannot be written
    """
    frame = records_to_frame(records, columns)
    try:
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        frame.to_csv(path, index=False)
    except OSError as e:
        raise ExportError(f"Error writing CSV {path}: {str(e)}", {"path": path}) from e

    logger.info(f"Wrote {len(frame)} rows to {path}")
    return path
