"""Label text for map tooltips."""

import string
from typing import Any, Mapping

import numpy as np
import pandas as pd

from ..errors import InvalidDataError


class LabelFormatter(string.Formatter):
    """str.format that prints a placeholder for missing values instead of 'nan'."""

    def __init__(self, missing: str = "N/A"):
        super().__init__()
        self.missing = missing

    def format_field(self, value: Any, format_spec: str) -> str:
        if value is None or (np.ndim(value) == 0 and pd.isna(value)):
            return self.missing
        return super().format_field(value, format_spec)


def build_labels(dataset: pd.DataFrame,
                 template: str,
                 fields: Mapping[str, str],
                 missing: str = "N/A") -> pd.Series:
    """
    Build one label string per unit.

    Args:
        dataset: Units to label
        template: str.format template, e.g. "{name}<br>{pct:.1f}%"
        fields: Template placeholder -> dataset column
        missing: Text used for missing values

    Returns:
        Series of labels aligned with `dataset`
    """
    absent = [column for column in fields.values() if column not in dataset.columns]
    if absent:
        raise InvalidDataError(f"Label columns not found in dataset: {absent}")

    formatter = LabelFormatter(missing)
    columns = {placeholder: dataset[column].tolist() for placeholder, column in fields.items()}
    labels = [
        formatter.format(template, **{placeholder: values[i] for placeholder, values in columns.items()})
        for i in range(len(dataset))
    ]
    return pd.Series(labels, index=dataset.index, name='label')
