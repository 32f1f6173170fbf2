"""Data ingestion routines for the activity table."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

import pandas as pd
from pydantic import ValidationError as PydanticValidationError

from ..models.activity import Activity
from .validator import MalformedActivityError, ValidationError


@dataclass
class LoadResult:
    """Represents the outcome of a data load operation."""

    activities: List[Activity]
    dataframe: pd.DataFrame
    outcome_count: int


class ActivityLoader:
    """Load activities from a delimited table.

    The first column is the activity number, followed by K duration columns
    and then K probability columns. Header names are not interpreted.
    """

    def __init__(self, delimiter: str = ",") -> None:
        self.delimiter = delimiter

    def load_activities(self, file_path: str) -> LoadResult:
        """Load activity data from a CSV file."""
        dataframe = self._read_csv(file_path)
        return self.load_activities_from_dataframe(dataframe)

    def load_activities_from_dataframe(self, dataframe: pd.DataFrame) -> LoadResult:
        """Create activity records from an in-memory dataframe."""
        outcome_count = self._outcome_count(dataframe)
        activities = self._build_activities(dataframe, outcome_count)
        return LoadResult(
            activities=activities,
            dataframe=dataframe.copy(),
            outcome_count=outcome_count,
        )

    def _read_csv(self, file_path: str) -> pd.DataFrame:
        """Read the CSV keeping every cell as text so decimals stay exact."""
        try:
            return pd.read_csv(
                file_path,
                sep=self.delimiter,
                dtype=str,
                skipinitialspace=True,
                skip_blank_lines=True,
            )
        except FileNotFoundError as exc:
            raise ValidationError(f"File not found: {file_path}") from exc
        except pd.errors.EmptyDataError as exc:
            raise ValidationError(f"File is empty: {file_path}") from exc
        except pd.errors.ParserError as exc:
            raise ValidationError(f"Unable to parse CSV: {exc}") from exc

    @staticmethod
    def _outcome_count(dataframe: pd.DataFrame) -> int:
        columns = dataframe.shape[1]
        if columns < 3 or (columns - 1) % 2 != 0:
            raise ValidationError(
                f"Expected an activity column followed by K duration and K probability "
                f"columns; found {columns} columns."
            )
        if dataframe.empty:
            raise ValidationError("No activity rows found.")
        return (columns - 1) // 2

    @staticmethod
    def _build_activities(dataframe: pd.DataFrame, outcome_count: int) -> List[Activity]:
        """Convert dataframe rows into Activity models."""
        activities: List[Activity] = []
        for position, row in enumerate(dataframe.itertuples(index=False, name=None)):
            if any(pd.isna(value) for value in row):
                raise MalformedActivityError(
                    f"Row {position + 1} has missing values."
                )
            try:
                activity = Activity(
                    activity_number=row[0],
                    durations=row[1 : 1 + outcome_count],
                    probabilities=row[1 + outcome_count : 1 + 2 * outcome_count],
                )
            except PydanticValidationError as exc:
                raise MalformedActivityError(
                    f"Row {position + 1} could not be parsed: {exc.errors()[0]['msg']}"
                ) from exc
            activities.append(activity)
        return activities


__all__ = ["ActivityLoader", "LoadResult"]
