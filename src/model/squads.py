#!/usr/bin/env python3
"""
Squad Data Models
=================

Pydantic models for the player records produced by the pipeline.
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any, Type
from datetime import date
from enum import Enum

import pandas as pd


class Position(Enum):
    """Playing positions as printed in the squad lists."""
    GK = "GK"
    DF = "DF"
    MF = "MF"
    FW = "FW"


class PlayerRecord(BaseModel):
    """One player from the normalized squad-list PDF."""
    team: str = Field(..., description="Canonical country/squad name")
    shirt_number: int = Field(..., ge=1, description="Shirt number, unique within a team")
    position: Position = Field(..., description="Playing position")
    display_name: Optional[str] = Field(None, description="Player name")
    birth_date: date = Field(..., description="Date of birth")
    shirt_label: Optional[str] = Field(None, description="Short name printed on the jersey")
    club: Optional[str] = Field(None, description="Club name without the league code")
    league: Optional[str] = Field(None, description="League code of the club")
    height: Optional[float] = Field(None, description="Height in cm")
    weight: Optional[float] = Field(None, description="Weight in kg")
    age: float = Field(..., description="Age in fractional years at the tournament start")


class WebRecord(BaseModel):
    """One player scraped from the squad web page."""
    team: str = Field(..., description="Squad heading the player was listed under")
    shirt_number: int = Field(..., ge=0, description="Shirt number")
    display_name: str = Field(..., description="Linked player name")
    caps: int = Field(..., ge=0, description="Appearances for the national team")


class MergedRecord(PlayerRecord):
    """A PlayerRecord joined with its WebRecord; web fields are None when unmatched."""
    caps: Optional[int] = Field(None, ge=0, description="Appearances for the national team")


def records_from_frame(frame: pd.DataFrame, model: Type[BaseModel]) -> List[BaseModel]:
    """
    Validate every row of a table against a record model.

    Missing values (NaN/NaT/NA) are passed to the model as ``None``.

    Args:
        frame: Table whose columns include the model's fields
        model: Pydantic model class

    Returns:
        List of model instances in row order
    """
    fields = [name for name in model.model_fields if name in frame.columns]
    records = []
    for row in frame[fields].to_dict(orient='records'):
        records.append(model(**{key: _none_if_missing(value) for key, value in row.items()}))
    return records


def _none_if_missing(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, pd.Timestamp):
        return value.date()
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    return value


def records_to_rows(records: List[BaseModel]) -> List[Dict[str, Any]]:
    """Dump records to JSON-compatible dictionaries."""
    return [record.model_dump(mode='json') for record in records]
