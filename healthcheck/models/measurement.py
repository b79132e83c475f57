"""
Measurement models: form input, stored records and category bands.
"""
from enum import Enum
from pydantic import BaseModel, Field
from datetime import datetime
from typing import List


class WeightCategory(str, Enum):
    UNDERWEIGHT = "Underweight"
    NORMAL = "Normal"
    OVERWEIGHT = "Overweight"
    OBESE = "Obese"


class BloodPressureCategory(str, Enum):
    NORMAL = "Normal"
    ELEVATED = "Elevated"
    STAGE_1 = "High Blood Pressure Stage 1"
    STAGE_2 = "High Blood Pressure Stage 2"
    CRISIS = "Hypertensive Crisis"


class SpO2Category(str, Enum):
    NORMAL = "Normal"
    LOW = "Low"
    VERY_LOW = "Very Low"


class WeightCheckForm(BaseModel):
    """Form submitted to POST /check-weight."""
    name: str = Field(..., min_length=1, max_length=255, description="Name of the person measured")
    age: int = Field(..., ge=0, le=150, description="Age in years", examples=[30])
    height: float = Field(
        ...,
        gt=0.0,
        le=300.0,  # Max reasonable height in cm
        description="Height in centimetres",
        examples=[170]
    )
    weight: float = Field(
        ...,
        gt=0.0,
        le=700.0,  # Max reasonable weight in kg
        description="Weight in kilograms",
        examples=[65.5]
    )


class VitalsCheckForm(BaseModel):
    """Form submitted to POST /check-vitals."""
    name: str = Field(..., min_length=1, max_length=255, description="Name of the person measured")
    age: int = Field(..., ge=0, le=150, description="Age in years", examples=[30])
    systolic: int = Field(..., ge=0, le=400, description="Systolic pressure in mmHg", examples=[120])
    diastolic: int = Field(..., ge=0, le=300, description="Diastolic pressure in mmHg", examples=[80])
    spo2: int = Field(..., ge=0, le=100, description="Oxygen saturation in percent", examples=[97])


class WeightRecord(BaseModel):
    """Stored weight check."""
    id: str
    user_id: str
    name: str
    age: int
    height_cm: float
    weight_kg: float
    bmi: float
    weight_category: WeightCategory
    created_at: datetime = Field(..., description="Entry creation timestamp")


class VitalsRecord(BaseModel):
    """Stored vitals check."""
    id: str
    user_id: str
    name: str
    age: int
    systolic: int
    diastolic: int
    blood_category: BloodPressureCategory
    spo2: int
    spo2_category: SpO2Category
    created_at: datetime = Field(..., description="Entry creation timestamp")


class WeightCheckResult(BaseModel):
    """Classified weight check and whether it reached the store."""
    record: WeightRecord
    stored: bool = True


class VitalsCheckResult(BaseModel):
    """Classified vitals check and whether it reached the store."""
    record: VitalsRecord
    stored: bool = True


class MeasurementHistory(BaseModel):
    """A user's records, newest first. Each half fails independently."""
    weight_records: List[WeightRecord] = Field(default_factory=list)
    vitals_records: List[VitalsRecord] = Field(default_factory=list)
    weight_failed: bool = False
    vitals_failed: bool = False
