"""
Category bands for BMI, blood pressure and SpO2.

Pure functions: no I/O, no validation. Out-of-range input is classified by
the same thresholds.
"""
from healthcheck.models.measurement import (
    BloodPressureCategory,
    SpO2Category,
    WeightCategory,
)

# (underweight below, normal below, overweight below); anything else is obese
CHILD_BMI_THRESHOLDS = (14.0, 18.0, 22.0)
ADULT_BMI_THRESHOLDS = (18.5, 25.0, 30.0)
ELDERLY_BMI_THRESHOLDS = (22.0, 27.0, 32.0)

ADULT_MIN_AGE = 18
ADULT_MAX_AGE = 65


def calculate_bmi(height_cm: float, weight_kg: float) -> float:
    """BMI = weight / height_m^2, rounded to 2 decimals."""
    height_m = height_cm / 100
    return round(weight_kg / (height_m * height_m), 2)


def bmi_thresholds_for_age(age: float) -> tuple[float, float, float]:
    if age < ADULT_MIN_AGE:
        return CHILD_BMI_THRESHOLDS
    if age <= ADULT_MAX_AGE:
        return ADULT_BMI_THRESHOLDS
    return ELDERLY_BMI_THRESHOLDS


def classify_bmi(bmi: float, age: float) -> WeightCategory:
    underweight, normal, overweight = bmi_thresholds_for_age(age)
    if bmi < underweight:
        return WeightCategory.UNDERWEIGHT
    if bmi < normal:
        return WeightCategory.NORMAL
    if bmi < overweight:
        return WeightCategory.OVERWEIGHT
    return WeightCategory.OBESE


def classify_blood_pressure(systolic: float, diastolic: float) -> BloodPressureCategory:
    """
    First matching rule wins.

    Stage 1 and Stage 2 use OR, so a low systolic with a diastolic of 90-119
    lands in Stage 1, and a systolic of 140-179 with a low diastolic lands in
    Stage 2.
    """
    if systolic < 120 and diastolic < 80:
        return BloodPressureCategory.NORMAL
    if systolic < 130 and diastolic < 80:
        return BloodPressureCategory.ELEVATED
    if systolic < 140 or diastolic < 90:
        return BloodPressureCategory.STAGE_1
    if systolic < 180 or diastolic < 120:
        return BloodPressureCategory.STAGE_2
    return BloodPressureCategory.CRISIS


def classify_spo2(spo2: float) -> SpO2Category:
    if spo2 >= 95:
        return SpO2Category.NORMAL
    if spo2 >= 90:
        return SpO2Category.LOW
    return SpO2Category.VERY_LOW
