"""
Models package - organizes all Pydantic models.

User models (user.py):
- RegisterForm: For registering users
- LoginForm: For authentication requests
- User: Stored user model
- AuthContext: Authenticated session passed to protected handlers

Measurement models (measurement.py):
- WeightCheckForm / VitalsCheckForm: Measurement form input
- WeightRecord / VitalsRecord: Stored measurements
- WeightCheckResult / VitalsCheckResult: Classified result plus storage outcome
- MeasurementHistory: Both record lists for the history page
- WeightCategory, BloodPressureCategory, SpO2Category: Category bands
"""
from .user import RegisterForm, LoginForm, User, UserBase, AuthContext
from .measurement import (
    BloodPressureCategory,
    MeasurementHistory,
    SpO2Category,
    VitalsCheckForm,
    VitalsCheckResult,
    VitalsRecord,
    WeightCategory,
    WeightCheckForm,
    WeightCheckResult,
    WeightRecord,
)

__all__ = [
    # User models
    "RegisterForm",
    "LoginForm",
    "User",
    "UserBase",
    # Auth models
    "AuthContext",
    # Measurement models
    "WeightCheckForm",
    "VitalsCheckForm",
    "WeightRecord",
    "VitalsRecord",
    "WeightCheckResult",
    "VitalsCheckResult",
    "MeasurementHistory",
    "WeightCategory",
    "BloodPressureCategory",
    "SpO2Category",
]
