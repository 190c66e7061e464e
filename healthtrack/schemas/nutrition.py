# healthtrack/schemas/nutrition.py
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class MealItem(BaseModel):
    meal: str
    quantity: float = Field(..., ge=0, description="Grams eaten")


class MealCaloriesIn(BaseModel):
    meals: Optional[List[MealItem]] = None


class DayCaloriesIn(BaseModel):
    day_meals: Optional[Dict[str, List[MealItem]]] = Field(default=None, alias="dayMeals")

    class Config:
        populate_by_name = True


class MealCaloriesOut(BaseModel):
    total_calories: float = Field(serialization_alias="totalCalories")


class DayCaloriesOut(BaseModel):
    daily_calories: float = Field(serialization_alias="dailyCalories")


class BmiIn(BaseModel):
    user_id: Optional[str] = Field(default=None, alias="userId")
    height: Optional[float] = Field(default=None, gt=0, description="Height in cm")
    weight: Optional[float] = Field(default=None, gt=0, description="Weight in kg")
    bmi: Optional[float] = Field(default=None, gt=0)

    class Config:
        populate_by_name = True


class BmiOut(BaseModel):
    id: str
    user_id: str = Field(serialization_alias="userId")
    height: float
    weight: float
    bmi: float
    date: str
    created_at: Optional[datetime] = Field(default=None, serialization_alias="createdAt")

    class Config:
        from_attributes = True
