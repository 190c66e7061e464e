# healthtrack/routes/nutrition_routes.py
from datetime import datetime, timezone
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy import desc
from sqlalchemy.orm import Session

from healthtrack.db.session import get_db, store_guard
from healthtrack.models.bmi_record import BmiRecord
from healthtrack.schemas.nutrition import (
    BmiIn,
    BmiOut,
    DayCaloriesIn,
    DayCaloriesOut,
    MealCaloriesIn,
    MealCaloriesOut,
)
from healthtrack.services.nutrition import NutritionTable, compute_bmi, day_calories, meal_calories
from healthtrack.utils.exceptions import MissingInput

router = APIRouter(prefix="/api", tags=["nutrition"])


def get_nutrition_table(request: Request) -> NutritionTable:
    return request.app.state.nutrition_table


@router.get("/nutrition/meals", response_model=Dict[str, float])
def list_meals(table: NutritionTable = Depends(get_nutrition_table)):
    return dict(table)


@router.post("/nutrition/calories/meal", response_model=MealCaloriesOut)
def calculate_meal_calories(
    payload: MealCaloriesIn,
    table: NutritionTable = Depends(get_nutrition_table),
):
    if payload.meals is None:
        raise MissingInput("Invalid meal selection")
    return MealCaloriesOut(total_calories=meal_calories(table, payload.meals))


@router.post("/nutrition/calories/day", response_model=DayCaloriesOut)
def calculate_day_calories(
    payload: DayCaloriesIn,
    table: NutritionTable = Depends(get_nutrition_table),
):
    if payload.day_meals is None:
        raise MissingInput("Invalid meal selection")
    return DayCaloriesOut(daily_calories=day_calories(table, payload.day_meals))


@router.post("/bmi", response_model=BmiOut, status_code=status.HTTP_201_CREATED)
def create_bmi_record(payload: BmiIn, db: Session = Depends(get_db)):
    user_id = (payload.user_id or "").strip()
    if not user_id or payload.height is None or payload.weight is None:
        raise MissingInput("Missing required fields: userId, height or weight")
    bmi = payload.bmi if payload.bmi is not None else compute_bmi(payload.height, payload.weight)

    with store_guard(db, "create_bmi_record"):
        item = BmiRecord(
            user_id=user_id,
            height=payload.height,
            weight=payload.weight,
            bmi=bmi,
            date=datetime.now(timezone.utc).isoformat(timespec="seconds"),
        )
        db.add(item)
        db.commit()
        db.refresh(item)
    return item


@router.get("/bmi", response_model=List[BmiOut])
def list_bmi_records(
    user_id: Optional[str] = Query(None, alias="userId"),
    db: Session = Depends(get_db),
):
    if not (user_id or "").strip():
        raise MissingInput("userId is required")
    with store_guard(db, "list_bmi_records"):
        return (
            db.query(BmiRecord)
            .filter(BmiRecord.user_id == user_id)
            .order_by(desc(BmiRecord.created_at), desc(BmiRecord.date))
            .all()
        )
