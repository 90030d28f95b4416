"""
Medicine directory endpoints.
"""

from fastapi import APIRouter, Depends, Query

from app.dependencies import get_medicine_directory
from app.schemas.medicine import CategoryOut, MedicineOut
from app.services.medicine_directory import MedicineDirectory

router = APIRouter()


@router.get("/medicines", response_model=list[MedicineOut])
def list_medicines(
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    directory: MedicineDirectory = Depends(get_medicine_directory)
):
    return directory.list_medicines(limit=limit, offset=offset)


@router.get("/medicines/{medicine_id}", response_model=MedicineOut)
def get_medicine(
    medicine_id: int,
    directory: MedicineDirectory = Depends(get_medicine_directory)
):
    return directory.get(medicine_id)


@router.get("/categories", response_model=list[CategoryOut])
def list_categories(directory: MedicineDirectory = Depends(get_medicine_directory)):
    return directory.list_categories()
