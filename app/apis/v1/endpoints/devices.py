# backend/app/apis/v1/endpoints/devices.py
import uuid

from fastapi import APIRouter, status

from app import schemas

router = APIRouter()


@router.post("/devices", response_model=schemas.Device, status_code=status.HTTP_201_CREATED)
def issue_device_id():
    """
    Issue a new installation identifier. Clients persist it locally and send
    it as `X-Device-Id`; requesting a new one resets the installation.
    """
    return schemas.Device(device_id=str(uuid.uuid4()))
