from fastapi import Header, HTTPException, status

from app.database import get_db  # noqa: F401 re-exported for endpoints


async def get_device_id(
    x_device_id: str = Header(..., description="Per-installation identifier issued by POST /devices")
) -> str:
    device_id = x_device_id.strip()
    if not device_id:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="X-Device-Id header must not be blank",
        )
    return device_id
