"""Alarm API routes."""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from alarmhook.domain.errors import AlarmValidationError
from alarmhook.domain.models import Alarm
from alarmhook.domain.schedule import ensure_utc, isoformat_z
from alarmhook.service import AlarmService

logger = logging.getLogger(__name__)

alarm_router = APIRouter(prefix="/api", tags=["Alarms"])

CREATE_EXAMPLE = {
    "contactName": "John Doe",
    "email": "john@example.com",
    "phone": "+1234567890",
    "datetime": "2025-08-27T15:30:00.000Z",
    "destinationUrls": ["https://webhook.site/your-id"],
    "repeatDays": ["monday", "friday"],
}


def get_service(request: Request) -> AlarmService:
    return request.app.state.service


class CreateAlarmRequest(BaseModel):
    contactName: str
    scheduled_for: datetime = Field(alias="datetime")
    email: Optional[str] = ""
    phone: Optional[str] = ""
    destinationUrls: List[str] = Field(default_factory=list)
    webhookUrl: Optional[str] = None
    repeatDays: List[str] = Field(default_factory=list)

    model_config = {"json_schema_extra": {"examples": [CREATE_EXAMPLE]}}


class CreateAlarmResponse(BaseModel):
    success: bool
    alarmId: str
    message: str
    scheduledFor: str
    nextTrigger: Optional[str] = None


class UpdateAlarmRequest(BaseModel):
    isActive: bool


class TestWebhookRequest(BaseModel):
    webhookUrl: str


def _alarm_view(service: AlarmService, alarm: Alarm) -> Dict[str, Any]:
    data = alarm.to_dict()
    nxt = service.next_trigger(alarm)
    data["nextTrigger"] = isoformat_z(nxt) if nxt else None
    return data


@alarm_router.post("/alarms", status_code=201, response_model=CreateAlarmResponse)
async def create_alarm(req: CreateAlarmRequest, service: AlarmService = Depends(get_service)):
    destinations = list(req.destinationUrls)
    if req.webhookUrl:
        destinations.append(req.webhookUrl)
    try:
        alarm = await service.create_alarm(
            contact_name=req.contactName,
            scheduled_time=req.scheduled_for,
            destination_urls=destinations,
            repeat_days=req.repeatDays,
            email=req.email,
            phone=req.phone,
        )
    except AlarmValidationError as e:
        raise HTTPException(status_code=400, detail={"error": str(e), "example": CREATE_EXAMPLE})
    nxt = service.next_trigger(alarm)
    return CreateAlarmResponse(
        success=True,
        alarmId=alarm.id,
        message="Alarm created successfully",
        scheduledFor=isoformat_z(ensure_utc(req.scheduled_for)),
        nextTrigger=isoformat_z(nxt) if nxt else None,
    )


@alarm_router.get("/alarms")
async def list_alarms(service: AlarmService = Depends(get_service)):
    alarms = [_alarm_view(service, a) for a in service.list_alarms()]
    return {"success": True, "count": len(alarms), "alarms": alarms}


@alarm_router.get("/alarms/{alarm_id}")
async def get_alarm(alarm_id: str, service: AlarmService = Depends(get_service)):
    alarm = service.get_alarm(alarm_id)
    if alarm is None:
        raise HTTPException(status_code=404, detail="Alarm not found")
    return {"success": True, "alarm": _alarm_view(service, alarm)}


@alarm_router.patch("/alarms/{alarm_id}")
async def update_alarm(
    alarm_id: str, req: UpdateAlarmRequest, service: AlarmService = Depends(get_service)
):
    alarm = await service.set_active(alarm_id, req.isActive)
    if alarm is None:
        raise HTTPException(status_code=404, detail="Alarm not found")
    return {"success": True, "alarm": _alarm_view(service, alarm)}


@alarm_router.delete("/alarms/{alarm_id}")
async def delete_alarm(alarm_id: str, service: AlarmService = Depends(get_service)):
    if not await service.delete_alarm(alarm_id):
        raise HTTPException(status_code=404, detail="Alarm not found")
    return {"success": True, "message": "Alarm deleted successfully"}


@alarm_router.post("/test-webhook")
async def test_webhook(req: TestWebhookRequest, service: AlarmService = Depends(get_service)):
    if not req.webhookUrl.strip():
        raise HTTPException(status_code=400, detail="webhookUrl is required")
    outcome = await service.test_webhook(req.webhookUrl.strip())
    if outcome.status_code is None:
        return {"success": False, "error": outcome.error}
    return {
        "success": outcome.success,
        "status": outcome.status_code,
        "statusText": outcome.reason,
        "responseBody": outcome.body,
        "message": (
            "Test webhook sent successfully"
            if outcome.success
            else f"HTTP {outcome.status_code}: {outcome.reason}"
        ),
    }
