"""
iMIP Microservice

日历邀请邮件微服务主入口
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException

from core.config import get_settings
from core.logger import setup_service_logger

from .calendar_parser import parse_calendar
from .factory import create_imip_service
from .imip_service import ImipService
from .models import (
    HealthResponse,
    ITipMethod,
    ScheduleRequest,
    ScheduleResponse,
    SchedulingTransaction,
    ServiceInfo,
)
from .protocols import CalendarParseError

# Initialize configuration
config = get_settings()

# Setup loggers
app_logger = setup_service_logger("imip_service")
logger = app_logger

# 全局服务实例
imip_service: Optional[ImipService] = None


def get_imip_service() -> ImipService:
    """获取 iMIP 服务实例"""
    global imip_service
    if imip_service is None:
        imip_service = create_imip_service(config)
    return imip_service


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    global imip_service

    try:
        if imip_service is None:
            imip_service = create_imip_service(config)
        logger.info("iMIP microservice initialized successfully")
        yield
    finally:
        if imip_service is not None:
            try:
                await imip_service.close()
            except Exception as e:
                logger.error(f"Error closing iMIP service: {e}")
        logger.info("iMIP microservice shutdown completed")


# 创建FastAPI应用
app = FastAPI(
    title="iMIP Service",
    description="iMIP scheduling notification microservice",
    version="1.0.0",
    lifespan=lifespan
)


# ============ Health & Info Endpoints ============

@app.get("/health", response_model=HealthResponse)
async def health_check():
    """健康检查"""
    return HealthResponse(port=config.service_port)


@app.get("/info", response_model=ServiceInfo)
@app.get("/api/v1/imip/info", response_model=ServiceInfo)
async def service_info():
    """服务信息"""
    return ServiceInfo()


# ============ Scheduling Endpoints ============

@app.post("/api/v1/imip/schedule", response_model=ScheduleResponse)
async def schedule_message(
    request_data: ScheduleRequest,
    service: ImipService = Depends(get_imip_service)
):
    """处理一条 iTIP 调度消息"""
    try:
        payload = parse_calendar(request_data.calendar)
        previous = (
            parse_calendar(request_data.previous_calendar)
            if request_data.previous_calendar else None
        )
    except CalendarParseError as e:
        raise HTTPException(status_code=400, detail=str(e))

    transaction = SchedulingTransaction(
        method=ITipMethod.parse(request_data.method),
        sender=request_data.sender,
        recipient=request_data.recipient,
        sender_name=request_data.sender_name,
        recipient_name=request_data.recipient_name,
        sequence=request_data.sequence,
        significant_change=request_data.significant_change,
        payload=payload,
    )

    outcome = await service.schedule(
        transaction,
        previous=previous,
        user_display_name=request_data.user_display_name,
    )
    logger.info(f"Scheduling message for {request_data.recipient}: {outcome.value}")
    return ScheduleResponse(outcome=outcome, schedule_status=transaction.schedule_status)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host="0.0.0.0",
        port=config.service_port,
    )
