"""
Health Check Router
Liveness and DynamoDB table status
"""
import logging
from datetime import datetime, timezone

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import APIRouter

from fintrack.core.config import settings
from fintrack.db import dynamo

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
async def health_check():
    """
    Health check endpoint.
    Returns API status.
    """
    return {
        "status": "healthy",
        "service": settings.PROJECT_NAME,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/status")
def dynamodb_status():
    """Describe every table; the service is degraded if any is unreachable."""
    tables = {}
    for name, table in dynamo.tables.items():
        try:
            tables[name] = {"name": table.name, "status": table.table_status}
        except (ClientError, BotoCoreError) as e:
            logger.error(f"DynamoDB check failed for {table.name}: {str(e)}")
            tables[name] = {"name": table.name, "status": "error", "error": str(e)}

    healthy = all(t["status"] == "ACTIVE" for t in tables.values())
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "region": settings.DYNAMO_REGION,
        "tables": tables,
        "overall_status": "healthy" if healthy else "degraded",
    }
