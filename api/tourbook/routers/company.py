"""
Company Endpoints - site configuration, back office, corporate analytics, contact form
"""
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from datetime import datetime, timedelta, timezone
from typing import Optional
import logging

from tourbook.context import AppContext, best_effort, get_context, get_mongodb, get_oracle
from tourbook.schemas.company import ContactMessage, SiteConfigUpdate
from tourbook.services import activity
from tourbook.services.health import aggregate_health
from tourbook.utils.mongodb import MongoStore
from tourbook.utils.oracle import OracleStore

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/info")
async def company_info(
    mongodb: MongoStore = Depends(get_mongodb),
    ctx: AppContext = Depends(get_context),
):
    """
    Site configuration, plus employee count and session health when available
    """
    site_config = await mongodb.get_site_config()

    return {
        "company_info": site_config or {},
        "employees_count": await best_effort(ctx, ctx.oracle, ctx.oracle.count_employees),
        "system_health": await best_effort(ctx, ctx.cassandra, ctx.cassandra.system_health),
    }


@router.patch("/config")
async def update_site_config(
    updates: SiteConfigUpdate,
    request: Request,
    mongodb: MongoStore = Depends(get_mongodb),
    ctx: AppContext = Depends(get_context),
):
    changes = updates.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")

    site_config = await mongodb.update_site_config(changes)
    activity.log_activity(
        ctx, request, "update_site_config", "site_config", metadata={"fields": sorted(changes)}
    )
    return {"message": "Site configuration updated", "company_info": site_config}


@router.get("/employees")
async def list_employees(
    request: Request,
    oracle: OracleStore = Depends(get_oracle),
    ctx: AppContext = Depends(get_context),
):
    employees = await oracle.list_employees()
    activity.log_activity(
        ctx, request, "view_employees", "employees", metadata={"count": len(employees)}
    )
    return {"data": employees, "total": len(employees)}


@router.get("/financial-dashboard")
async def financial_dashboard(ctx: AppContext = Depends(get_context)):
    """
    Oracle ledger, today's analytics and realtime financial metrics
    """
    today = datetime.now(timezone.utc).date()
    return {
        "financial_dashboard": await best_effort(ctx, ctx.oracle, ctx.oracle.get_financial_dashboard),
        "daily_analytics": await best_effort(ctx, ctx.mongodb, lambda: ctx.mongodb.get_daily_analytics(today)),
        "realtime_metrics": await best_effort(
            ctx, ctx.cassandra, lambda: ctx.cassandra.get_metrics_by_type("financial", 50), default=[]
        ),
    }


@router.get("/analytics")
async def corporate_analytics(
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    ctx: AppContext = Depends(get_context),
):
    """
    Daily analytics, system metrics and the financial summary of a period
    (the last 30 days unless given)
    """
    summary_end = end_date or datetime.now(timezone.utc)
    summary_start = start_date or summary_end - timedelta(days=30)

    async def analytics():
        documents, _ = await ctx.mongodb.list_analytics(start_date, end_date, limit=30)
        return documents

    return {
        "analytics": await best_effort(ctx, ctx.mongodb, analytics, default=[]),
        "system_metrics": await best_effort(
            ctx, ctx.cassandra, lambda: ctx.cassandra.get_metrics_by_type("system", 100), default=[]
        ),
        "financial_summary": await best_effort(
            ctx, ctx.oracle, lambda: ctx.oracle.get_financial_summary(summary_start, summary_end), default=[]
        ),
        "period": {"start": summary_start, "end": summary_end},
    }


@router.post("/contact")
async def contact(
    payload: ContactMessage,
    request: Request,
    ctx: AppContext = Depends(get_context),
):
    """
    Contact form: logged, forwarded to the admin as a notification, counted
    """
    activity.log_activity(
        ctx, request, "contact_form_submitted", "contact",
        metadata={
            "name": payload.name,
            "email": payload.email,
            "subject": payload.subject,
            "message_length": len(payload.message),
        },
    )
    activity.notify(
        ctx, activity.ADMIN_USER_ID, "CONTACT_FORM", "New Contact Message",
        f"Message from {payload.name} ({payload.email}): {payload.subject}",
        expires_in=timedelta(days=7),
    )
    activity.record_metric(
        ctx, "contact", "contact_form_submissions", 1,
        tags={"source": "website", "subject": payload.subject},
    )
    return {"message": "Message sent successfully"}


@router.get("/health")
async def company_health(ctx: AppContext = Depends(get_context)):
    """
    Status of every datastore
    """
    return await aggregate_health(ctx)
