"""FastAPI dependencies wiring sources, storage and the risk platform."""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from bia_service.db import async_session_maker, get_session
from bia_service.documents import ApprovalWorkflow, AuditSink, BIAAssembler, BIARepository
from bia_service.fusion import RiskPlatformClient, build_risk_platform_client
from bia_service.sources import SourceCollector, build_collector


@lru_cache
def get_collector() -> SourceCollector:
    return build_collector()


@lru_cache
def get_risk_platform() -> RiskPlatformClient:
    # Shared so the scaffold client keeps its records between requests
    return build_risk_platform_client()


def get_audit_sink() -> AuditSink:
    return AuditSink(async_session_maker)


def get_repository(session: AsyncSession = Depends(get_session)) -> BIARepository:
    return BIARepository(session)


def get_assembler(
    repository: BIARepository = Depends(get_repository),
    collector: SourceCollector = Depends(get_collector),
    audit: AuditSink = Depends(get_audit_sink),
    risk_platform: RiskPlatformClient = Depends(get_risk_platform),
) -> BIAAssembler:
    return BIAAssembler(collector, repository, audit=audit, risk_platform=risk_platform)


def get_workflow(
    repository: BIARepository = Depends(get_repository),
    audit: AuditSink = Depends(get_audit_sink),
    risk_platform: RiskPlatformClient = Depends(get_risk_platform),
) -> ApprovalWorkflow:
    return ApprovalWorkflow(repository, audit, risk_platform)
