import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import ValidationError
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.dependencies.providers import get_provider_factory, get_http_client
from app.models.flow import Flow
from app.models.flow_execution import FlowExecution
from app.models.instagram_account import InstagramAccount
from app.schemas.flow import (
    FlowCreate,
    FlowUpdate,
    FlowResponse,
    FlowExecutionResponse,
    FlowTestRequest,
    FlowTestResponse,
)
from app.services.flow_engine import FlowEngine

router = APIRouter()
logger = logging.getLogger(__name__)


def _get_flow_or_404(flow_id: int, db: Session) -> Flow:
    flow = db.query(Flow).filter(Flow.id == flow_id).first()
    if not flow:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Flow not found"
        )
    return flow


@router.post("/flows", response_model=FlowResponse, status_code=status.HTTP_201_CREATED)
def create_flow(flow_data: FlowCreate, db: Session = Depends(get_db)):
    account = db.query(InstagramAccount).filter(
        InstagramAccount.id == flow_data.account_id
    ).first()
    if not account:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Instagram account not found"
        )

    flow = Flow(
        account_id=flow_data.account_id,
        name=flow_data.name,
        description=flow_data.description,
        is_active=flow_data.is_active,
        nodes=[node.model_dump(exclude_none=True) for node in flow_data.nodes],
        edges=[edge.model_dump(exclude_none=True) for edge in flow_data.edges],
    )
    db.add(flow)
    db.commit()
    db.refresh(flow)
    return flow


@router.get("/flows", response_model=List[FlowResponse])
def list_flows(account_id: int = None, db: Session = Depends(get_db)):
    query = db.query(Flow)
    if account_id:
        query = query.filter(Flow.account_id == account_id)
    return query.order_by(Flow.id).all()


@router.get("/flows/{flow_id}", response_model=FlowResponse)
def get_flow(flow_id: int, db: Session = Depends(get_db)):
    return _get_flow_or_404(flow_id, db)


@router.patch("/flows/{flow_id}", response_model=FlowResponse)
def update_flow(flow_id: int, flow_data: FlowUpdate, db: Session = Depends(get_db)):
    flow = _get_flow_or_404(flow_id, db)

    updates = flow_data.model_dump(exclude_unset=True)

    if updates.get("nodes") is not None or updates.get("edges") is not None:
        # Validate the graph as it will be stored, mixing new and existing parts
        try:
            graph = FlowCreate.model_validate({
                "account_id": flow.account_id,
                "name": flow.name,
                "nodes": updates["nodes"] if updates.get("nodes") is not None else flow.nodes,
                "edges": updates["edges"] if updates.get("edges") is not None else flow.edges,
            })
        except ValidationError as e:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=[{"loc": list(err["loc"]), "msg": err["msg"]} for err in e.errors()]
            )
        flow.nodes = [node.model_dump(exclude_none=True) for node in graph.nodes]
        flow.edges = [edge.model_dump(exclude_none=True) for edge in graph.edges]

    for field in ("name", "description", "is_active"):
        if updates.get(field) is not None:
            setattr(flow, field, updates[field])

    db.commit()
    db.refresh(flow)
    return flow


@router.delete("/flows/{flow_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_flow(flow_id: int, db: Session = Depends(get_db)):
    flow = _get_flow_or_404(flow_id, db)
    db.delete(flow)
    db.commit()


@router.post("/flows/{flow_id}/test", response_model=FlowTestResponse)
async def test_flow(
    flow_id: int,
    request: FlowTestRequest,
    db: Session = Depends(get_db),
    provider_factory=Depends(get_provider_factory),
    http_client=Depends(get_http_client),
):
    """
    Run a flow once against a hand-written trigger payload, e.g.
    {"triggerData": {"comment_id": "179...", "comment_text": "price?", "from_username": "bob"}}
    """
    flow = _get_flow_or_404(flow_id, db)
    if not request.triggerData:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="triggerData is required"
        )

    account = db.query(InstagramAccount).filter(InstagramAccount.id == flow.account_id).first()
    if not account:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Instagram account not found"
        )

    trigger_data = request.triggerData
    logger.info("[Manual Test] Testing flow %s with trigger data: %s", flow.name, trigger_data)

    execution = FlowExecution(
        flow_id=flow.id,
        account_id=account.id,
        trigger_type=trigger_data.get("trigger_type") or "manual_test",
        trigger_data=trigger_data,
        status="running",
        execution_path=[],
    )
    db.add(execution)
    db.commit()
    db.refresh(execution)

    engine = FlowEngine(flow, trigger_data, provider_factory(account), http_client=http_client)
    result = await engine.execute()

    execution.status = "success" if result.success else "failed"
    execution.execution_path = result.executionPath
    execution.node_results = [node_result.model_dump() for node_result in result.nodeResults]
    execution.error_message = result.error
    db.commit()

    return FlowTestResponse(executionId=execution.id, **result.model_dump())


@router.get("/flows/{flow_id}/executions", response_model=List[FlowExecutionResponse])
def list_flow_executions(flow_id: int, limit: int = 50, db: Session = Depends(get_db)):
    _get_flow_or_404(flow_id, db)
    return db.query(FlowExecution).filter(
        FlowExecution.flow_id == flow_id
    ).order_by(FlowExecution.created_at.desc(), FlowExecution.id.desc()).limit(limit).all()
