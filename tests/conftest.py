"""Shared fixtures for flow engine and API tests."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.base import Base
import app.models  # noqa: F401  register all models with Base


@pytest.fixture
def provider():
    """Action provider double with the InstagramClient method surface."""
    mock = MagicMock()
    mock.reply_to_comment = AsyncMock(return_value={"id": "reply_1"})
    mock.delete_comment = AsyncMock(return_value={"success": True})
    mock.hide_comment = AsyncMock(return_value={"success": True})
    mock.like_comment = AsyncMock(return_value={"success": True})
    mock.send_direct_message = AsyncMock(return_value={"recipient_id": "u1", "message_id": "m_1"})
    mock.send_private_reply = AsyncMock(return_value={"recipient_id": "u1", "message_id": "m_2"})
    mock.send_button_template = AsyncMock(return_value={"recipient_id": "u1", "message_id": "m_3"})
    return mock


@pytest.fixture
def http_client():
    mock = MagicMock()
    mock.request = AsyncMock(return_value={"ok": True})
    return mock


@pytest.fixture
def comment_payload() -> dict:
    return {
        "comment_id": "c1",
        "comment_text": "What is the PRICE?",
        "from_id": "u42",
        "from_username": "bob",
        "media_id": "media_9",
    }


@pytest.fixture
def make_flow():
    """Build a {"nodes", "edges"} flow from compact node/edge specs."""

    def _make(nodes: list, edges: list | None = None) -> dict:
        built_edges = []
        for index, edge in enumerate(edges or []):
            source, target = edge[0], edge[1]
            built = {"id": f"e{index}", "source": source, "target": target}
            if len(edge) > 2:
                built["sourceHandle"] = edge[2]
            built_edges.append(built)
        return {"nodes": nodes, "edges": built_edges}

    return _make


def trigger_node(node_id: str = "trigger", trigger_type: str = "comment_received") -> dict:
    return {
        "id": node_id,
        "type": "trigger",
        "position": {"x": 0, "y": 0},
        "data": {"triggerType": trigger_type},
    }


def condition_node(node_id: str, conditions: list, logic_operator: str = "AND") -> dict:
    return {
        "id": node_id,
        "type": "condition",
        "position": {"x": 0, "y": 100},
        "data": {"conditions": conditions, "logicOperator": logic_operator},
    }


def action_node(node_id: str, action_type: str | None, action_config: dict | None) -> dict:
    data = {}
    if action_type is not None:
        data["actionType"] = action_type
    if action_config is not None:
        data["actionConfig"] = action_config
    return {"id": node_id, "type": "action", "position": {"x": 0, "y": 200}, "data": data}


@pytest.fixture
def nodes():
    """Node builders: nodes.trigger(...), nodes.condition(...), nodes.action(...)."""

    class _Nodes:
        trigger = staticmethod(trigger_node)
        condition = staticmethod(condition_node)
        action = staticmethod(action_node)

    return _Nodes


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()
