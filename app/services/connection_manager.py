"""
Connection graph operations between users.

An edge is stored on the user who holds it: a request from A to B is a
pending entry in B's connections pointing at A. Accepting writes the reverse
accepted entry on A, and removing an edge also removes its reverse.
"""
from datetime import datetime
from typing import Any, Dict, Optional

from app.models.schemas import ConnectionModel
from app.services.db import users_coll
from app.utils.exceptions import BusinessLogicError, NotFoundError
from app.utils.logging_config import get_logger

logger = get_logger(__name__)


def _find_edge(user: Dict[str, Any], **match) -> Optional[Dict[str, Any]]:
    for conn in user.get("connections") or []:
        if all(conn.get(k) == v for k, v in match.items()):
            return conn
    return None


class ConnectionManager:
    """Send, answer and remove connection requests"""

    STATUS_PENDING = "pending"
    STATUS_ACCEPTED = "accepted"
    STATUS_REJECTED = "rejected"

    @staticmethod
    async def send_request(current_user_id: str, target_user_id: str) -> Dict[str, Any]:
        """Store a pending request from the current user on the target user"""
        if target_user_id == current_user_id:
            raise BusinessLogicError("Cannot send connection request to yourself", rule="no_self_connection")

        target = await users_coll.find_one({"user_id": target_user_id})
        if not target:
            raise NotFoundError("User not found", resource="user", resource_id=target_user_id)

        existing = _find_edge(target, user_id=current_user_id)
        if existing:
            if existing.get("status") == ConnectionManager.STATUS_ACCEPTED:
                raise BusinessLogicError("Already connected with this user", rule="unique_connection")
            if existing.get("status") == ConnectionManager.STATUS_PENDING:
                raise BusinessLogicError("Connection request already sent", rule="unique_connection")

        edge = ConnectionModel(user_id=current_user_id).dict()
        await users_coll.update_one(
            {"user_id": target_user_id},
            {"$push": {"connections": edge}, "$set": {"updated_at": datetime.utcnow()}}
        )

        logger.info(f"Connection request {edge['connection_id']} sent from {current_user_id} to {target_user_id}")
        return edge

    @staticmethod
    async def respond(current_user: Dict[str, Any], connection_id: str, action: str) -> Dict[str, Any]:
        """Accept or reject a pending request addressed to the current user"""
        edge = _find_edge(current_user, connection_id=connection_id)
        if not edge:
            raise NotFoundError("Connection request not found", resource="connection", resource_id=connection_id)

        if edge.get("status") != ConnectionManager.STATUS_PENDING:
            raise BusinessLogicError("Connection request has already been processed", rule="pending_only")

        status = ConnectionManager.STATUS_ACCEPTED if action == "accept" else ConnectionManager.STATUS_REJECTED
        now = datetime.utcnow()

        await users_coll.update_one(
            {"user_id": current_user["user_id"], "connections.connection_id": connection_id},
            {"$set": {"connections.$.status": status, "updated_at": now}}
        )

        if status == ConnectionManager.STATUS_ACCEPTED:
            reverse = ConnectionModel(user_id=current_user["user_id"], status=status).dict()
            await users_coll.update_one(
                {"user_id": edge["user_id"]},
                {"$push": {"connections": reverse}, "$set": {"updated_at": now}}
            )

        logger.info(f"Connection {connection_id} {status} by {current_user['user_id']}")
        return {**edge, "status": status}

    @staticmethod
    async def remove(current_user: Dict[str, Any], connection_id: str) -> Dict[str, Any]:
        """Delete an edge from the current user and its reverse from the other user"""
        edge = _find_edge(current_user, connection_id=connection_id)
        if not edge:
            raise NotFoundError("Connection not found", resource="connection", resource_id=connection_id)

        now = datetime.utcnow()
        await users_coll.update_one(
            {"user_id": current_user["user_id"]},
            {"$pull": {"connections": {"connection_id": connection_id}}, "$set": {"updated_at": now}}
        )
        await users_coll.update_one(
            {"user_id": edge["user_id"]},
            {"$pull": {"connections": {"user_id": current_user["user_id"]}}, "$set": {"updated_at": now}}
        )

        logger.info(f"Connection {connection_id} removed by {current_user['user_id']}")
        return edge
