"""
common/ids.py

Shared ID generation utilities for the order service.

Usage:
    from common.ids import new_order_id, new_session_id
"""

import uuid


def new_order_id() -> str:
    """Generate a unique order document ID.
    Format: o-<12 hex chars>  e.g. o-3f2a1b4c9d0e
    Used in: order store inserts; independent of the payment reference
    """
    return f"o-{uuid.uuid4().hex[:12]}"


def new_session_id() -> str:
    """Generate an ID for a connected admin dashboard session.
    Format: ws-<8 hex chars>  e.g. ws-7c3d02aa
    """
    return f"ws-{uuid.uuid4().hex[:8]}"
