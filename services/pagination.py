"""
Pagination helper shared by list endpoints.
"""

import math
from typing import Any, Dict

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select


async def paginate(db: AsyncSession, stmt: Select, page: int = 1, per_page: int = 15) -> Dict[str, Any]:
    """
    Run an ordered SELECT for one page.

    Returns:
        {"items": [...ORM rows], "total", "page", "per_page", "last_page"}
    """
    page = max(page, 1)
    per_page = max(per_page, 1)

    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    total = (await db.execute(count_stmt)).scalar_one()

    result = await db.execute(stmt.limit(per_page).offset((page - 1) * per_page))
    return {
        "items": list(result.scalars().all()),
        "total": total,
        "page": page,
        "per_page": per_page,
        "last_page": max(1, math.ceil(total / per_page)),
    }
