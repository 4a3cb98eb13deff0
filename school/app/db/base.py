from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.ext.asyncio import AsyncAttrs


class Base(AsyncAttrs, DeclarativeBase):
    """Base class for all ORM models.

    Inherits from AsyncAttrs so relationships can be awaited under the
    async ORM.
    """
