# SQLModel definitions, imported here so SQLModel.metadata holds every table.
from .base import UUIDMixin, TimestampMixin  # noqa: F401
from .user_org import UserOrg  # noqa: F401
from .file import File  # noqa: F401
from .favorite import Favorite  # noqa: F401
