# Models package init
# Importing the models registers every table on Base.metadata (Alembic,
# test fixtures calling create_all).
from hoot_api.models.user import User  # noqa: F401
from hoot_api.models.hoot import Category, Comment, Hoot  # noqa: F401
