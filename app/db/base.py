from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Note: every model imports Base from this module; app.db.models imports all of
# them so Base.metadata is complete for create_all() and Alembic.
