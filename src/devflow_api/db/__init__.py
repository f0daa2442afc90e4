from devflow_api.db.models import Base

__all__ = ["Base"]
