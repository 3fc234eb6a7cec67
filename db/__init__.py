from db import session as db_session

__all__ = ["db_session"]
