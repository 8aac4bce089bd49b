from .session_dal import SessionDAL

__all__ = ["SessionDAL"]
