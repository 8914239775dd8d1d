from .pg_notify import listen, notify, request_settlement
from .repositories import DBBadgeRepository, DBContestRepository, DBDriverRepository, DBUserRepository
from .session import create_session, database_url, engine
