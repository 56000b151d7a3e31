from campus_portal.core.clock import Clock, SystemClock
from campus_portal.db.session import SessionLocal

_system_clock = SystemClock()


# every request that needs DB will get a fresh session, and it will always close.
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# tests override this with a FixedClock
def get_clock() -> Clock:
    return _system_clock
