# import all models here so Base.metadata is complete (alembic + create_all)
from campus_portal.db.base_class import Base  # noqa: F401
from campus_portal.models.assignment import Assignment  # noqa: F401
from campus_portal.models.attempt_counter import AttemptCounter  # noqa: F401
from campus_portal.models.late_request import LateRequest  # noqa: F401
from campus_portal.models.submission import Submission  # noqa: F401
