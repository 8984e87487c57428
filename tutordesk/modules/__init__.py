"""Domain modules package."""

from tutordesk.modules.catalog import models as catalog_models  # noqa: F401
from tutordesk.modules.feedback import models as feedback_models  # noqa: F401
from tutordesk.modules.identity import models as identity_models  # noqa: F401
from tutordesk.modules.notifications import models as notifications_models  # noqa: F401
from tutordesk.modules.tutoring import models as tutoring_models  # noqa: F401
