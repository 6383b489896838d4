"""Domain modules package."""

from app.modules.audit import models as audit_models  # noqa: F401
from app.modules.availability import models as availability_models  # noqa: F401
from app.modules.billing import models as billing_models  # noqa: F401
from app.modules.calendar import models as calendar_models  # noqa: F401
from app.modules.catalog import models as catalog_models  # noqa: F401
from app.modules.enrollment import models as enrollment_models  # noqa: F401
from app.modules.trials import models as trials_models  # noqa: F401
