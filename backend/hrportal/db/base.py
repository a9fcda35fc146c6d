# Import all the models, so that Base has them before being
# imported by Alembic
from hrportal.db.base_class import Base  # noqa

from hrportal.models.company import Company  # noqa
from hrportal.models.employee import Employee  # noqa
from hrportal.models.document import Document  # noqa
from hrportal.models.payroll import Payroll  # noqa
from hrportal.models.leave import Leave  # noqa
from hrportal.models.job import Job, JobApplication  # noqa
