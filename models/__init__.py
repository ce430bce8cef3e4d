from models.employee import Employee, Role, Department  # noqa: F401
from models.client import Client, ClientStatus, ClientRemark, MFClientStatus, MFClientRemark  # noqa: F401
from models.brokerage import BrokerageUpload, BrokerageDetail  # noqa: F401
from models.archive import MonthlyArchive, ArchiveEntityType  # noqa: F401
from models.task import Task, TaskStatus, TaskPriority  # noqa: F401
from models.notification import Notification  # noqa: F401
from models.activity_log import ActivityLog  # noqa: F401
