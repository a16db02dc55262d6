# medminder/models/__init__.py
from medminder.models.users import User, UserRole
from medminder.models.medication import Medication
from medminder.models.taken_log import TakenLog, LogStatus
