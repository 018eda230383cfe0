from models.account import Account, Payment
from models.application import CreditApplication
from models.document import Document
from models.enums import ApplicationStatus, DocumentType, ProjectType, UserType
from models.notification import Notification
from models.program import CreditProgram

__all__ = [
    "Account",
    "ApplicationStatus",
    "CreditApplication",
    "CreditProgram",
    "Document",
    "DocumentType",
    "Notification",
    "Payment",
    "ProjectType",
    "UserType",
]
