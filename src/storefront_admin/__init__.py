from .config import AdminConfig, load_admin_config
from .errors import ErrorPresenter, PresentedError
from .export import ExportResult, ExportWriter
from .forms import FormEditor, FormResult, validate_form
from .notifications import Notification, NotificationCenter
from .pages import AdminListPage, ListPageDefinition, build_list_page

__all__ = [
    "AdminConfig",
    "AdminListPage",
    "ErrorPresenter",
    "ExportResult",
    "ExportWriter",
    "FormEditor",
    "FormResult",
    "ListPageDefinition",
    "NotificationCenter",
    "Notification",
    "PresentedError",
    "build_list_page",
    "load_admin_config",
    "validate_form",
]
