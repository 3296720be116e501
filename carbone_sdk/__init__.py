"""
Python SDK for the Carbone document render service.

Typical use:

    from carbone_sdk import create_carbone_services

    with create_carbone_services(api_token="...") as carbone:
        document = carbone.render('{"data": {"id": 42}}', "template.odt")
"""

from .core.config import Settings, get_settings
from .core.errors import CarboneError, CarboneErrorKind, HttpFailure
from .schemas.responses import CarboneDocument, CarboneResponse
from .services.carbone_services import CarboneServices, create_carbone_services
from .utils.hashing import compute_template_id, template_id_from_path

__all__ = [
    "Settings",
    "get_settings",
    "CarboneError",
    "CarboneErrorKind",
    "HttpFailure",
    "CarboneDocument",
    "CarboneResponse",
    "CarboneServices",
    "create_carbone_services",
    "compute_template_id",
    "template_id_from_path",
]
