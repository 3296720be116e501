from .render_client import CarboneRenderClient, RenderGateway
from .status_client import CarboneStatusClient, StatusGateway
from .template_client import CarboneTemplateClient, TemplateGateway

__all__ = [
    "CarboneRenderClient",
    "RenderGateway",
    "CarboneStatusClient",
    "StatusGateway",
    "CarboneTemplateClient",
    "TemplateGateway",
]
