"""Service modules - Business logic layer"""
from .template_service import TemplateService
from .request_service import RequestService
from .directory_service import DirectoryService

__all__ = [
    "TemplateService",
    "RequestService",
    "DirectoryService",
]
