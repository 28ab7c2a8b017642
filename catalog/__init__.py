"""
Catalog package: inspection components and templates.
"""

from .component_catalog import ComponentCatalog
from .defaults import DEFAULT_COMPONENTS
from .template_provider import (
    InspectionTemplate,
    TemplateProvider,
    StaticTemplateProvider,
    ConfigTemplateProvider,
)

__all__ = [
    'ComponentCatalog',
    'DEFAULT_COMPONENTS',
    'InspectionTemplate',
    'TemplateProvider',
    'StaticTemplateProvider',
    'ConfigTemplateProvider',
]
