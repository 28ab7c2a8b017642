"""
Template Provider

Supplies the inspection template (id + component catalog) a session is
rated against.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import yaml

from catalog.component_catalog import ComponentCatalog

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InspectionTemplate:
    """
    Inspection template.

    Attributes:
        id: Template identifier stored with every record
        name: Display name
        components: Components rated with this template
        min_documentation_photos: General photos required before submission
        max_photos: Optional cap on general documentation photos
    """

    id: str
    name: str
    components: ComponentCatalog
    min_documentation_photos: int = 1
    max_photos: Optional[int] = None


class TemplateProvider(ABC):
    """Source of the default inspection template."""

    @abstractmethod
    def get_default_template(self) -> Optional[InspectionTemplate]:
        """Return the default template, or None when none is configured."""
        pass


class StaticTemplateProvider(TemplateProvider):
    """Serves a template held in memory (or no template at all)."""

    def __init__(self, template: Optional[InspectionTemplate]):
        self.template = template

    def get_default_template(self) -> Optional[InspectionTemplate]:
        return self.template


class ConfigTemplateProvider(StaticTemplateProvider):
    """
    Template built from the `template`, `catalog` and `photos` sections of a
    YAML configuration file.

    Example:
        >>> provider = ConfigTemplateProvider.from_config('config.yaml')
        >>> provider.get_default_template().id
        'default-restroom'
    """

    @classmethod
    def from_config(cls, config_path: str = 'config.yaml') -> 'ConfigTemplateProvider':
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f) or {}

        template_config = config.get('template')
        if not template_config or not template_config.get('id'):
            logger.warning(f"No default template configured in {config_path}")
            return cls(None)

        photos_config = config.get('photos', {}) or {}
        template = InspectionTemplate(
            id=str(template_config['id']),
            name=template_config.get('name', str(template_config['id'])),
            components=ComponentCatalog.from_config(config_path),
            min_documentation_photos=int(photos_config.get('min_documentation_photos', 1)),
            max_photos=photos_config.get('max_photos'),
        )
        logger.info(f"Default template: {template.name} ({template.id})")
        return cls(template)
