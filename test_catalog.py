"""
Catalog and Model Tests
Tests: default catalog, load-time validation, rating sheet invariants,
template provider, versioned submission payload
"""

from datetime import datetime

import pytest
import yaml

from catalog import ComponentCatalog, ConfigTemplateProvider, StaticTemplateProvider
from models import (
    ComponentCategory,
    ComponentDefinition,
    ComponentRating,
    InspectionSubmission,
    RatingSheet,
)


def test_default_catalog_contents():
    catalog = ComponentCatalog.default()

    assert len(catalog) == 11
    assert catalog.ids()[0] == 'aroma'
    assert catalog.get('aroma').category == ComponentCategory.AROMA
    assert catalog.get('toilet_condition').weight == 0.15
    assert not catalog.get('urinal_condition').required
    assert 'urinal_condition' not in [d.id for d in catalog.required()]
    assert {d.id for d in catalog.photo_components()} == {
        'floor_cleanliness', 'wall_condition', 'sink_condition',
        'toilet_condition', 'urinal_condition', 'trash_bin_condition',
    }
    assert catalog.total_weight() == pytest.approx(1.0)


def test_definitions_carry_rating_labels():
    aroma = ComponentCatalog.default().get('aroma')
    assert aroma.label == 'Aroma/Odor Level'
    assert aroma.describe_rating(5)
    assert aroma.describe_rating(9) == ''


@pytest.mark.parametrize('weight', [0, -0.1, 1.01])
def test_invalid_weight_rejected_at_load(weight):
    with pytest.raises(ValueError):
        ComponentDefinition(id='floor', category='visual', weight=weight)


def test_unknown_category_rejected():
    with pytest.raises(ValueError):
        ComponentDefinition(id='floor', category='smell', weight=0.5)


def test_duplicate_component_rejected():
    with pytest.raises(ValueError):
        ComponentCatalog.from_dicts([
            {'id': 'floor', 'category': 'visual', 'weight': 0.5},
            {'id': 'floor', 'category': 'visual', 'weight': 0.3},
        ])


def test_empty_catalog_rejected():
    with pytest.raises(ValueError):
        ComponentCatalog([])


def test_catalog_from_config(tmp_path):
    config_path = tmp_path / 'config.yaml'
    config_path.write_text(yaml.safe_dump({
        'catalog': {'components': [
            {'id': 'floor', 'category': 'visual', 'weight': 0.7, 'allow_photo': True},
            {'id': 'soap', 'category': 'availability', 'weight': 0.3, 'required': False},
        ]}
    }))

    catalog = ComponentCatalog.from_config(str(config_path))
    assert catalog.ids() == ['floor', 'soap']
    assert catalog.get('floor').label == 'Floor'
    assert [d.id for d in catalog.required()] == ['floor']


def test_catalog_from_config_falls_back_to_default(tmp_path):
    config_path = tmp_path / 'config.yaml'
    config_path.write_text('template:\n  id: t1\n')

    assert len(ComponentCatalog.from_config(str(config_path))) == 11


# ===========================
# Rating sheet
# ===========================

def test_rating_sheet_keeps_one_rating_per_component():
    sheet = RatingSheet(ComponentCatalog.default())

    first = sheet.rate('aroma', 2)
    sheet.set_notes('aroma', '  Strong smell  ')
    second = sheet.rate('aroma', 4)

    assert first is second
    assert len(sheet) == 1
    assert sheet.get('aroma').rating == 4
    assert sheet.get('aroma').notes == 'Strong smell'


def test_rating_sheet_rejects_bad_input():
    sheet = RatingSheet(ComponentCatalog.default())

    with pytest.raises(ValueError):
        sheet.rate('jacuzzi', 3)
    for bad in (0, 6, 2.5, True, None):
        with pytest.raises(ValueError):
            sheet.rate('aroma', bad)
    with pytest.raises(ValueError):
        sheet.set_notes('aroma', 'not rated yet')


def test_rating_sheet_order_and_missing():
    catalog = ComponentCatalog.default()
    sheet = RatingSheet(catalog)
    sheet.rate('trash_bin_condition', 3)
    sheet.rate('aroma', 5)

    assert [r.component for r in sheet.ratings()] == ['aroma', 'trash_bin_condition']
    missing = [d.id for d in sheet.missing_required()]
    assert 'aroma' not in missing
    assert 'urinal_condition' not in missing
    assert len(missing) == 8


def test_snapshot_is_detached():
    sheet = RatingSheet(ComponentCatalog.default())
    sheet.rate('aroma', 3)

    snapshot = sheet.snapshot()
    sheet.rate('aroma', 1)

    assert snapshot[0].rating == 3


# ===========================
# Templates
# ===========================

def test_config_template_provider(tmp_path):
    config_path = tmp_path / 'config.yaml'
    config_path.write_text(yaml.safe_dump({
        'template': {'id': 'default-restroom', 'name': 'Restroom'},
        'photos': {'min_documentation_photos': 2, 'max_photos': 5},
    }))

    template = ConfigTemplateProvider.from_config(str(config_path)).get_default_template()
    assert template.id == 'default-restroom'
    assert template.min_documentation_photos == 2
    assert template.max_photos == 5
    assert len(template.components) == 11


def test_missing_template_yields_none(tmp_path):
    config_path = tmp_path / 'config.yaml'
    config_path.write_text('photos:\n  max_photos: 3\n')

    assert ConfigTemplateProvider.from_config(str(config_path)).get_default_template() is None
    assert StaticTemplateProvider(None).get_default_template() is None


# ===========================
# Submission payload
# ===========================

def _submission() -> InspectionSubmission:
    return InspectionSubmission(
        ratings=(ComponentRating('aroma', 4, photo_ref=None),),
        score=80,
        overall_status='good',
        photo_urls=('https://example.com/a.jpg',),
        duration_seconds=95,
        submitted_at=datetime(2024, 3, 5, 14, 7, 9),
    )


def test_submission_payload_is_tagged():
    payload = _submission().to_dict()

    assert payload['schema'] == 'inspection_submission'
    assert payload['version'] == 1
    assert InspectionSubmission.from_dict(payload) == _submission()


def test_unknown_payload_shapes_rejected():
    payload = _submission().to_dict()

    with pytest.raises(ValueError):
        InspectionSubmission.from_dict(dict(payload, schema='other'))
    with pytest.raises(ValueError):
        InspectionSubmission.from_dict(dict(payload, version=2))


def test_submission_is_immutable():
    with pytest.raises(AttributeError):
        _submission().score = 10


def test_stored_rating_is_not_truncated():
    with pytest.raises(ValueError):
        ComponentRating.from_dict({'component': 'aroma', 'rating': 4.7})
    with pytest.raises(ValueError):
        ComponentRating.from_dict({'component': 'aroma', 'rating': '4'})

    assert ComponentRating.from_dict({'component': 'aroma', 'rating': 4}).rating == 4
