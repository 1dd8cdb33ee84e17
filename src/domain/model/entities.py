"""Schemas for the five entities served by the API."""

import re

from domain.model.schema import EntitySchema, FieldKind, FieldSpec

DEFAULT_PROFILE_PHOTO = '/uploads/default-avatar.png'

LINK_PATTERN = re.compile(r'^[a-zA-Z0-9_]+$')
EMAIL_PATTERN = re.compile(r'^\w+([.-]?\w+)*@\w+([.-]?\w+)*(\.\w{2,3})+$')

MAX_NAME = 100
MAX_SHORT_DESCRIPTION = 200
MAX_CONTENT = 5000
MAX_ABOUT_IMAGES = 4

SOCIAL_LINK_FIELDS = ('instagramLink', 'facebookLink', 'youtubeLink', 'linkedinLink')


def _full_name(doc: dict) -> str:
    parts = [doc.get('firstName') or '', doc.get('lastName') or '']
    return ' '.join(part for part in parts if part).strip()


USER_SCHEMA = EntitySchema(
    name='user',
    label='User',
    plural_label='Users',
    collection='users',
    fields=(
        FieldSpec('profilePhoto', default=DEFAULT_PROFILE_PHOTO, is_image=True),
        FieldSpec(
            'truvedaLink', required=True, lowercase=True, pattern=LINK_PATTERN,
            pattern_message='truvedaLink may only contain letters, numbers, underscores',
        ),
        FieldSpec('firstName', required=True, max_length=50),
        FieldSpec('lastName', required=True, max_length=50),
        FieldSpec('displayName', required=True, max_length=100),
        FieldSpec('intro', max_length=200, default=''),
        FieldSpec('aboutYourself', max_length=2000, default=''),
        FieldSpec(
            'email', required=True, lowercase=True, pattern=EMAIL_PATTERN,
            pattern_message='Please provide a valid email',
        ),
        FieldSpec(
            'socialLinks', kind=FieldKind.OBJECT,
            children=tuple(FieldSpec(name, default='') for name in SOCIAL_LINK_FIELDS),
        ),
        FieldSpec('isActive', kind=FieldKind.BOOLEAN, default=True),
    ),
    search_fields=('firstName', 'lastName', 'displayName', 'email', 'truvedaLink'),
    unique_fields=('email', 'truvedaLink'),
    virtuals={'fullName': _full_name},
)


def _offering_schema(kind: str, label: str, plural_label: str) -> EntitySchema:
    """Services, products and workshops share one shape, prefixed by kind."""
    return EntitySchema(
        name=kind,
        label=label,
        plural_label=plural_label,
        collection=f'{kind}s',
        fields=(
            FieldSpec(f'{kind}Photo', default=f'/uploads/default-{kind}.png', is_image=True),
            FieldSpec(f'{kind}Name', required=True, max_length=MAX_NAME),
            FieldSpec('shortDescription', required=True, max_length=MAX_SHORT_DESCRIPTION),
            FieldSpec('content', required=True, max_length=MAX_CONTENT),
            FieldSpec('price', required=True),
            FieldSpec('strikerPrice', default=''),
        ),
        search_fields=(f'{kind}Name', 'shortDescription'),
    )


SERVICE_SCHEMA = _offering_schema('service', 'Service', 'Services')
PRODUCT_SCHEMA = _offering_schema('product', 'Product', 'Products')
WORKSHOP_SCHEMA = _offering_schema('workshop', 'Workshop', 'Workshops')

ABOUT_SCHEMA = EntitySchema(
    name='about',
    label='About entry',
    plural_label='About entries',
    collection='abouts',
    fields=(
        FieldSpec('description', required=True, max_length=MAX_CONTENT),
        FieldSpec(
            'images', kind=FieldKind.TEXT_LIST, default=[],
            max_items=MAX_ABOUT_IMAGES, is_image=True, upload_field='aboutImages',
        ),
    ),
)

ALL_SCHEMAS = (USER_SCHEMA, SERVICE_SCHEMA, PRODUCT_SCHEMA, WORKSHOP_SCHEMA, ABOUT_SCHEMA)
