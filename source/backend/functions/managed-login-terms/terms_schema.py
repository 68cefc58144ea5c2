# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Attribute schema and validators for the Managed Login Terms resource.

The per-attribute rules (lengths, patterns, allowed values, map sizes) are
expressed as a JSON Schema and checked with the AWS Lambda Powertools
validation utility. Two rules live outside the schema: the character classes
allowed in link URLs, which need Unicode categories, and the cross-field
requirement that the links map carries a cognito:default entry.
"""

import unicodedata # Used to look up the Unicode general category of link characters.
from aws_lambda_powertools import Logger # AWS Lambda Powertools for structured logging.
from aws_lambda_powertools.utilities.validation import validate # JSON Schema validation (fastjsonschema).
from aws_lambda_powertools.utilities.validation.exceptions import SchemaValidationError
from errors import ValidationError


logger = Logger(service='ManagedLoginTermsCustomResource', child=True)

# Allowed values for the enum-typed attributes.
ENFORCEMENT_TYPES = ['NONE']
TERMS_SOURCE_TYPES = ['LINK']

DEFAULT_LINK_KEY = 'cognito:default'

# Word characters are ASCII only, so they are spelled out rather than written as \w.
CLIENT_ID_PATTERN = r'^[0-9A-Za-z_+]+$'
USER_POOL_ID_PATTERN = r'[0-9A-Za-z_-]+_[0-9a-zA-Z]+'
TERMS_ID_PATTERN = r'^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[4][0-9a-fA-F]{3}-[89abAB][0-9a-fA-F]{3}-[0-9a-fA-F]{12}$'
TERMS_NAME_PATTERN = r'^(terms-of-use|privacy-policy)$'
LINK_KEY_PATTERN = (r'^cognito:(default|english|french|spanish|german|bahasa-indonesia|italian|japanese'
                    r'|korean|portuguese-brazil|chinese-(simplified|traditional))$')

# Unicode general category prefixes allowed in link values: letters, marks, symbols, numbers, punctuation.
LINK_VALUE_CATEGORIES = ('L', 'M', 'S', 'N', 'P')

# Friendly messages for pattern failures, keyed by attribute.
PATTERN_MESSAGES = {
    'client_id': 'must match [\\w+]+',
    'user_pool_id': 'must match [\\w-]+_[0-9a-zA-Z]+',
    'managed_login_terms_id': 'must be UUID v4',
    'terms_name': 'must be exactly "terms-of-use" or "privacy-policy"',
    'links': 'invalid links key; see allowed Cognito language keys',
}

MANAGED_LOGIN_TERMS_SCHEMA = {
    '$schema': 'http://json-schema.org/draft-07/schema#',
    'type': 'object',
    'required': ['client_id', 'user_pool_id', 'enforcement', 'terms_name', 'terms_source', 'links'],
    'properties': {
        'client_id': {
            'type': 'string',
            'minLength': 1,
            'maxLength': 128,
            'pattern': CLIENT_ID_PATTERN,
        },
        'user_pool_id': {
            'type': 'string',
            'minLength': 1,
            'maxLength': 55,
            'pattern': USER_POOL_ID_PATTERN,
        },
        'enforcement': {
            'type': 'string',
            'enum': ENFORCEMENT_TYPES,
        },
        'terms_name': {
            'type': 'string',
            'pattern': TERMS_NAME_PATTERN,
        },
        'terms_source': {
            'type': 'string',
            'enum': TERMS_SOURCE_TYPES,
        },
        'links': {
            'type': 'object',
            'minProperties': 1,
            'maxProperties': 12,
            'propertyNames': {
                'pattern': LINK_KEY_PATTERN,
            },
            'additionalProperties': {
                'type': 'string',
                'minLength': 1,
                'maxLength': 1024,
            },
        },
        'managed_login_terms_id': {
            'type': 'string',
            'pattern': TERMS_ID_PATTERN,
        },
        'region': {
            'type': 'string',
            'minLength': 1,
        },
    },
}

IDENTIFIER_SCHEMA = {
    '$schema': 'http://json-schema.org/draft-07/schema#',
    'type': 'object',
    'required': ['user_pool_id', 'managed_login_terms_id'],
    'properties': {
        'user_pool_id': MANAGED_LOGIN_TERMS_SCHEMA['properties']['user_pool_id'],
        'managed_login_terms_id': MANAGED_LOGIN_TERMS_SCHEMA['properties']['managed_login_terms_id'],
    },
}


def _attribute_of(error: SchemaValidationError) -> str:
    # path looks like ['data', 'links', 'cognito:default']; a bare ['data'] means the object itself.
    path = error.path or []
    return path[1] if len(path) > 1 else 'data'


def _check_schema(data: dict, schema: dict) -> None:
    try:
        validate(event=data, schema=schema)
    except SchemaValidationError as e:
        attribute = _attribute_of(e)
        if e.rule == 'pattern' and attribute in PATTERN_MESSAGES:
            summary = PATTERN_MESSAGES[attribute]
        else:
            summary = e.validation_message or str(e)
        raise ValidationError(attribute, summary, f'got {e.value!r}') from e


def is_valid_link_value(value: str) -> bool:
    """
    True when every character of the value is a letter, mark, symbol, number
    or punctuation. Whitespace and control characters are rejected.
    """
    if not value:
        return False
    return all(unicodedata.category(c).startswith(LINK_VALUE_CATEGORIES) for c in value)


def validate_link_values(links: dict) -> None:
    for key, value in links.items():
        if not is_valid_link_value(value):
            raise ValidationError('links', 'invalid links value characters', f'value for {key} is not allowed')


def validate_links_default(links) -> None:
    """
    Cross-field check run at validate time: the links map has to carry a
    cognito:default entry. A missing map is left to the schema.
    """
    if links is None:
        return
    if DEFAULT_LINK_KEY not in links:
        raise ValidationError('links', 'links must include a cognito:default entry', 'missing cognito:default')


def validate_config(model: dict) -> None:
    """
    Validates the desired configuration of a Managed Login Terms resource.
    @param model: The resource model with snake_case attribute names.
    @raise ValidationError: On the first rule the model breaks.
    """
    logger.debug('Validating Managed Login Terms configuration')
    _check_schema(model, MANAGED_LOGIN_TERMS_SCHEMA)
    validate_link_values(model['links'])
    validate_links_default(model['links'])


def validate_identifier(user_pool_id: str, managed_login_terms_id: str) -> None:
    """Checks the two parts of a composite identifier before they are used to look a resource up."""
    _check_schema({'user_pool_id': user_pool_id, 'managed_login_terms_id': managed_login_terms_id},
                  IDENTIFIER_SCHEMA)
