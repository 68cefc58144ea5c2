# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Create, read, update and delete operations for Cognito Managed Login Terms,
plus the conversions between the resource model (snake_case attributes) and
the request and response shapes of the Cognito Identity Provider API.

Every operation takes the cognito-idp client as its first argument so callers
decide which region it talks to.
"""

from datetime import datetime # Used to render server-assigned timestamps.
from typing import TypedDict, Optional, Dict # Used for type hinting, defining dictionary structures.
from botocore.exceptions import ClientError # Used for catching AWS SDK client-side errors.
from aws_lambda_powertools import Logger # AWS Lambda Powertools for structured logging.
from errors import EmptyResultError, NotFoundError, OperationError, ParsingResourceIdError


logger = Logger(service='ManagedLoginTermsCustomResource', child=True)

RESOURCE_NAME = 'Cognito Managed Login Terms'

# Separator and part count of the composite identifier '<user_pool_id>,<managed_login_terms_id>'.
RESOURCE_ID_SEPARATOR = ','
RESOURCE_ID_PARTS = 2

# Attributes whose change cannot be applied in place.
REPLACEMENT_ATTRIBUTES = ('client_id', 'user_pool_id', 'region')


class ManagedLoginTerms(TypedDict, total=False):
    """
    The resource model. Required attributes come from configuration, the rest
    are assigned by Cognito.
    """
    client_id: str
    user_pool_id: str
    enforcement: str # 'NONE'
    terms_name: str # 'terms-of-use' or 'privacy-policy'
    terms_source: str # 'LINK'
    links: Dict[str, str] # Language key (e.g. 'cognito:default') to URL.
    managed_login_terms_id: Optional[str]
    creation_date: Optional[str] # RFC 3339
    last_modified_date: Optional[str] # RFC 3339
    region: Optional[str]


def is_not_found(e: ClientError) -> bool:
    return e.response['Error']['Code'] == 'ResourceNotFoundException'


def _rfc3339(value) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def expand_create(model: ManagedLoginTerms) -> dict:
    """Builds the CreateTerms request parameters from the model."""
    return {
        'UserPoolId': model['user_pool_id'],
        'ClientId': model['client_id'],
        'TermsName': model['terms_name'],
        'TermsSource': model['terms_source'],
        'Enforcement': model['enforcement'],
        'Links': dict(model['links']),
    }


def expand_update(model: ManagedLoginTerms) -> dict:
    """Builds the UpdateTerms request parameters. The client cannot change, so ClientId is not sent."""
    return {
        'UserPoolId': model['user_pool_id'],
        'TermsName': model['terms_name'],
        'TermsSource': model['terms_source'],
        'Enforcement': model['enforcement'],
        'Links': dict(model['links']),
    }


def flatten(terms: dict, model: ManagedLoginTerms) -> ManagedLoginTerms:
    """
    Copies a TermsType API response onto the model. Attributes that are absent
    from the response keep the value they already had.
    @param terms: The 'Terms' member of a Create/Describe/UpdateTerms response.
    @param model: The model to update.
    @return: A new model.
    """
    result = ManagedLoginTerms(**model)
    mapping = {
        'ClientId': 'client_id',
        'UserPoolId': 'user_pool_id',
        'Enforcement': 'enforcement',
        'TermsName': 'terms_name',
        'TermsSource': 'terms_source',
        'TermsId': 'managed_login_terms_id',
    }
    for api_name, attribute in mapping.items():
        if terms.get(api_name) is not None:
            result[attribute] = terms[api_name]
    if terms.get('Links') is not None:
        result['links'] = dict(terms['Links'])
    result['creation_date'] = _rfc3339(terms.get('CreationDate'))
    result['last_modified_date'] = _rfc3339(terms.get('LastModifiedDate'))
    return result


def create(conn, model: ManagedLoginTerms) -> ManagedLoginTerms:
    """Creates the terms and returns the model with its generated ID and timestamps."""
    params = expand_create(model)
    try:
        output = conn.create_terms(**params)
    except ClientError as e:
        raise OperationError(f'creating {RESOURCE_NAME} ({model["client_id"]})', e) from e

    if not output or not output.get('Terms'):
        raise OperationError(f'creating {RESOURCE_NAME}', EmptyResultError(params))

    logger.info(f'{RESOURCE_NAME} created', extra={'managed_login_terms_id': output['Terms'].get('TermsId')})
    return flatten(output['Terms'], model)


def find_by_two_part_key(conn, user_pool_id: str, terms_id: str) -> dict:
    """
    Looks a terms object up by its composite key.
    @return: The TermsType of the object.
    @raise NotFoundError: If Cognito reports the object missing or returns nothing.
    """
    params = {
        'TermsId': terms_id,
        'UserPoolId': user_pool_id,
    }
    try:
        output = conn.describe_terms(**params)
    except ClientError as e:
        if is_not_found(e):
            raise NotFoundError(last_error=e, last_request=params) from e
        raise

    if not output or not output.get('Terms'):
        raise EmptyResultError(params)

    return output['Terms']


def read(conn, model: ManagedLoginTerms) -> Optional[ManagedLoginTerms]:
    """
    Refreshes the model from Cognito.
    @return: The refreshed model, or None when the object no longer exists and
             should be dropped from state.
    """
    user_pool_id = model.get('user_pool_id') or ''
    terms_id = model.get('managed_login_terms_id') or ''
    try:
        terms = find_by_two_part_key(conn, user_pool_id, terms_id)
    except NotFoundError as e:
        logger.warning(f'{RESOURCE_NAME} ({terms_id}) not found, removing from state', extra={'error': str(e)})
        return None
    except ClientError as e:
        raise OperationError(f'reading {RESOURCE_NAME} ({terms_id})', e) from e

    return flatten(terms, model)


def update(conn, plan: ManagedLoginTerms, state: ManagedLoginTerms) -> ManagedLoginTerms:
    """
    Applies the planned configuration to the existing terms object. The ID is
    computed, so it is taken from state rather than from the plan.
    """
    terms_id = state.get('managed_login_terms_id')
    if not terms_id:
        raise OperationError(f'updating {RESOURCE_NAME}', ValueError('missing managed_login_terms_id in state'))

    params = expand_update(plan)
    params['TermsId'] = terms_id
    try:
        output = conn.update_terms(**params)
    except ClientError as e:
        raise OperationError(f'updating {RESOURCE_NAME} ({terms_id})', e) from e

    if not output or not output.get('Terms'):
        raise OperationError(f'updating {RESOURCE_NAME}', EmptyResultError(params))

    logger.info(f'{RESOURCE_NAME} updated', extra={'managed_login_terms_id': terms_id})
    return flatten(output['Terms'], plan)


def delete(conn, model: ManagedLoginTerms) -> None:
    """Deletes the terms object. One that is already gone counts as deleted."""
    user_pool_id = model.get('user_pool_id')
    terms_id = model.get('managed_login_terms_id')
    logger.debug(f'deleting {RESOURCE_NAME}', extra={
        'managed_login_terms_id': terms_id,
        'user_pool_id': user_pool_id,
    })
    try:
        conn.delete_terms(TermsId=terms_id, UserPoolId=user_pool_id)
    except ClientError as e:
        if is_not_found(e):
            logger.info(f'{RESOURCE_NAME} ({terms_id}) has already been deleted')
            return
        raise OperationError(f'deleting {RESOURCE_NAME} ({terms_id})', e) from e


def expand_resource_id(resource_id: str, part_count: int, allow_empty_part: bool) -> list:
    """
    Splits a composite resource identifier on commas.
    @raise ParsingResourceIdError: If the identifier does not have exactly
           part_count parts, or has an empty part while allow_empty_part is False.
    """
    if RESOURCE_ID_SEPARATOR not in (resource_id or ''):
        raise ParsingResourceIdError(f'unexpected format for ID ({resource_id}), expected more than one part')

    parts = resource_id.split(RESOURCE_ID_SEPARATOR)
    if len(parts) != part_count:
        raise ParsingResourceIdError(
            f'unexpected format for ID ({resource_id}), expected {part_count} parts separated by ({RESOURCE_ID_SEPARATOR})')

    if not allow_empty_part and any(part == '' for part in parts):
        raise ParsingResourceIdError(f'format for ID ({resource_id}) should not contain empty parts')

    return parts


def flatten_resource_id(model: ManagedLoginTerms) -> str:
    """The composite identifier of the model, in the same format import_state accepts."""
    return RESOURCE_ID_SEPARATOR.join([model['user_pool_id'], model['managed_login_terms_id']])


def import_state(import_id: str) -> ManagedLoginTerms:
    """
    Seeds a model from an import identifier of the form
    '<user_pool_id>,<managed_login_terms_id>'. The model only carries the
    identity; a read fills in the rest.
    """
    user_pool_id, terms_id = expand_resource_id(import_id, RESOURCE_ID_PARTS, True)
    return ManagedLoginTerms(user_pool_id=user_pool_id, managed_login_terms_id=terms_id)


def requires_replace(plan: ManagedLoginTerms, state: ManagedLoginTerms, default_region: Optional[str] = None) -> bool:
    """
    True when the planned change touches an attribute that forces a new object.
    An unset region stands for default_region, so naming the default region
    explicitly does not move the terms.
    """
    for attribute in REPLACEMENT_ATTRIBUTES:
        planned, current = plan.get(attribute), state.get(attribute)
        if attribute == 'region':
            planned, current = planned or default_region, current or default_region
        if planned != current:
            return True
    return False
