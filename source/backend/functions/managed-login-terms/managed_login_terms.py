# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

"""
This AWS Lambda function acts as a CloudFormation Custom Resource to manage
Amazon Cognito Managed Login Terms (terms of use and privacy policy links shown
by managed login for a user pool app client). It supports creating, updating
and deleting terms, and can adopt terms that already exist through ImportId.

The physical resource ID is the composite identifier
'<UserPoolId>,<ManagedLoginTermsId>', the same format ImportId takes.
"""

import boto3 # AWS SDK for Python, used to interact with AWS services like Cognito.
from os import getenv # Used to retrieve environment variables.
from botocore.config import Config # Used to configure retries on the Cognito client.
from aws_lambda_powertools import Logger # AWS Lambda Powertools for structured logging.
from crhelper import CfnResource # Custom resource helper for CloudFormation.
from typing import TypedDict, Optional, Dict # Used for type hinting, defining dictionary structures.

import terms_resource
import terms_schema
from errors import NotFoundError, ParsingResourceIdError, ValidationError


LOG_LEVEL = getenv('LogLevel', 'INFO')

# Initializes the AWS Lambda Powertools logger for structured logging.
logger = Logger(service='ManagedLoginTermsCustomResource', level=LOG_LEVEL)

# Initializes the CloudFormation custom resource helper.
# json_logging=False: Disables JSON formatting for logs.
# boto_level='CRITICAL': Sets the boto3 logging level to CRITICAL to reduce verbosity from the SDK.
helper = CfnResource(json_logging=False, log_level=LOG_LEVEL,
                     boto_level='CRITICAL')

# Standard retry mode backs off on throttling from the Cognito control plane.
client_config = Config(retries={'max_attempts': 5, 'mode': 'standard'})

try:
    # Initializes a Cognito Identity Provider client for the function's own region.
    cognito_client = boto3.client('cognito-idp', config=client_config)
except Exception as e:
    # Any error here (e.g. no region configured) is reported as a FAILED response.
    helper.init_failure(e)

# Clients for regions other than the function's own, created on first use.
regional_clients = {}

# CloudFormation property name to resource model attribute.
PROPERTY_NAMES = {
    'ClientId': 'client_id',
    'UserPoolId': 'user_pool_id',
    'Enforcement': 'enforcement',
    'TermsName': 'terms_name',
    'TermsSource': 'terms_source',
    'Links': 'links',
    'Region': 'region',
}


class ManagedLoginTermsProperties(TypedDict, total=False):
    """
    TypedDict for the properties expected in the CloudFormation custom resource.
    """
    UserPoolId: str # The ID of the Cognito User Pool.
    ClientId: str # The ID of the app client the terms apply to.
    Enforcement: str # How the terms are enforced; only 'NONE' is accepted.
    TermsName: str # 'terms-of-use' or 'privacy-policy'.
    TermsSource: str # Where the terms come from; only 'LINK' is accepted.
    Links: Dict[str, str] # Language key to URL; must include 'cognito:default'.
    Region: Optional[str] # Region of the user pool, defaults to the function's region.
    ImportId: Optional[str] # '<UserPoolId>,<ManagedLoginTermsId>' of existing terms to adopt on create.


class Event(TypedDict, total=False):
    """
    TypedDict for the AWS Lambda event structure when invoked as a CloudFormation Custom Resource.
    """
    RequestType: str # Type of request: 'Create', 'Update', or 'Delete'.
    ResponseURL: str
    StackId: str
    RequestId: str
    ResourceType: str
    LogicalResourceId: str
    PhysicalResourceId: str # Present on Update and Delete.
    ResourceProperties: ManagedLoginTermsProperties
    OldResourceProperties: ManagedLoginTermsProperties # Present on Update.


def client_for(region: Optional[str] = None):
    """Returns a Cognito client for the given region, or the default client when no region is set."""
    if not region:
        return cognito_client
    if region not in regional_clients:
        regional_clients[region] = boto3.client('cognito-idp', region_name=region, config=client_config)
    return regional_clients[region]


def to_model(props: ManagedLoginTermsProperties) -> terms_resource.ManagedLoginTerms:
    """Converts CloudFormation properties into the resource model, dropping properties that are not set."""
    model = terms_resource.ManagedLoginTerms()
    for prop, attribute in PROPERTY_NAMES.items():
        if props.get(prop) is not None:
            model[attribute] = props[prop]
    return model


def state_from_event(event: Event) -> terms_resource.ManagedLoginTerms:
    """
    Rebuilds the prior state from the physical resource ID and the previous
    properties of an Update event.
    """
    state = to_model(event.get('OldResourceProperties') or {})
    identity = terms_resource.import_state(event['PhysicalResourceId'])
    state.update(identity)
    return state


def publish(state: terms_resource.ManagedLoginTerms) -> None:
    """Exposes the resource attributes to Fn::GetAtt through the helper's Data."""
    attributes = {
        'ManagedLoginTermsId': state.get('managed_login_terms_id'),
        'UserPoolId': state.get('user_pool_id'),
        'ClientId': state.get('client_id'),
        'TermsName': state.get('terms_name'),
        'TermsSource': state.get('terms_source'),
        'Enforcement': state.get('enforcement'),
        'CreationDate': state.get('creation_date'),
        'LastModifiedDate': state.get('last_modified_date'),
    }
    helper.Data.update({k: v for k, v in attributes.items() if v is not None})


def adopt(conn, import_id: str, plan: terms_resource.ManagedLoginTerms) -> terms_resource.ManagedLoginTerms:
    """
    Imports existing terms and brings them in line with the desired properties.
    @param import_id: '<UserPoolId>,<ManagedLoginTermsId>' of the terms to adopt.
    @raise NotFoundError: If no terms exist under import_id.
    """
    state = terms_resource.import_state(import_id)
    terms_schema.validate_identifier(state['user_pool_id'], state['managed_login_terms_id'])
    if state['user_pool_id'] != plan['user_pool_id']:
        raise ValidationError('user_pool_id', f'does not match the user pool of ImportId ({import_id})')

    state = terms_resource.read(conn, state)
    if state is None:
        raise NotFoundError(message=f'importing {terms_resource.RESOURCE_NAME} ({import_id})')
    if state.get('client_id') != plan['client_id']:
        raise ValidationError('client_id', f'does not match the client of ImportId ({import_id})')

    logger.info('Adopting existing managed login terms', extra={'import_id': import_id})
    return terms_resource.update(conn, plan, state)


@helper.create
def create(event: Event, _) -> str:
    """
    Handles CloudFormation Create events. Validates the properties, then either
    creates new terms or adopts the ones named by ImportId.
    @return: The physical resource ID.
    """
    logger.info('Creating managed login terms')
    props: ManagedLoginTermsProperties = event['ResourceProperties']
    plan = to_model(props)
    terms_schema.validate_config(plan)

    conn = client_for(plan.get('region'))
    import_id = props.get('ImportId')
    if import_id:
        state = adopt(conn, import_id, plan)
    else:
        state = terms_resource.create(conn, plan)

    publish(state)
    return terms_resource.flatten_resource_id(state)


@helper.update
def update(event: Event, _) -> str:
    """
    Handles CloudFormation Update events.
    A changed user pool, client or region needs new terms: they are created and
    the new physical resource ID is returned, after which CloudFormation sends a
    Delete for the old one. Other changes are applied in place, unless the terms
    have disappeared, in which case they are created again.
    @return: The physical resource ID.
    """
    logger.info('Updating managed login terms')
    plan = to_model(event['ResourceProperties'])
    terms_schema.validate_config(plan)
    state = state_from_event(event)
    conn = client_for(plan.get('region'))

    if terms_resource.requires_replace(plan, state, cognito_client.meta.region_name):
        logger.info('Replacing managed login terms', extra={'old_physical_id': event['PhysicalResourceId']})
        new_state = terms_resource.create(conn, plan)
    else:
        current = terms_resource.read(conn, state)
        if current is None:
            new_state = terms_resource.create(conn, plan)
        else:
            new_state = terms_resource.update(conn, plan, current)

    publish(new_state)
    return terms_resource.flatten_resource_id(new_state)


@helper.delete
def delete(event: Event, _) -> None:
    """
    Handles CloudFormation Delete events. Terms that are already gone are
    ignored. A physical resource ID that is not a terms identifier means the
    create never completed, so there is nothing to delete.
    """
    logger.info('Deleting managed login terms')
    props: ManagedLoginTermsProperties = event.get('ResourceProperties') or {}
    physical_id = event.get('PhysicalResourceId', '')

    try:
        state = terms_resource.import_state(physical_id)
        terms_schema.validate_identifier(state['user_pool_id'], state['managed_login_terms_id'])
    except (ParsingResourceIdError, ValidationError) as e:
        logger.warning(f'{physical_id} is not a managed login terms identifier, skipping delete', extra={'error': str(e)})
        return

    terms_resource.delete(client_for(props.get('Region')), state)
    logger.info('Managed login terms deleted.')


@logger.inject_lambda_context # Decorator to inject Lambda context into the logger.
def handler(event, context) -> None:
    """
    The main Lambda handler function.
    It dispatches the event to the appropriate helper function (create, update, or delete)
    based on the CloudFormation request type.
    """
    helper(event, context)
