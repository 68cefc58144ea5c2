# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Exceptions raised by the Managed Login Terms custom resource. Anything raised
out of a lifecycle handler is reported back to CloudFormation by crhelper as a
FAILED response, with the exception message as the reason.
"""


class ManagedLoginTermsError(Exception):
    """Base class for all errors raised by this function."""


class NotFoundError(ManagedLoginTermsError):
    """
    The backing Managed Login Terms object does not exist. Keeps the SDK error
    and the request that produced it.
    """

    def __init__(self, last_error=None, last_request=None, message='couldn\'t find resource'):
        self.last_error = last_error # The ClientError raised by the SDK, if any.
        self.last_request = last_request # The request parameters that were sent.
        if last_error is not None:
            message = f'{message}: {last_error}'
        super().__init__(message)


class EmptyResultError(NotFoundError):
    """The API call succeeded but its response carried no Terms."""

    def __init__(self, last_request=None):
        super().__init__(last_request=last_request, message='empty result')


class ParsingResourceIdError(ManagedLoginTermsError):
    """A composite resource identifier could not be split into its parts."""

    def __init__(self, cause: str):
        self.cause = cause
        super().__init__(f'parsing resource ID: {cause}')


class ValidationError(ManagedLoginTermsError):
    """
    A resource property failed validation.
    @param path: Name of the offending attribute (e.g. 'links').
    @param summary: Short description of the rule that was broken.
    @param detail: What was actually wrong with the value.
    """

    def __init__(self, path: str, summary: str, detail: str = ''):
        self.path = path
        self.summary = summary
        self.detail = detail
        message = f'Invalid Attribute Value ({path}): {summary}'
        if detail:
            message = f'{message}, {detail}'
        super().__init__(message)


class OperationError(ManagedLoginTermsError):
    """
    An API call for a lifecycle operation failed. The message names the
    operation and the resource, e.g. 'creating Cognito Managed Login Terms (abc)'.
    """

    def __init__(self, summary: str, cause: Exception):
        self.summary = summary
        self.cause = cause
        super().__init__(f'{summary}: {cause}')
