import unittest
from datetime import datetime, timezone
from unittest.mock import MagicMock

from botocore.exceptions import ClientError

import terms_resource
from errors import EmptyResultError, NotFoundError, OperationError, ParsingResourceIdError


USER_POOL_ID = 'us-east-1_EXAMPLE'
CLIENT_ID = '1example23456789'
TERMS_ID = '3f2b8c1e-5d6a-4b7c-9e8f-0a1b2c3d4e5f'


def _client_error(code, operation):
    return ClientError({'Error': {'Code': code, 'Message': f'{code} raised'}}, operation)


def _model(**overrides):
    model = terms_resource.ManagedLoginTerms(
        client_id=CLIENT_ID,
        user_pool_id=USER_POOL_ID,
        enforcement='NONE',
        terms_name='terms-of-use',
        terms_source='LINK',
        links={'cognito:default': 'https://example.com/terms'},
    )
    model.update(overrides)
    return model


def _terms(**overrides):
    terms = {
        'TermsId': TERMS_ID,
        'UserPoolId': USER_POOL_ID,
        'ClientId': CLIENT_ID,
        'TermsName': 'terms-of-use',
        'TermsSource': 'LINK',
        'Enforcement': 'NONE',
        'Links': {'cognito:default': 'https://example.com/terms'},
        'CreationDate': datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
        'LastModifiedDate': datetime(2025, 1, 3, 3, 4, 5, tzinfo=timezone.utc),
    }
    terms.update(overrides)
    return terms


class TestExpandFlatten(unittest.TestCase):

    def test_expand_create(self):
        self.assertEqual(terms_resource.expand_create(_model()), {
            'UserPoolId': USER_POOL_ID,
            'ClientId': CLIENT_ID,
            'TermsName': 'terms-of-use',
            'TermsSource': 'LINK',
            'Enforcement': 'NONE',
            'Links': {'cognito:default': 'https://example.com/terms'},
        })

    def test_expand_update_has_no_client_id(self):
        params = terms_resource.expand_update(_model())
        self.assertNotIn('ClientId', params)
        self.assertNotIn('TermsId', params)
        self.assertEqual(params['UserPoolId'], USER_POOL_ID)

    def test_flatten(self):
        model = terms_resource.flatten(_terms(Links={'cognito:default': 'a', 'cognito:french': 'b'}), _model(region='eu-west-1'))
        self.assertEqual(model['managed_login_terms_id'], TERMS_ID)
        self.assertEqual(model['creation_date'], '2025-01-02T03:04:05+00:00')
        self.assertEqual(model['last_modified_date'], '2025-01-03T03:04:05+00:00')
        self.assertEqual(model['links'], {'cognito:default': 'a', 'cognito:french': 'b'})
        self.assertEqual(model['region'], 'eu-west-1')

    def test_flatten_does_not_modify_input(self):
        original = _model()
        terms_resource.flatten(_terms(), original)
        self.assertNotIn('managed_login_terms_id', original)


class TestCreate(unittest.TestCase):

    def test_create(self):
        conn = MagicMock()
        conn.create_terms.return_value = {'Terms': _terms()}

        model = terms_resource.create(conn, _model())

        conn.create_terms.assert_called_once_with(**terms_resource.expand_create(_model()))
        self.assertEqual(model['managed_login_terms_id'], TERMS_ID)
        self.assertEqual(model['creation_date'], '2025-01-02T03:04:05+00:00')

    def test_create_error(self):
        conn = MagicMock()
        conn.create_terms.side_effect = _client_error('InvalidParameterException', 'CreateTerms')

        with self.assertRaises(OperationError) as ctx:
            terms_resource.create(conn, _model())
        self.assertEqual(ctx.exception.summary, f'creating Cognito Managed Login Terms ({CLIENT_ID})')
        self.assertIsInstance(ctx.exception.cause, ClientError)

    def test_create_empty_result(self):
        conn = MagicMock()
        conn.create_terms.return_value = {}

        with self.assertRaises(OperationError) as ctx:
            terms_resource.create(conn, _model())
        self.assertIsInstance(ctx.exception.cause, EmptyResultError)


class TestRead(unittest.TestCase):

    def test_find_by_two_part_key(self):
        conn = MagicMock()
        conn.describe_terms.return_value = {'Terms': _terms()}

        terms = terms_resource.find_by_two_part_key(conn, USER_POOL_ID, TERMS_ID)

        conn.describe_terms.assert_called_once_with(TermsId=TERMS_ID, UserPoolId=USER_POOL_ID)
        self.assertEqual(terms['TermsId'], TERMS_ID)

    def test_find_not_found(self):
        conn = MagicMock()
        conn.describe_terms.side_effect = _client_error('ResourceNotFoundException', 'DescribeTerms')

        with self.assertRaises(NotFoundError) as ctx:
            terms_resource.find_by_two_part_key(conn, USER_POOL_ID, TERMS_ID)
        self.assertEqual(ctx.exception.last_request, {'TermsId': TERMS_ID, 'UserPoolId': USER_POOL_ID})
        self.assertIsInstance(ctx.exception.last_error, ClientError)

    def test_find_empty_result(self):
        conn = MagicMock()
        conn.describe_terms.return_value = {'Terms': None}

        with self.assertRaises(EmptyResultError):
            terms_resource.find_by_two_part_key(conn, USER_POOL_ID, TERMS_ID)

    def test_find_other_error_propagates(self):
        conn = MagicMock()
        conn.describe_terms.side_effect = _client_error('TooManyRequestsException', 'DescribeTerms')

        with self.assertRaises(ClientError):
            terms_resource.find_by_two_part_key(conn, USER_POOL_ID, TERMS_ID)

    def test_read(self):
        conn = MagicMock()
        conn.describe_terms.return_value = {'Terms': _terms(TermsName='privacy-policy')}

        model = terms_resource.read(conn, terms_resource.import_state(f'{USER_POOL_ID},{TERMS_ID}'))

        self.assertEqual(model['terms_name'], 'privacy-policy')
        self.assertEqual(model['client_id'], CLIENT_ID)

    def test_read_gone(self):
        conn = MagicMock()
        conn.describe_terms.side_effect = _client_error('ResourceNotFoundException', 'DescribeTerms')

        self.assertIsNone(terms_resource.read(conn, _model(managed_login_terms_id=TERMS_ID)))

    def test_read_error(self):
        conn = MagicMock()
        conn.describe_terms.side_effect = _client_error('NotAuthorizedException', 'DescribeTerms')

        with self.assertRaises(OperationError) as ctx:
            terms_resource.read(conn, _model(managed_login_terms_id=TERMS_ID))
        self.assertEqual(ctx.exception.summary, f'reading Cognito Managed Login Terms ({TERMS_ID})')


class TestUpdate(unittest.TestCase):

    def test_update_uses_id_from_state(self):
        conn = MagicMock()
        conn.update_terms.return_value = {'Terms': _terms(TermsName='privacy-policy')}
        plan = _model(terms_name='privacy-policy')

        model = terms_resource.update(conn, plan, _model(managed_login_terms_id=TERMS_ID))

        expected = terms_resource.expand_update(plan)
        expected['TermsId'] = TERMS_ID
        conn.update_terms.assert_called_once_with(**expected)
        self.assertEqual(model['managed_login_terms_id'], TERMS_ID)
        self.assertEqual(model['terms_name'], 'privacy-policy')

    def test_update_after_import_keeps_planned_links(self):
        conn = MagicMock()
        conn.describe_terms.return_value = {'Terms': _terms(Links=None)}
        conn.update_terms.return_value = {'Terms': _terms(Links=None)}
        plan = _model(links={'cognito:default': 'https://example.com/terms', 'cognito:german': 'https://example.com/de'})

        state = terms_resource.read(conn, terms_resource.import_state(f'{USER_POOL_ID},{TERMS_ID}'))
        self.assertNotIn('links', state)
        model = terms_resource.update(conn, plan, state)

        self.assertEqual(conn.update_terms.call_args.kwargs['Links'], plan['links'])
        self.assertEqual(conn.update_terms.call_args.kwargs['TermsId'], TERMS_ID)
        self.assertEqual(model['links'], plan['links'])

    def test_update_without_id_in_state(self):
        conn = MagicMock()

        with self.assertRaises(OperationError) as ctx:
            terms_resource.update(conn, _model(), _model())
        self.assertIn('missing managed_login_terms_id in state', str(ctx.exception))
        conn.update_terms.assert_not_called()

    def test_update_error(self):
        conn = MagicMock()
        conn.update_terms.side_effect = _client_error('InvalidParameterException', 'UpdateTerms')

        with self.assertRaises(OperationError) as ctx:
            terms_resource.update(conn, _model(), _model(managed_login_terms_id=TERMS_ID))
        self.assertEqual(ctx.exception.summary, f'updating Cognito Managed Login Terms ({TERMS_ID})')

    def test_update_empty_result(self):
        conn = MagicMock()
        conn.update_terms.return_value = None

        with self.assertRaises(OperationError) as ctx:
            terms_resource.update(conn, _model(), _model(managed_login_terms_id=TERMS_ID))
        self.assertIsInstance(ctx.exception.cause, EmptyResultError)


class TestDelete(unittest.TestCase):

    def test_delete(self):
        conn = MagicMock()
        terms_resource.delete(conn, _model(managed_login_terms_id=TERMS_ID))
        conn.delete_terms.assert_called_once_with(TermsId=TERMS_ID, UserPoolId=USER_POOL_ID)

    def test_delete_already_gone(self):
        conn = MagicMock()
        conn.delete_terms.side_effect = _client_error('ResourceNotFoundException', 'DeleteTerms')
        terms_resource.delete(conn, _model(managed_login_terms_id=TERMS_ID))

    def test_delete_error(self):
        conn = MagicMock()
        conn.delete_terms.side_effect = _client_error('InternalErrorException', 'DeleteTerms')

        with self.assertRaises(OperationError) as ctx:
            terms_resource.delete(conn, _model(managed_login_terms_id=TERMS_ID))
        self.assertEqual(ctx.exception.summary, f'deleting Cognito Managed Login Terms ({TERMS_ID})')


class TestResourceId(unittest.TestCase):

    def test_import_state(self):
        self.assertEqual(terms_resource.import_state(f'{USER_POOL_ID},{TERMS_ID}'), {
            'user_pool_id': USER_POOL_ID,
            'managed_login_terms_id': TERMS_ID,
        })

    def test_import_state_round_trips_with_flatten_resource_id(self):
        model = _model(managed_login_terms_id=TERMS_ID)
        self.assertEqual(terms_resource.flatten_resource_id(model), f'{USER_POOL_ID},{TERMS_ID}')

    def test_import_state_single_part(self):
        with self.assertRaises(ParsingResourceIdError) as ctx:
            terms_resource.import_state(TERMS_ID)
        self.assertIn('expected more than one part', str(ctx.exception))

    def test_import_state_too_many_parts(self):
        with self.assertRaises(ParsingResourceIdError) as ctx:
            terms_resource.import_state(f'{USER_POOL_ID},{TERMS_ID},extra')
        self.assertIn('expected 2 parts separated by (,)', str(ctx.exception))

    def test_expand_resource_id_empty_parts(self):
        self.assertEqual(terms_resource.expand_resource_id(f'{USER_POOL_ID},', 2, True), [USER_POOL_ID, ''])
        with self.assertRaises(ParsingResourceIdError):
            terms_resource.expand_resource_id(f'{USER_POOL_ID},', 2, False)

    def test_requires_replace(self):
        state = _model(managed_login_terms_id=TERMS_ID)
        self.assertFalse(terms_resource.requires_replace(_model(terms_name='privacy-policy'), state))
        self.assertTrue(terms_resource.requires_replace(_model(client_id='otherclient'), state))
        self.assertTrue(terms_resource.requires_replace(_model(user_pool_id='us-east-1_OTHER'), state))
        self.assertTrue(terms_resource.requires_replace(_model(region='eu-west-1'), state))

    def test_requires_replace_resolves_default_region(self):
        state = _model(managed_login_terms_id=TERMS_ID)
        self.assertFalse(terms_resource.requires_replace(_model(region='us-east-1'), state, 'us-east-1'))
        self.assertFalse(terms_resource.requires_replace(_model(), _model(region='us-east-1'), 'us-east-1'))
        self.assertTrue(terms_resource.requires_replace(_model(region='eu-west-1'), state, 'us-east-1'))


if __name__ == '__main__':
    unittest.main()
