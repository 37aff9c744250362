"""
Unit tests for the validation helpers.

Tests option, authcode, time window and token bundle validation, and the
Dexcom date formatting.
"""

import pytest

from dexcom_helper.errors import ValidationError
from dexcom_helper.helpers import (
    SANDBOX_AUTHCODES,
    validate_options,
    validate_sandbox_authcode,
    dexcomify_epoch_time,
    validate_time_window,
    validate_oauth_tokens,
    coerce_oauth_tokens
)
from tests.conftest import (
    VALID_CLIENT_ID,
    VALID_CLIENT_SECRET,
    create_test_bundle,
    create_test_tokens_dict
)


class TestValidateOptions:
    """Test cases for validate_options()."""

    def test_valid_options_accepted(self, valid_options_dict):
        validate_options(valid_options_dict)

    def test_valid_dataclass_accepted(self, valid_options):
        validate_options(valid_options)

    def test_snake_case_keys_accepted(self):
        validate_options({
            'client_id': VALID_CLIENT_ID,
            'client_secret': VALID_CLIENT_SECRET,
            'redirect_uri': 'https://foo.bar.com',
            'api_uri': 'https://api.dexcom.com'
        })

    def test_null_options_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_options(None)
        assert exc_info.value.field == 'options'

    def test_empty_options_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_options({})
        assert exc_info.value.constraint == 'required'

    def test_empty_properties_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_options({'clientId': '', 'clientSecret': '', 'redirectUri': '', 'apiUri': ''})
        assert exc_info.value.constraint == 'non-empty'

    @pytest.mark.parametrize('missing', ['clientId', 'clientSecret', 'redirectUri', 'apiUri'])
    def test_each_missing_field_rejected(self, valid_options_dict, missing):
        del valid_options_dict[missing]
        with pytest.raises(ValidationError):
            validate_options(valid_options_dict)

    def test_invalid_redirect_uri_rejected(self, valid_options_dict):
        valid_options_dict['redirectUri'] = 'not a URI'
        with pytest.raises(ValidationError) as exc_info:
            validate_options(valid_options_dict)
        assert exc_info.value.field == 'redirect_uri'
        assert exc_info.value.constraint == 'uri'

    def test_invalid_api_uri_rejected(self, valid_options_dict):
        valid_options_dict['apiUri'] = 'not a URI'
        with pytest.raises(ValidationError) as exc_info:
            validate_options(valid_options_dict)
        assert exc_info.value.field == 'api_uri'

    @pytest.mark.parametrize('uri', [
        'https://exa mple.com',
        'https://example.com/call back',
        'https://example.com\n',
        'https://',
        'http:foo',
        '//host/path',
        '/relative/path',
    ])
    def test_malformed_redirect_uri_rejected(self, valid_options_dict, uri):
        valid_options_dict['redirectUri'] = uri
        with pytest.raises(ValidationError) as exc_info:
            validate_options(valid_options_dict)
        assert exc_info.value.field == 'redirect_uri'
        assert exc_info.value.constraint == 'uri'

    @pytest.mark.parametrize('uri', [
        'https://foo.bar.com/callback?x=1',
        'http://localhost:8080/oauth',
        'https://sandbox-api.dexcom.com',
    ])
    def test_well_formed_redirect_uri_accepted(self, valid_options_dict, uri):
        valid_options_dict['redirectUri'] = uri
        validate_options(valid_options_dict)

    def test_client_id_too_long_rejected(self, valid_options_dict):
        valid_options_dict['clientId'] = 'This client ID is too long and should be rejected.'
        with pytest.raises(ValidationError) as exc_info:
            validate_options(valid_options_dict)
        assert exc_info.value.field == 'client_id'
        assert exc_info.value.constraint == 'max-length'

    def test_client_secret_too_long_rejected(self, valid_options_dict):
        valid_options_dict['clientSecret'] = 'This client secret is too long and should be rejected'
        with pytest.raises(ValidationError) as exc_info:
            validate_options(valid_options_dict)
        assert exc_info.value.field == 'client_secret'

    def test_non_string_field_rejected(self, valid_options):
        valid_options.client_id = 12345
        with pytest.raises(ValidationError) as exc_info:
            validate_options(valid_options)
        assert exc_info.value.constraint == 'type'

    def test_wrong_container_type_rejected(self):
        with pytest.raises(ValidationError):
            validate_options(['clientId'])

    def test_validation_error_is_value_error(self):
        with pytest.raises(ValueError):
            validate_options(None)


class TestValidateSandboxAuthcode:
    """Test cases for validate_sandbox_authcode()."""

    @pytest.mark.parametrize('authcode', sorted(SANDBOX_AUTHCODES))
    def test_sandbox_codes_accepted(self, authcode):
        validate_sandbox_authcode(authcode)

    @pytest.mark.parametrize('authcode', ['authcode0', 'authcode7', 'AUTHCODE1', ' authcode1', '', None])
    def test_other_codes_rejected(self, authcode):
        with pytest.raises(ValidationError) as exc_info:
            validate_sandbox_authcode(authcode)
        assert exc_info.value.field == 'authcode'

    def test_whitelist_has_six_codes(self):
        assert SANDBOX_AUTHCODES == {f'authcode{i}' for i in range(1, 7)}


class TestDexcomifyEpochTime:
    """Test cases for dexcomify_epoch_time()."""

    def test_known_value(self):
        assert dexcomify_epoch_time(1586101155000) == '2020-04-05T15:39:15'

    def test_epoch_zero(self):
        assert dexcomify_epoch_time(0) == '1970-01-01T00:00:00'

    def test_milliseconds_truncated(self):
        assert dexcomify_epoch_time(1586101155999) == '2020-04-05T15:39:15'

    def test_deterministic(self):
        assert dexcomify_epoch_time(1586101155000) == dexcomify_epoch_time(1586101155000)

    def test_negative_rejected(self):
        with pytest.raises(ValidationError):
            dexcomify_epoch_time(-1)

    @pytest.mark.parametrize('value', [None, 1.5, '1586101155000', True])
    def test_non_integer_rejected(self, value):
        with pytest.raises(ValidationError):
            dexcomify_epoch_time(value)

    @pytest.mark.parametrize('value', [10**20, 10**16])
    def test_out_of_range_rejected(self, value):
        with pytest.raises(ValidationError) as exc_info:
            dexcomify_epoch_time(value)
        assert exc_info.value.field == 'epoch_milliseconds'
        assert exc_info.value.constraint == 'range'

    def test_last_representable_second(self):
        assert dexcomify_epoch_time(253402300799999) == '9999-12-31T23:59:59'


class TestValidateTimeWindow:
    """Test cases for validate_time_window()."""

    def test_null_arguments_rejected(self):
        with pytest.raises(ValidationError):
            validate_time_window(None, None)

    def test_null_end_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_time_window(1, None)
        assert exc_info.value.field == 'end_time'

    def test_start_after_end_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_time_window(2, 1)
        assert exc_info.value.constraint == 'ordering'

    def test_negative_start_rejected(self):
        with pytest.raises(ValidationError):
            validate_time_window(-1, 1)

    def test_negative_end_rejected(self):
        with pytest.raises(ValidationError):
            validate_time_window(1, -1)

    def test_ordered_window_accepted(self):
        validate_time_window(1, 2)

    def test_zero_length_window_accepted(self):
        validate_time_window(5, 5)

    def test_float_rejected(self):
        with pytest.raises(ValidationError):
            validate_time_window(1.0, 2)


class TestValidateOAuthTokens:
    """Test cases for validate_oauth_tokens()."""

    def test_valid_tokens_accepted(self, valid_tokens_dict):
        validate_oauth_tokens(valid_tokens_dict)

    def test_bundle_object_accepted(self):
        validate_oauth_tokens(create_test_bundle())

    def test_null_rejected(self):
        with pytest.raises(ValidationError):
            validate_oauth_tokens(None)

    def test_missing_timestamp_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_oauth_tokens(create_test_tokens_dict(timestamp=None))
        assert exc_info.value.field == 'timestamp'

    def test_negative_timestamp_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_oauth_tokens(create_test_tokens_dict(timestamp=-1))
        assert exc_info.value.constraint == 'non-negative'

    def test_empty_token_properties_rejected(self):
        tokens = create_test_tokens_dict(access_token='', token_type='', refresh_token='')
        with pytest.raises(ValidationError):
            validate_oauth_tokens(tokens)

    def test_missing_token_properties_rejected(self):
        with pytest.raises(ValidationError):
            validate_oauth_tokens({'timestamp': 10000, 'dexcomOAuthToken': {}})

    def test_missing_dexcom_token_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_oauth_tokens({'timestamp': 10000})
        assert exc_info.value.field == 'dexcomOAuthToken'

    @pytest.mark.parametrize('field', ['access_token', 'expires_in', 'token_type', 'refresh_token'])
    def test_each_missing_field_rejected(self, valid_tokens_dict, field):
        del valid_tokens_dict['dexcomOAuthToken'][field]
        with pytest.raises(ValidationError) as exc_info:
            validate_oauth_tokens(valid_tokens_dict)
        assert exc_info.value.field == field

    def test_zero_expires_in_accepted(self):
        validate_oauth_tokens(create_test_tokens_dict(expires_in=0))

    def test_coerce_returns_bundle(self, valid_tokens_dict):
        bundle = coerce_oauth_tokens(valid_tokens_dict)
        assert bundle.timestamp == 10000
        assert bundle.refresh_token == 'some opaque refresh token'
        assert bundle.to_dict() == valid_tokens_dict
