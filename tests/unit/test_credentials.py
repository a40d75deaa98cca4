from pytest import raises

from gift_error import ConfigurationError
from credentials import load_gemini_api_key, load_partner_tag, load_signing_credential

def test_signing_credential_defaults():
    credential = load_signing_credential({'AMAZON_PA_ACCESS_KEY': 'AKIAEXAMPLE', 'AMAZON_PA_SECRET_KEY': 'secret'})
    assert credential.access_key_id == 'AKIAEXAMPLE'
    assert credential.region == 'eu-west-1'
    assert credential.host == 'webservices.amazon.co.uk'
    assert credential.service == 'ProductAdvertisingAPI'

def test_signing_credential_overrides():
    credential = load_signing_credential({
        'AMAZON_PA_ACCESS_KEY': 'AKIAEXAMPLE',
        'AMAZON_PA_SECRET_KEY': 'secret',
        'AMAZON_PA_REGION': 'us-east-1',
        'AMAZON_PA_HOST': 'webservices.amazon.com'
    })
    assert credential.region == 'us-east-1'
    assert credential.host == 'webservices.amazon.com'

def test_missing_variables_listed():
    with raises(ConfigurationError) as e:
        load_signing_credential({'AMAZON_PA_ACCESS_KEY': ' '})
    assert e.value.error_code == 'MissingEnvironmentVariables'
    assert e.value.error_message == 'Missing required environment variables: AMAZON_PA_ACCESS_KEY, AMAZON_PA_SECRET_KEY'

def test_partner_tag_and_gemini_key():
    assert load_partner_tag({'AMAZON_PARTNER_TAG': 'giftsite-21'}) == 'giftsite-21'
    assert load_gemini_api_key({'GEMINI_API_KEY': ' key '}) == 'key'

    with raises(ConfigurationError):
        load_partner_tag({})
    with raises(ConfigurationError):
        load_gemini_api_key({})
