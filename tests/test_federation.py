import json
import pytest
import requests
import urllib.parse
import webbrowser
from unittest.mock import MagicMock, patch

from console_signin.config import CONSOLE_URL, FEDERATION_ENDPOINT, Config
from console_signin.credentials import SessionCredentials
from console_signin.exceptions import BrowserLaunchError, FederationError
from console_signin.federation import (
    build_login_url,
    construct_federated_url,
    copy_url_to_clipboard,
    destination_url,
    open_in_browser,
    request_signin_token,
    session_json,
)


CREDS = SessionCredentials('ASIAEXAMPLE', 'se/cr+et=', 'to&ken')


def signin_response(text, status_code=200):
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(
            '%d Client Error' % status_code)
    return response


def query(url):
    return urllib.parse.parse_qs(urllib.parse.urlsplit(url).query)


def test_session_json_has_exactly_three_keys():
    blob = session_json(CREDS)

    assert json.loads(blob) == {
        'sessionId': 'ASIAEXAMPLE',
        'sessionKey': 'se/cr+et=',
        'sessionToken': 'to&ken',
    }
    assert ' ' not in blob


@patch('console_signin.federation.requests.get')
def test_request_signin_token(mock_get):
    mock_get.return_value = signin_response('{"SigninToken":"abc"}')

    assert request_signin_token(CREDS, FEDERATION_ENDPOINT, timeout=5) == 'abc'

    mock_get.assert_called_once_with(
        FEDERATION_ENDPOINT,
        params={'Action': 'getSigninToken', 'Session': session_json(CREDS)},
        timeout=5,
    )


@patch('console_signin.federation.requests.get')
def test_request_signin_token_http_error(mock_get):
    mock_get.return_value = signin_response('denied', status_code=400)

    with pytest.raises(FederationError, match='400'):
        request_signin_token(CREDS, FEDERATION_ENDPOINT)


@patch('console_signin.federation.requests.get')
def test_request_signin_token_transport_error(mock_get):
    mock_get.side_effect = requests.exceptions.ConnectionError('Connection refused')

    with pytest.raises(FederationError, match='Connection refused'):
        request_signin_token(CREDS, FEDERATION_ENDPOINT)


@pytest.mark.parametrize('body', ['<html>', '[]', '{}', '{"SigninToken": ""}', '{"SigninToken": 1}'])
@patch('console_signin.federation.requests.get')
def test_request_signin_token_bad_body(mock_get, body):
    mock_get.return_value = signin_response(body)

    with pytest.raises(FederationError):
        request_signin_token(CREDS, FEDERATION_ENDPOINT)


@pytest.mark.parametrize('service', ['', 's3', 'ec2/home?region=us-east-1#Instances:'])
def test_destination_is_not_double_encoded(service):
    url = build_login_url(FEDERATION_ENDPOINT, destination_url(CONSOLE_URL, service), 'abc')

    params = query(url)
    assert params['Action'] == ['login']
    assert params['Destination'] == [CONSOLE_URL + service]


def test_login_url_token_roundtrip():
    url = build_login_url(FEDERATION_ENDPOINT, CONSOLE_URL, 'a+b/c=')

    assert url.startswith(FEDERATION_ENDPOINT + '?')
    assert query(url)['SigninToken'] == ['a+b/c=']


@patch('console_signin.federation.requests.get')
def test_construct_federated_url(mock_get):
    mock_get.return_value = signin_response('{"SigninToken":"abc"}')

    url = construct_federated_url(CREDS, Config(service='s3'))

    params = query(url)
    assert params['SigninToken'] == ['abc']
    assert params['Destination'] == ['https://console.aws.amazon.com/s3']


@patch('console_signin.federation.pyperclip.copy')
def test_copy_url_to_clipboard_failure_is_ignored(mock_copy):
    import pyperclip
    mock_copy.side_effect = pyperclip.PyperclipException('no clipboard')

    copy_url_to_clipboard('https://example.com')

    mock_copy.assert_called_once_with('https://example.com')


@patch('console_signin.federation.webbrowser.open_new_tab')
def test_open_in_browser(mock_open):
    mock_open.return_value = True

    open_in_browser('https://example.com')

    mock_open.assert_called_once_with('https://example.com')


@patch('console_signin.federation.webbrowser.open_new_tab')
def test_open_in_browser_no_browser(mock_open):
    mock_open.return_value = False

    with pytest.raises(BrowserLaunchError):
        open_in_browser('https://example.com')


@patch('console_signin.federation.webbrowser.open_new_tab')
def test_open_in_browser_error(mock_open):
    mock_open.side_effect = webbrowser.Error('could not locate runnable browser')

    with pytest.raises(BrowserLaunchError, match='runnable browser'):
        open_in_browser('https://example.com')
