'''
Turn session credentials into a URL that opens the AWS Management Console.

Using the credentials, create the "getSigninToken" request and send it to the AWS
federation endpoint, then use the returned token to build the "login" URL.
'''

import json
import logging
import pyperclip
import requests
import urllib.parse
import webbrowser

from console_signin.exceptions import BrowserLaunchError, FederationError


logger = logging.getLogger(__name__)


def session_json(credentials):
    '''
    The "Session" blob expected by getSigninToken.
    '''

    session_data = {
        'sessionId': credentials.access_key_id,
        'sessionKey': credentials.secret_access_key,
        'sessionToken': credentials.session_token,
    }
    return json.dumps(session_data, separators=(',', ':'))


def request_signin_token(credentials, endpoint, timeout=None):
    '''
    Exchange the credentials for a one-time sign-in token.
    '''

    params = {
        'Action': 'getSigninToken',
        'Session': session_json(credentials),
    }

    try:
        response = requests.get(endpoint, params=params, timeout=timeout)
        response.raise_for_status()
    except requests.exceptions.RequestException as e:
        raise FederationError('The "getSigninToken" request failed: %s' % e) from e

    try:
        body = json.loads(response.text)
    except json.JSONDecodeError as e:
        raise FederationError('Malformed response from the federation endpoint: %s' % e) from e

    signin_token = body.get('SigninToken') if isinstance(body, dict) else None
    if not signin_token or not isinstance(signin_token, str):
        raise FederationError('No "SigninToken" in the response from the federation endpoint.')

    logger.info('Got "SigninToken" token from the AWS sign-in federation endpoint.')
    return signin_token


def destination_url(console_url, service=''):
    return console_url + (service or '')


def build_login_url(endpoint, destination, signin_token):
    '''
    Make a federated URL that can be used to sign into the AWS Management Console.
    '''

    query_string = urllib.parse.urlencode(
        {
            'Action': 'login',
            'Destination': destination,
            'SigninToken': signin_token,
        }
    )
    return f'{endpoint}?{query_string}'


def construct_federated_url(credentials, config):
    signin_token = request_signin_token(credentials, config.federation_endpoint, config.timeout)
    destination = destination_url(config.console_url, config.service)
    federated_url = build_login_url(config.federation_endpoint, destination, signin_token)
    logger.info('The "login" request goes to: %s', destination)
    return federated_url


def copy_url_to_clipboard(url):
    try:
        logger.info('Attempting to copy URL to clipboard... ')
        pyperclip.copy(url)
    except pyperclip.PyperclipException:
        logger.info('could not copy.')
    else:
        logger.info('successfully copied.')


def open_in_browser(url):
    try:
        opened = webbrowser.open_new_tab(url)
    except webbrowser.Error as e:
        raise BrowserLaunchError('Cannot open browser: %s' % e) from e

    if not opened:
        raise BrowserLaunchError('No browser could be opened; use the URL printed above.')
