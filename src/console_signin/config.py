'''
Command line options, collected once into an immutable Config.
'''

import collections
import json

from optparse import OptionParser

from console_signin import __version__
from console_signin.exceptions import ConfigurationError


FEDERATION_ENDPOINT = 'https://signin.aws.amazon.com/federation'
CONSOLE_URL = 'https://console.aws.amazon.com/'

POLICY_AUTO = 'auto'
POLICY_PASSTHROUGH = 'passthrough'
POLICY_FEDERATION_TOKEN = 'federation-token'
POLICY_ASSUME_ROLE = 'assume-role'
POLICIES = (POLICY_AUTO, POLICY_PASSTHROUGH, POLICY_FEDERATION_TOKEN, POLICY_ASSUME_ROLE)

DEFAULT_DURATION = 3600
DEFAULT_TIMEOUT = 30.0
DEFAULT_POLICY_ARNS = ('arn:aws:iam::aws:policy/AdministratorAccess',)


Config = collections.namedtuple('Config', [
    'profile',
    'region',
    'role',
    'role_session_name',
    'service',
    'policy',
    'duration',
    'policy_arns',
    'session_token_fallback',
    'no_browser',
    'no_clipboard',
    'timeout',
    'federation_endpoint',
    'console_url',
], defaults=[
    None,                   # profile
    None,                   # region
    None,                   # role
    None,                   # role_session_name
    '',                     # service
    POLICY_AUTO,            # policy
    DEFAULT_DURATION,       # duration
    DEFAULT_POLICY_ARNS,    # policy_arns
    False,                  # session_token_fallback
    False,                  # no_browser
    False,                  # no_clipboard
    DEFAULT_TIMEOUT,        # timeout
    FEDERATION_ENDPOINT,    # federation_endpoint
    CONSOLE_URL,            # console_url
])


def read_list_from_input(option_name, input_value):
    '''
    Read a list from a JSON list, a CSV string, or "file://path" holding either.
    '''

    if input_value is None:
        return []

    if input_value == '':
        raise ConfigurationError('Empty value passed to "%s".' % option_name)

    loc = input_value.split('file://')

    if len(loc) == 1:
        payload = loc[0]

    elif len(loc) == 2 and loc[0] == '':
        try:
            with open(loc[1], 'rt') as f:
                payload = f.read()
        except OSError as e:
            raise ConfigurationError('Cannot read "%s" for %s: %s' % (
                loc[1], option_name, e)) from e

    else:
        raise ConfigurationError('Unable to parse the value passed to "%s".' % option_name)

    try:
        # Valid JSON?
        output_list = json.loads(payload)

    except json.JSONDecodeError:
        # Must be a CSV.
        output_list = [item for item in ''.join(payload.split()).split(',') if item]

    if not isinstance(output_list, list) or not all(isinstance(i, str) for i in output_list):
        raise ConfigurationError('Input to "%s" must be a list of strings.' % option_name)

    if not output_list:
        raise ConfigurationError('Input to "%s" appears to be empty.' % option_name)

    return output_list


def build_parser():

    usage = ('usage: %prog [options] [service]\n'
             '   ex: %prog --profile "myProfile" --role "ReadOnly" s3')
    parser = OptionParser(usage, version='%prog ' + __version__)

    parser.add_option('--profile', dest='profile', default=None,
                      help='AWS profile name to use')
    parser.add_option('--region', dest='region', default=None,
                      help='AWS region for the STS and IAM clients')
    parser.add_option('--role', dest='role', default=None,
                      help='AWS role name to assume')
    parser.add_option('--role-session-name', dest='role_session_name', default=None,
                      help='Session name for assume-role or federation-token')
    parser.add_option('--policy', dest='policy', default=POLICY_AUTO,
                      help='Credential policy: %s (default: auto)' % ','.join(POLICIES))
    parser.add_option('--duration', dest='duration', default=DEFAULT_DURATION, type='int',
                      help='Lifetime in seconds of credentials issued by STS (default: %default)')
    parser.add_option('--policy-arns', dest='policy_arns', default=None,
                      help='Managed policy Arns to scope a federation token (JSON, CSV or file://)')
    parser.add_option('--session-token-fallback', dest='session_token_fallback', default=False,
                      action='store_true',
                      help='If current assumed-role credentials cannot be read, get a session token')
    parser.add_option('--no-browser', dest='no_browser', default=False,
                      action='store_true',
                      help='Do not attempt to open browser')
    parser.add_option('--no-clipboard', dest='no_clipboard', default=False,
                      action='store_true',
                      help='Do not copy the URL to the clipboard')
    parser.add_option('--timeout', dest='timeout', default=DEFAULT_TIMEOUT, type='float',
                      help='Timeout in seconds for the federation endpoint (default: %default)')

    return parser


def parse_options(argv=None):
    '''
    Parse the command line and validate it; no AWS call is made here.
    '''

    parser = build_parser()
    (options, args) = parser.parse_args(argv)

    if len(args) > 1:
        raise ConfigurationError('At most one service may be given, got: %s' % ' '.join(args))

    policy = options.policy.lower()
    if policy not in POLICIES:
        raise ConfigurationError('Invalid value "%s" for --policy.' % options.policy)

    role = options.role or None
    if policy == POLICY_ASSUME_ROLE and role is None:
        raise ConfigurationError('Role name must be specified with --role for "assume-role".')

    if options.duration <= 0:
        raise ConfigurationError('Option --duration must be a positive number of seconds.')

    if options.timeout <= 0:
        raise ConfigurationError('Option --timeout must be a positive number of seconds.')

    if options.policy_arns is not None:
        policy_arns = tuple(read_list_from_input('--policy-arns', options.policy_arns))
    else:
        policy_arns = DEFAULT_POLICY_ARNS

    return Config(
        profile=options.profile or None,
        region=options.region or None,
        role=role,
        role_session_name=options.role_session_name or None,
        service=args[0] if args else '',
        policy=policy,
        duration=options.duration,
        policy_arns=policy_arns,
        session_token_fallback=options.session_token_fallback,
        no_browser=options.no_browser,
        no_clipboard=options.no_clipboard,
        timeout=options.timeout,
    )
