'''
Resolve a set of temporary session credentials for the console sign-in.

The caller identity decides, together with the configured policy, which one of the
credential sources below is used:

    PassthroughAssumedRole  reuse the credentials of an already assumed role
    FederationToken         sts:GetFederationToken named after the caller
    AssumeRole              iam:GetRole + sts:AssumeRole for a named role
'''

import boto3
import botocore.exceptions
import collections
import logging

from console_signin import config as cfg
from console_signin.exceptions import ConfigurationError, CredentialError


logger = logging.getLogger(__name__)

ASSUMED_ROLE_MARKER = ':assumed-role/'

# sts:GetFederationToken rejects longer names.
FEDERATION_TOKEN_NAME_MIN = 2
FEDERATION_TOKEN_NAME_MAX = 32

# sts:AssumeRole RoleSessionName limit.
ROLE_SESSION_NAME_MAX = 64


class Identity(collections.namedtuple('Identity', ['arn', 'account', 'user_id'])):
    __slots__ = ()

    @property
    def is_assumed_role(self):
        return ASSUMED_ROLE_MARKER in self.arn

    @property
    def trailing_name(self):
        '''
        Last path segment of the Arn, e.g. "alice" for "arn:aws:iam::123456789012:user/dev/alice".
        '''
        if '/' in self.arn:
            return self.arn.rsplit('/', 1)[1]
        return self.arn.rsplit(':', 1)[-1]


class SessionCredentials(collections.namedtuple(
        'SessionCredentials', ['access_key_id', 'secret_access_key', 'session_token'])):
    __slots__ = ()

    @classmethod
    def from_response(cls, response):
        '''Build from the "Credentials" member of an STS response.'''
        try:
            creds = response['Credentials']
            return cls(creds['AccessKeyId'], creds['SecretAccessKey'], creds['SessionToken'])
        except (KeyError, TypeError) as e:
            raise CredentialError('STS response has no usable credentials: %s' % e) from e

    def __repr__(self):
        return 'SessionCredentials(access_key_id=%r, secret_access_key=***, session_token=***)' % (
            self.access_key_id)


# --------------------------------------------------------------------------------------------------
# Build AWS context including boto3 session...
# --------------------------------------------------------------------------------------------------
class AWSContextManager:
    def __init__(self, config):
        self.config = config
        self.session = None

    def __enter__(self):
        try:
            self.session = boto3.Session(profile_name=self.config.profile,
                                         region_name=self.config.region)
        except botocore.exceptions.BotoCoreError as e:
            raise ConfigurationError('Cannot load AWS configuration: %s' % e) from e
        logger.info('Using AWS profile: %s', self.session.profile_name)
        return self

    def __exit__(self, exc_type, exc_value, exc_tb):
        pass

    def client(self, service_name):
        try:
            return self.session.client(service_name)
        except botocore.exceptions.BotoCoreError as e:
            raise ConfigurationError('Cannot create %s client: %s' % (service_name, e)) from e


def _aws_call(description, method, **kwargs):
    '''
    Invoke a boto3 client method; any failure is fatal and reported as CredentialError.
    '''
    try:
        return method(**kwargs)
    except (botocore.exceptions.ClientError, botocore.exceptions.BotoCoreError) as e:
        raise CredentialError('%s failed: %s' % (description, e)) from e


def get_caller_identity(ctx):
    sts_client = ctx.client('sts')
    response = _aws_call('sts:GetCallerIdentity', sts_client.get_caller_identity)
    identity = Identity(response['Arn'], response.get('Account'), response.get('UserId'))
    logger.info('Caller identity is: %s', identity.arn)
    return identity


def get_session_token(ctx, duration):
    sts_client = ctx.client('sts')
    response = _aws_call('sts:GetSessionToken', sts_client.get_session_token,
        DurationSeconds = duration,
    )
    return SessionCredentials.from_response(response)


# --------------------------------------------------------------------------------------------------
# Credential sources...
# --------------------------------------------------------------------------------------------------
class CredentialSource:
    '''
    One way of obtaining SessionCredentials. Subclasses implement acquire().
    '''

    name = None

    def __init__(self, config):
        self.config = config

    def acquire(self, ctx, identity):
        raise NotImplementedError


class PassthroughAssumedRole(CredentialSource):
    '''
    The caller already is an assumed role, so its current credentials can be used as is.
    '''

    name = cfg.POLICY_PASSTHROUGH

    def acquire(self, ctx, identity):
        try:
            return self._current_credentials(ctx)
        except CredentialError as e:
            if not self.config.session_token_fallback:
                raise
            logger.warning('%s; falling back to sts:GetSessionToken.', e)

        return get_session_token(ctx, self.config.duration)

    @staticmethod
    def _current_credentials(ctx):
        try:
            credentials = ctx.session.get_credentials()
            if credentials is None:
                raise CredentialError('No credentials found for the current session')
            frozen = credentials.get_frozen_credentials()
        except botocore.exceptions.BotoCoreError as e:
            raise CredentialError('Cannot read current credentials: %s' % e) from e

        if not frozen.token:
            raise CredentialError('Current credentials carry no session token')

        logger.info('Reusing current assumed-role credentials: %s', frozen.access_key)
        return SessionCredentials(frozen.access_key, frozen.secret_key, frozen.token)


class FederationToken(CredentialSource):
    '''
    Federated credentials for the caller itself, named after its Arn.
    '''

    name = cfg.POLICY_FEDERATION_TOKEN

    def session_name(self, identity):
        if self.config.role_session_name:
            return self.config.role_session_name
        name = identity.trailing_name[:FEDERATION_TOKEN_NAME_MAX]
        if len(name) < FEDERATION_TOKEN_NAME_MIN:
            raise ConfigurationError(
                'Cannot use "%s" as federation token name; give one with --role-session-name.' % name)
        return name

    def acquire(self, ctx, identity):
        name = self.session_name(identity)
        logger.info('Requesting federation token named "%s"', name)

        sts_client = ctx.client('sts')
        response = _aws_call('sts:GetFederationToken', sts_client.get_federation_token,
            Name = name,
            DurationSeconds = self.config.duration,
            # Permissions are the intersection of IAM user policies and PolicyArns.
            PolicyArns = [{'arn': arn} for arn in self.config.policy_arns],
        )
        return SessionCredentials.from_response(response)


class AssumeRole(CredentialSource):
    '''
    Look up the role by name and assume it.
    '''

    name = cfg.POLICY_ASSUME_ROLE

    def session_name(self):
        if self.config.role_session_name:
            return self.config.role_session_name
        return ('%s-session' % self.config.role)[:ROLE_SESSION_NAME_MAX]

    def acquire(self, ctx, identity):
        if not self.config.role:
            raise ConfigurationError("Role name must be specified with --role if you've not assumed a role.")

        iam_client = ctx.client('iam')
        response = _aws_call('iam:GetRole', iam_client.get_role,
            RoleName = self.config.role,
        )
        role_arn = response['Role']['Arn']

        session_name = self.session_name()
        if not self.config.role_session_name:
            logger.info('Using "%s" as assume-role session name; change it with --role-session-name',
                        session_name)

        sts_client = ctx.client('sts')
        response = _aws_call('sts:AssumeRole', sts_client.assume_role,
            RoleArn = role_arn,
            RoleSessionName = session_name,
            DurationSeconds = self.config.duration,
        )
        return SessionCredentials.from_response(response)


SOURCES = {
    cfg.POLICY_PASSTHROUGH: PassthroughAssumedRole,
    cfg.POLICY_FEDERATION_TOKEN: FederationToken,
    cfg.POLICY_ASSUME_ROLE: AssumeRole,
}


def select_source(config, identity):
    '''
    Pick the credential source for this run.

    With policy "auto" an assumed-role caller is passed through, anyone else must name a role.
    '''

    policy = config.policy

    if policy == cfg.POLICY_AUTO:
        if identity.is_assumed_role:
            if config.role:
                logger.warning('Already an assumed role, ignoring --role "%s".', config.role)
            policy = cfg.POLICY_PASSTHROUGH
        else:
            if not config.role:
                raise ConfigurationError(
                    "Role name must be specified with --role if you've not assumed a role.")
            policy = cfg.POLICY_ASSUME_ROLE

    try:
        source_class = SOURCES[policy]
    except KeyError:
        raise ConfigurationError('Unknown credential policy "%s".' % policy) from None

    logger.info('Selected credential source: %s', source_class.name)
    return source_class(config)


def resolve_credentials(ctx, config):
    identity = get_caller_identity(ctx)
    source = select_source(config, identity)
    return source.acquire(ctx, identity)
