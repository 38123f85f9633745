'''
Errors raised while resolving credentials and building the console sign-in URL.

All of them are fatal for a run; they propagate up to main() which reports and exits.
'''


class ConsoleSigninError(Exception):
    pass


class ConfigurationError(ConsoleSigninError):
    '''Bad command line input, or the AWS config/profile cannot be loaded.'''


class CredentialError(ConsoleSigninError):
    '''An IAM or STS call failed, or no usable credentials could be found.'''


class FederationError(ConsoleSigninError):
    '''The federation endpoint could not be reached or gave an unusable answer.'''


class BrowserLaunchError(ConsoleSigninError):
    '''The system web browser could not be opened with the sign-in URL.'''
