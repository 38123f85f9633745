#!/usr/bin/env python
# -*- coding: UTF-8 -*-

'''
A simple tool to open the AWS Management Console from your current AWS credentials.

Works from a named profile, an already assumed role, a federation token, or by assuming
a role by name.
'''

import logging
import os
import sys

from console_signin.config import parse_options
from console_signin.credentials import AWSContextManager, resolve_credentials
from console_signin.federation import (
    construct_federated_url,
    copy_url_to_clipboard,
    open_in_browser,
)


# --------------------------------------------------------------------------------------------------
# Run...
# --------------------------------------------------------------------------------------------------
def run(argv=None):

    config = parse_options(argv)

    with AWSContextManager(config) as ctx:
        credentials = resolve_credentials(ctx, config)

    url = construct_federated_url(credentials, config)

    print(f"Your console signin URL is: {url}")

    if not config.no_clipboard:
        copy_url_to_clipboard(url)

    if not config.no_browser:
        print('Attempting to automatically open browser window for URL...')
        open_in_browser(url)

    return 0


# --------------------------------------------------------------------------------------------------
# Main...
# --------------------------------------------------------------------------------------------------
def main(argv=None):
    rc = 0

    try:
        # Get loglevel from environment
        loglevel = os.environ.get('LOGLEVEL', 'CRITICAL').upper()

        logging.basicConfig(level=loglevel)

        rc = run(argv)

    except KeyboardInterrupt:
        print('Killed by keyboard interrupt.')
        return 130

    except Exception as e:
        print('Error (%s) %s' % (e.__class__.__name__, e))
        rc = 1

    return rc


if __name__ == '__main__':
    sys.exit(main())
