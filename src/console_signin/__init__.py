'''
Open the AWS Management Console from ambient AWS credentials.
'''

__version__ = '0.1.3'
